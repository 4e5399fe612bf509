"""
Likelihood-free Markov chain Monte Carlo (LFMCMC).

Overview
--------
A Metropolis-Hastings-like sampler that never evaluates a likelihood. Each
iteration proposes a new parameter vector, simulates data with it, reduces the
simulated data to summary statistics and scores them against the observed
statistics with a kernel in [0, 1]. The kernel score stands in for the
likelihood in the acceptance ratio.

The chain records, for every iteration, the proposal, its statistics and score,
whether it was accepted, and the parameters held after the decision. The held
parameters are the posterior sample: a rejected proposal repeats the previously
held parameters.
"""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .utils.formatting import format_interval

logger = logging.getLogger(__name__)


SimulationFunction = Callable[[np.ndarray, np.random.Generator], np.ndarray]
SummaryFunction = Callable[[np.ndarray], np.ndarray]
ProposalFunction = Callable[[np.ndarray, np.random.Generator], np.ndarray]
KernelFunction = Callable[[np.ndarray, np.ndarray, float], float]


def accept_proposal(current_score: float, proposed_score: float, u: float) -> bool:
    """
    Decide whether to move the chain to the proposed state.

    Parameters
    ----------
    current_score : float
        Kernel score of the currently held state.
    proposed_score : float
        Kernel score of the proposal.
    u : float
        Uniform(0, 1) draw used for the stochastic part of the rule.

    Returns
    -------
    bool
        - NaN or non-positive proposal scores are rejected.
        - If the current score is zero or NaN, any positive proposal score is accepted.
        - Otherwise proposals at least as good are accepted, and worse ones with
          probability ``proposed_score / current_score``.
    """
    if math.isnan(proposed_score) or proposed_score <= 0:
        return False
    if math.isnan(current_score) or current_score <= 0:
        return True
    if proposed_score >= current_score:
        return True
    return u < proposed_score / current_score


@dataclass(frozen=True, eq=False)
class ChainRecord:
    """One LFMCMC iteration."""

    iteration: int
    proposed_params: np.ndarray
    proposed_stats: np.ndarray
    proposed_score: float
    accepted: bool
    params: np.ndarray
    stats: np.ndarray
    score: float


class LFMCMCResults:
    """
    Completed LFMCMC chain.

    Attributes
    ----------
    records : list[ChainRecord]
        One record per iteration (the initial state is not a record).
    initial_params, initial_stats, initial_score
        Starting point of the chain.
    observed_stats : np.ndarray
        Summary statistics of the observed data.
    epsilon : float
        Kernel bandwidth used for the run.
    param_names, stats_names : tuple[str, ...] | None
        Labels attached positionally, for reporting.
    """

    def __init__(
        self,
        records: list[ChainRecord],
        initial_params: np.ndarray,
        initial_stats: np.ndarray,
        initial_score: float,
        observed_stats: np.ndarray,
        epsilon: float,
        seed: int | None = None,
        param_names: Sequence[str] | None = None,
        stats_names: Sequence[str] | None = None,
    ):
        self.records = records
        self.initial_params = initial_params
        self.initial_stats = initial_stats
        self.initial_score = initial_score
        self.observed_stats = observed_stats
        self.epsilon = epsilon
        self.seed = seed
        self.param_names = tuple(param_names) if param_names else None
        self.stats_names = tuple(stats_names) if stats_names else None

    def __len__(self) -> int:
        return len(self.records)

    def __repr__(self) -> str:
        return f"LFMCMCResults(n_iterations={len(self)}, acceptance_rate={self.acceptance_rate:.3f})"

    @property
    def n_iterations(self) -> int:
        return len(self.records)

    @property
    def accepted_params(self) -> np.ndarray:
        """(n_iterations, n_params) matrix of the parameters held after each iteration."""
        return np.vstack([r.params for r in self.records]) if self.records else np.empty((0, len(self.initial_params)))

    @property
    def accepted_stats(self) -> np.ndarray:
        """(n_iterations, n_stats) matrix of the statistics held after each iteration."""
        return np.vstack([r.stats for r in self.records]) if self.records else np.empty((0, len(self.initial_stats)))

    @property
    def proposed_params(self) -> np.ndarray:
        return np.vstack([r.proposed_params for r in self.records])

    @property
    def scores(self) -> np.ndarray:
        """Kernel score held after each iteration."""
        return np.array([r.score for r in self.records], dtype=float)

    @property
    def acceptance_rate(self) -> float:
        if not self.records:
            return 0.0
        return sum(r.accepted for r in self.records) / len(self.records)

    def _check_burnin(self, burnin: int) -> None:
        if burnin < 0 or burnin >= self.n_iterations:
            msg = f"burnin must be in [0, {self.n_iterations}), got {burnin}"
            raise ValueError(msg)

    def posterior(self, burnin: int = 0) -> np.ndarray:
        """Held parameters after discarding the first ``burnin`` iterations."""
        self._check_burnin(burnin)
        return self.accepted_params[burnin:]

    def _labels(self, names: tuple[str, ...] | None, n: int, prefix: str) -> list[str]:
        return list(names) if names else [f"{prefix}{i}" for i in range(n)]

    def _describe(self, values: np.ndarray, initial: np.ndarray, labels: list[str], level: float) -> pd.DataFrame:
        if not 0 < level < 1:
            msg = f"Credible level must lie in (0, 1), got {level}"
            raise ValueError(msg)
        tail = (1 - level) / 2
        return pd.DataFrame(
            {
                "name": labels,
                "mean": values.mean(axis=0),
                "lower": np.quantile(values, tail, axis=0),
                "upper": np.quantile(values, 1 - tail, axis=0),
                "initial": initial,
            }
        )

    def summary(self, burnin: int = 0, level: float = 0.95) -> pd.DataFrame:
        """
        Posterior mean and equal-tailed percentile interval of each parameter.

        Parameters
        ----------
        burnin : int
            Number of leading iterations to discard.
        level : float
            Credible level of the interval (default 0.95, i.e. 2.5% - 97.5%).

        Returns
        -------
        pd.DataFrame
            Columns: name, mean, lower, upper, initial.
        """
        posterior = self.posterior(burnin)
        labels = self._labels(self.param_names, posterior.shape[1], "param_")
        return self._describe(posterior, self.initial_params, labels, level)

    def stats_summary(self, burnin: int = 0, level: float = 0.95) -> pd.DataFrame:
        """Same as ``summary`` for the held summary statistics; ``initial`` holds the observed statistics."""
        self._check_burnin(burnin)
        stats = self.accepted_stats[burnin:]
        labels = self._labels(self.stats_names, stats.shape[1], "stat_")
        return self._describe(stats, self.observed_stats, labels, level)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per iteration with proposed and held parameters."""
        n_params = len(self.initial_params)
        labels = self._labels(self.param_names, n_params, "param_")
        frame = pd.DataFrame(
            {
                "iteration": [r.iteration for r in self.records],
                "proposed_score": [r.proposed_score for r in self.records],
                "accepted": [r.accepted for r in self.records],
                "score": self.scores,
            }
        )
        if self.records:
            for j, label in enumerate(labels):
                frame[f"proposed: {label}"] = self.proposed_params[:, j]
            for j, label in enumerate(labels):
                frame[label] = self.accepted_params[:, j]
        return frame

    def format_summary(self, burnin: int = 0, level: float = 0.95) -> str:
        """Human-readable posterior report."""
        lines = [
            f"LFMCMC results (n={self.n_iterations:,} iterations, burn-in={burnin:,}, "
            f"acceptance rate={self.acceptance_rate:.1%}, epsilon={self.epsilon:g})",
            "",
            "Parameters (mean [credible interval], initial):",
        ]
        for row in self.summary(burnin, level).itertuples():
            interval = format_interval(row.mean, row.lower, row.upper)
            lines.append(f"  - {row.name:<28} {interval}  (initial {row.initial:.4f})")
        lines.append("")
        lines.append("Statistics (mean [credible interval], observed):")
        for row in self.stats_summary(burnin, level).itertuples():
            interval = format_interval(row.mean, row.lower, row.upper)
            lines.append(f"  - {row.name:<28} {interval}  (observed {row.initial:.4f})")
        return "\n".join(lines)


class LFMCMC:
    """
    Likelihood-free MCMC sampler.

    Parameters
    ----------
    simulation_fun : callable
        ``simulation_fun(params, rng) -> simulated data``.
    summary_fun : callable
        ``summary_fun(data) -> statistics vector``; applied to both observed and simulated data.
    proposal_fun : callable
        ``proposal_fun(params, rng) -> proposed params``.
    kernel_fun : callable
        ``kernel_fun(simulated_stats, observed_stats, epsilon) -> score in [0, 1]``.
    observed_data : array-like
        The observed data the chain is calibrated against.
    param_names, stats_names : sequence of str, optional
        Labels attached to results.
    """

    def __init__(
        self,
        simulation_fun: SimulationFunction,
        summary_fun: SummaryFunction,
        proposal_fun: ProposalFunction,
        kernel_fun: KernelFunction,
        observed_data,
        param_names: Sequence[str] | None = None,
        stats_names: Sequence[str] | None = None,
    ):
        self.simulation_fun = simulation_fun
        self.summary_fun = summary_fun
        self.proposal_fun = proposal_fun
        self.kernel_fun = kernel_fun
        self.observed_data = np.asarray(observed_data, dtype=float)
        self.param_names = param_names
        self.stats_names = stats_names

    def _summarize(self, data, expected_size: int | None, context: str) -> np.ndarray:
        stats = np.atleast_1d(np.asarray(self.summary_fun(data), dtype=float))
        if stats.ndim != 1:
            msg = f"Summary function must return a 1-D vector, got shape {stats.shape} for {context}"
            raise ValueError(msg)
        if expected_size is not None and stats.size != expected_size:
            msg = (
                f"Summary function returned {stats.size} statistics for {context}, "
                f"expected {expected_size} (as for the observed data)"
            )
            raise ValueError(msg)
        return stats

    def _score(self, stats: np.ndarray, observed_stats: np.ndarray, epsilon: float) -> float:
        return float(self.kernel_fun(stats, observed_stats, epsilon))

    def run(
        self,
        initial_params,
        n_samples: int,
        epsilon: float,
        seed: int | None = None,
        log_every: int | None = None,
    ) -> LFMCMCResults:
        """
        Run the chain for ``n_samples`` iterations.

        Parameters
        ----------
        initial_params : array-like
            Starting parameter vector.
        n_samples : int
            Number of iterations (= number of chain records).
        epsilon : float
            Kernel bandwidth.
        seed : int | None
            Seed of the generator shared by the simulation and proposal functions
            and the acceptance draws.
        log_every : int | None
            Log progress every this many iterations (default: every 10%).

        Returns
        -------
        LFMCMCResults
            The completed chain.

        Raises
        ------
        ValueError
            For invalid arguments or when the summary function returns statistics
            of a different size than for the observed data. Errors raised by the
            simulation function propagate unchanged and abort the run.
        """
        if n_samples < 1:
            msg = f"n_samples must be a positive integer, got {n_samples}"
            raise ValueError(msg)
        if not epsilon > 0:
            msg = f"epsilon must be positive, got {epsilon}"
            raise ValueError(msg)

        rng = np.random.default_rng(seed)
        log_every = log_every or max(n_samples // 10, 1)

        observed_stats = self._summarize(self.observed_data, None, "the observed data")
        n_stats = observed_stats.size

        current_params = np.asarray(initial_params, dtype=float).copy()
        current_stats = self._summarize(self.simulation_fun(current_params, rng), n_stats, "the initial parameters")
        current_score = self._score(current_stats, observed_stats, epsilon)
        initial = (current_params.copy(), current_stats.copy(), current_score)
        logger.info("LFMCMC: starting %d iterations (epsilon=%g, initial score=%.4g)", n_samples, epsilon, current_score)

        records: list[ChainRecord] = []
        n_accepted = 0
        for iteration in range(1, n_samples + 1):
            proposed_params = np.asarray(self.proposal_fun(current_params, rng), dtype=float)
            if proposed_params.shape != current_params.shape:
                msg = f"Proposal function returned shape {proposed_params.shape}, expected {current_params.shape}"
                raise ValueError(msg)
            proposed_stats = self._summarize(
                self.simulation_fun(proposed_params, rng), n_stats, f"iteration {iteration}"
            )
            proposed_score = self._score(proposed_stats, observed_stats, epsilon)

            accepted = accept_proposal(current_score, proposed_score, rng.uniform())
            if accepted:
                n_accepted += 1
                current_params, current_stats, current_score = proposed_params, proposed_stats, proposed_score

            records.append(
                ChainRecord(
                    iteration=iteration,
                    proposed_params=proposed_params,
                    proposed_stats=proposed_stats,
                    proposed_score=proposed_score,
                    accepted=accepted,
                    params=current_params,
                    stats=current_stats,
                    score=current_score,
                )
            )

            if iteration % log_every == 0:
                logger.info(
                    "LFMCMC: iteration %d/%d, acceptance rate %.3f, current score %.4g",
                    iteration,
                    n_samples,
                    n_accepted / iteration,
                    current_score,
                )

        if n_accepted == 0:
            logger.warning("LFMCMC: no proposal was accepted in %d iterations; consider a larger epsilon", n_samples)

        return LFMCMCResults(
            records=records,
            initial_params=initial[0],
            initial_stats=initial[1],
            initial_score=initial[2],
            observed_stats=observed_stats,
            epsilon=epsilon,
            seed=seed,
            param_names=self.param_names,
            stats_names=self.stats_names,
        )
