"""
Calibration of the seasonal SIR-connected model with LFMCMC.

This module supplies the concrete pieces plugged into ``LFMCMC``:

- ``summary_statistics``: time to peak, size of peak, mean and standard deviation
  of a daily case series.
- ``propose_parameters``: Gaussian random walk, in logit space for the rate-like
  parameters and reflected at zero for the contact rates.
- ``gaussian_kernel``: standard normal density of the epsilon-powered distance
  between simulated and observed statistics.
- ``make_simulation_function``: builds a fresh simulator for every call, with
  seasonal transmission rates and weekday/weekend contact rates laid out by
  ``build_parameter_schedule``.
"""

import datetime as dt
import logging
from collections.abc import Callable, Sequence

import numpy as np
from scipy.special import expit, logit
from scipy.stats import norm

from .lfmcmc import LFMCMC, LFMCMCResults
from .parameters import (
    CONTACT_INDICES,
    N_PARAMETERS,
    PARAMETER_NAMES,
    RATE_INDICES,
    SUMMARY_STAT_NAMES,
    ModelParameters,
)
from .seasons import classify_season, is_weekend, locate_season_starts
from .simulator import ParameterSchedule, SIRConnSimulator

logger = logging.getLogger(__name__)

DEFAULT_PROPOSAL_SCALE = 0.025
MAX_SEED = 2**32


# ============================================================
# LFMCMC building blocks
# ============================================================


def summary_statistics(case_counts) -> np.ndarray:
    """
    Reduce a daily case series to (time to peak, size of peak, mean, standard deviation).

    Time to peak is the 0-based index of the first maximum; the standard deviation
    is the sample standard deviation (ddof=1).
    """
    counts = np.asarray(case_counts, dtype=float)
    if counts.ndim != 1 or counts.size < 2:  # noqa: PLR2004
        msg = f"Summary statistics need a 1-D series of at least 2 values, got shape {counts.shape}"
        raise ValueError(msg)
    time_to_peak = int(np.argmax(counts))
    return np.array([time_to_peak, counts[time_to_peak], counts.mean(), counts.std(ddof=1)])


def propose_parameters(
    params_prev, rng: np.random.Generator, scale: float = DEFAULT_PROPOSAL_SCALE
) -> np.ndarray:
    """
    Random-walk proposal for the 7-parameter vector.

    The rate-like parameters (recovery and seasonal transmission rates) take a
    Gaussian step in logit space, so proposals remain strictly inside (0, 1).
    The contact rates take an additive Gaussian step; a negative result is
    reflected around the previous value (``prev - (new - prev)``).

    Parameters
    ----------
    params_prev : array-like
        Current parameter vector (order of PARAMETER_NAMES).
    rng : np.random.Generator
        Random number generator.
    scale : float
        Standard deviation of the Gaussian steps.

    Returns
    -------
    np.ndarray
        Proposed parameter vector.
    """
    prev = np.asarray(params_prev, dtype=float)
    if prev.shape != (N_PARAMETERS,):
        msg = f"Expected a parameter vector of length {N_PARAMETERS}, got shape {prev.shape}"
        raise ValueError(msg)

    proposed = prev.copy()
    rates = prev[RATE_INDICES]
    proposed[RATE_INDICES] = expit(logit(rates) + rng.normal(0.0, scale, size=rates.size))

    contacts_prev = prev[CONTACT_INDICES]
    contacts = contacts_prev + rng.normal(0.0, scale, size=contacts_prev.size)
    proposed[CONTACT_INDICES] = reflect_negative(contacts, contacts_prev)
    return proposed


def reflect_negative(proposed, previous) -> np.ndarray:
    """Reflect negative proposals around the previous (non-negative) values."""
    proposed = np.asarray(proposed, dtype=float)
    previous = np.asarray(previous, dtype=float)
    return np.where(proposed < 0, previous - (proposed - previous), proposed)


def gaussian_kernel(simulated_stats, observed_stats, epsilon: float) -> float:
    """
    Score simulated statistics against observed ones.

    ``norm.pdf(sqrt(sum(((simulated - observed) ** 2) ** epsilon)))``; the score
    is largest (about 0.3989) for identical statistics.
    """
    diff = (np.asarray(simulated_stats, dtype=float) - np.asarray(observed_stats, dtype=float)) ** 2
    return float(norm.pdf(np.sqrt(np.sum(diff**epsilon))))


# ============================================================
# Simulation function
# ============================================================


def build_parameter_schedule(params: ModelParameters, dates: Sequence[dt.date]) -> ParameterSchedule:
    """
    Lay out day-by-day parameter changes for a simulation aligned with ``dates``.

    Day ``i`` of the simulation corresponds to ``dates[i]``. Every day gets the
    weekday or weekend contact rate of its date, and the transmission rate
    switches to the seasonal value at the first day of each season present.
    """
    schedule = ParameterSchedule()
    for day, date in enumerate(dates):
        schedule.set(day, "contact_rate", params.contact_rate(is_weekend(date)))
    for season, day in locate_season_starts(dates).items():
        schedule.set(day, "transmission_rate", params.transmission_rate(season))
    return schedule


def build_simulator(
    params: ModelParameters,
    dates: Sequence[dt.date],
    population: int,
    prevalence: float,
    seed: int | None = None,
) -> SIRConnSimulator:
    """Fresh simulator for ``params`` with the calendar schedule for ``dates``."""
    if not dates:
        msg = "At least one date is required to build a simulation schedule"
        raise ValueError(msg)
    return SIRConnSimulator(
        n=population,
        prevalence=prevalence,
        contact_rate=params.contact_rate(is_weekend(dates[0])),
        transmission_rate=params.transmission_rate(classify_season(dates[0])),
        recovery_rate=params.recovery_rate,
        seed=seed,
        schedule=build_parameter_schedule(params, dates),
    )


def make_simulation_function(
    dates: Sequence[dt.date], population: int, prevalence: float
) -> Callable[[np.ndarray, np.random.Generator], np.ndarray]:
    """
    Create the LFMCMC simulation function for an observation window.

    Parameters
    ----------
    dates : sequence of date
        Dates of the observed series; the simulation runs ``len(dates)`` days.
    population : int
        Simulated population size.
    prevalence : float
        Initial fraction infected.

    Returns
    -------
    callable
        ``simulate(params, rng) -> np.ndarray`` of ``len(dates)`` daily new infections.
        Each call builds its own simulator seeded from ``rng``.
    """
    dates = list(dates)
    n_days = len(dates)

    def simulate(params, rng: np.random.Generator) -> np.ndarray:
        model_params = ModelParameters.from_array(params)
        seed = int(rng.integers(MAX_SEED))
        simulator = build_simulator(model_params, dates, population, prevalence, seed=seed)
        return simulator.run(n_days).incidence()

    return simulate


def calibrate(
    dates: Sequence[dt.date],
    case_counts,
    initial_params: ModelParameters,
    population: int,
    n_samples: int,
    epsilon: float,
    seed: int | None = None,
    proposal_scale: float = DEFAULT_PROPOSAL_SCALE,
    prevalence: float | None = None,
) -> LFMCMCResults:
    """
    Calibrate the model against an observed daily case series.

    Parameters
    ----------
    dates : sequence of date
        Observation dates, ascending.
    case_counts : array-like
        Observed daily cases aligned with ``dates``.
    initial_params : ModelParameters
        Starting point of the chain.
    population : int
        Simulated population size.
    n_samples : int
        Number of LFMCMC iterations.
    epsilon : float
        Kernel bandwidth.
    seed : int | None
        Seed of the chain.
    proposal_scale : float
        Standard deviation of the proposal steps.
    prevalence : float | None
        Initial fraction infected. Defaults to the first observed count over the population.

    Returns
    -------
    LFMCMCResults
        The calibrated chain, labelled with PARAMETER_NAMES and SUMMARY_STAT_NAMES.
    """
    counts = np.asarray(case_counts, dtype=float)
    if len(dates) != counts.size:
        msg = f"Got {len(dates)} dates for {counts.size} case counts"
        raise ValueError(msg)
    if prevalence is None:
        prevalence = counts[0] / population

    starts = locate_season_starts(dates)
    logger.info("Calibrating over %s to %s, season starts %s", dates[0], dates[-1], starts.as_dict())

    lfmcmc = LFMCMC(
        simulation_fun=make_simulation_function(dates, population, prevalence),
        summary_fun=summary_statistics,
        proposal_fun=lambda params, rng: propose_parameters(params, rng, scale=proposal_scale),
        kernel_fun=gaussian_kernel,
        observed_data=counts,
        param_names=PARAMETER_NAMES,
        stats_names=SUMMARY_STAT_NAMES,
    )
    return lfmcmc.run(initial_params.to_array(), n_samples=n_samples, epsilon=epsilon, seed=seed)
