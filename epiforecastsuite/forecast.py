"""
Posterior predictive forecasts from a calibrated LFMCMC chain.

Overview
--------
1) Draw a sample of parameter vectors from the chain after burn-in.
2) For each vector, build a fresh simulator seeded with the most recent observed
   case count and run it over the forecast horizon.
3) Summarize the ensemble with per-day empirical quantiles. Each day's band is
   marginal; no joint quantiles across days are computed.
"""

import datetime as dt
import logging
from collections.abc import Callable, Sequence

import numpy as np
import pandas as pd

from .calibration import MAX_SEED, build_simulator
from .parameters import ModelParameters
from .simulator import SIRConnSimulator

logger = logging.getLogger(__name__)


DEFAULT_QUANTILES = (0.025, 0.25, 0.5, 0.75, 0.975)

# Quantile -> band column used in reports
BAND_LABELS = {
    0.025: "lb_95",
    0.25: "lb_50",
    0.5: "median",
    0.75: "ub_50",
    0.975: "ub_95",
}

SimulatorFactory = Callable[[ModelParameters, int], SIRConnSimulator]


def sample_posterior(
    accepted_params: np.ndarray,
    n_total_iterations: int,
    burnin: int,
    sample_size: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw parameter vectors from the post burn-in part of the chain.

    Parameters
    ----------
    accepted_params : np.ndarray
        (n_iterations, n_params) matrix of held parameters.
    n_total_iterations : int
        Total number of iterations of the chain.
    burnin : int
        Number of leading iterations to discard.
    sample_size : int
        Number of rows to draw.
    rng : np.random.Generator
        Random number generator.

    Returns
    -------
    np.ndarray
        (sample_size, n_params) matrix. Rows are drawn without replacement unless
        ``sample_size`` exceeds the post burn-in length.
    """
    accepted_params = np.asarray(accepted_params, dtype=float)
    if accepted_params.ndim != 2:  # noqa: PLR2004
        msg = f"Expected a 2-D matrix of parameters, got shape {accepted_params.shape}"
        raise ValueError(msg)
    if n_total_iterations > len(accepted_params):
        msg = f"n_total_iterations={n_total_iterations} exceeds the chain length {len(accepted_params)}"
        raise ValueError(msg)
    if not 0 <= burnin < n_total_iterations:
        msg = f"burnin must be in [0, {n_total_iterations}), got {burnin}"
        raise ValueError(msg)
    if sample_size < 1:
        msg = f"sample_size must be positive, got {sample_size}"
        raise ValueError(msg)

    tail = accepted_params[len(accepted_params) - (n_total_iterations - burnin) :]
    replace = sample_size > len(tail)
    if replace:
        logger.warning(
            "Requested %d posterior samples from %d post burn-in iterations; sampling with replacement",
            sample_size,
            len(tail),
        )
    rows = rng.choice(len(tail), size=sample_size, replace=replace)
    return tail[rows]


def make_forecast_factory(
    last_observed_count: float,
    last_date: dt.date,
    forecast_days: int,
    population: int,
) -> SimulatorFactory:
    """
    Create a simulator factory for forecasting beyond the observed window.

    Forecast day ``d`` corresponds to ``last_date + d`` days, so day 0 is the most
    recent observed day; its prevalence is ``last_observed_count / population``.
    Seasonal transmission and weekday/weekend contact rates follow the forecast
    dates.

    Returns
    -------
    callable
        ``factory(params, seed) -> SIRConnSimulator``
    """
    prevalence = float(last_observed_count) / population
    dates = forecast_dates(last_date, forecast_days)

    def factory(params: ModelParameters, seed: int) -> SIRConnSimulator:
        return build_simulator(params, dates, population, prevalence, seed=seed)

    return factory


def forecast_dates(last_date: dt.date, forecast_days: int) -> list[dt.date]:
    return [last_date + dt.timedelta(days=d) for d in range(forecast_days)]


def forecast(
    param_samples: np.ndarray,
    simulator_factory: SimulatorFactory,
    forecast_days: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Run one simulation per parameter sample over the forecast horizon.

    Parameters
    ----------
    param_samples : np.ndarray
        (n_members, n_params) matrix from ``sample_posterior``.
    simulator_factory : callable
        ``factory(params, seed)`` returning a fresh simulator.
    forecast_days : int
        Length of each forecast trajectory.
    rng : np.random.Generator
        Source of the per-member seeds.

    Returns
    -------
    np.ndarray
        (n_members, forecast_days) ensemble of daily new infections.
    """
    if forecast_days < 1:
        msg = f"forecast_days must be positive, got {forecast_days}"
        raise ValueError(msg)

    param_samples = np.atleast_2d(np.asarray(param_samples, dtype=float))
    seeds = rng.integers(MAX_SEED, size=len(param_samples))
    ensemble = np.empty((len(param_samples), forecast_days), dtype=float)
    for member, (row, seed) in enumerate(zip(param_samples, seeds, strict=True)):
        simulator = simulator_factory(ModelParameters.from_array(row), int(seed))
        ensemble[member] = simulator.run(forecast_days).incidence()

    logger.debug("Simulated %d forecast trajectories of %d days", len(ensemble), forecast_days)
    return ensemble


def summarize(
    ensemble: np.ndarray,
    quantiles: Sequence[float] = DEFAULT_QUANTILES,
    start_date: dt.date | None = None,
) -> pd.DataFrame:
    """
    Per-day empirical quantiles of a forecast ensemble.

    Parameters
    ----------
    ensemble : np.ndarray
        (n_members, forecast_days) matrix.
    quantiles : sequence of float
        Quantile levels in (0, 1).
    start_date : date | None
        If given, a ``date`` column with ``start_date + day`` is added.

    Returns
    -------
    pd.DataFrame
        Long table with columns day, [date,] quantile, value.
    """
    ensemble = np.atleast_2d(np.asarray(ensemble, dtype=float))
    levels = np.asarray(quantiles, dtype=float)
    if levels.size == 0 or np.any((levels <= 0) | (levels >= 1)):
        msg = f"Quantiles must lie in (0, 1), got {list(quantiles)}"
        raise ValueError(msg)

    values = np.quantile(ensemble, levels, axis=0)  # (n_quantiles, forecast_days)
    n_days = ensemble.shape[1]
    table = pd.DataFrame(
        {
            "day": np.tile(np.arange(n_days), len(levels)),
            "quantile": np.repeat(levels, n_days),
            "value": values.reshape(-1),
        }
    )
    if start_date is not None:
        table.insert(1, "date", [start_date + dt.timedelta(days=int(d)) for d in table["day"]])
    return table.sort_values(["day", "quantile"], ignore_index=True)


def quantile_bands(table: pd.DataFrame) -> pd.DataFrame:
    """
    Pivot a ``summarize`` table into one row per day with lb_95, lb_50, median, ub_50 and ub_95 columns.

    The table must contain the five default quantiles.
    """
    missing = [q for q in BAND_LABELS if not np.isclose(table["quantile"], q).any()]
    if missing:
        msg = f"Quantile table lacks levels {missing} needed for forecast bands"
        raise ValueError(msg)

    index = ["day", "date"] if "date" in table.columns else ["day"]
    selected = table[np.isin(table["quantile"].round(6), list(BAND_LABELS))].copy()
    selected["band"] = selected["quantile"].round(6).map(BAND_LABELS)
    bands = selected.pivot(index=index, columns="band", values="value").reset_index()
    bands.columns.name = None
    return bands[[*index, *BAND_LABELS.values()]]
