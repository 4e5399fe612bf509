"""Runner functions for executing calibrations and forecasts."""

import logging

import numpy as np

from ..calibration import calibrate
from ..data.observed import ObservedSeries
from ..forecast import forecast, forecast_dates, make_forecast_factory, sample_posterior, summarize
from ..schema.dispatcher import CalibrationOutput, ForecastOutput
from ..schema.forecast import ForecastConfig
from ..telemetry import ExecutionTelemetry

logger = logging.getLogger(__name__)

# Appended to the workflow seed to derive the forecast stream
FORECAST_STREAM = 1


def forecast_rng(seed: int | None) -> np.random.Generator:
    """Random generator for the forecast stage, derived from the workflow seed."""
    return np.random.default_rng(None if seed is None else [seed, FORECAST_STREAM])


# ===== Runner Functions =====


def run_calibration(config: ForecastConfig, observed: ObservedSeries) -> CalibrationOutput:
    """
    Calibrate the model against the observed series with LFMCMC.

    Parameters
    ----------
    config : ForecastConfig
        Validated workflow configuration.
    observed : ObservedSeries
        Observed daily case counts; the last ``config.data.n_days`` days are used.

    Returns
    -------
    CalibrationOutput
        Results of the calibration with metadata.

    Raises
    ------
    RuntimeError
        If calibration fails.
    """
    logger.info("RUNNER: running calibration.")
    telemetry = ExecutionTelemetry.get_current()
    if telemetry:
        telemetry.enter_calibration()

    settings = config.calibration
    try:
        window = observed.last_days(config.data.n_days)
        window.require_length(config.data.n_days)
        results = calibrate(
            dates=window.dates,
            case_counts=window.cases,
            initial_params=settings.initial_parameters.to_model_parameters(),
            population=config.model.population,
            n_samples=settings.n_samples,
            epsilon=settings.epsilon,
            seed=config.model.seed,
            proposal_scale=settings.proposal_scale,
        )
        output = CalibrationOutput(
            seed=config.model.seed,
            population=config.model.population,
            burnin=settings.burnin,
            observed=window,
            results=results,
        )
    except Exception as e:
        if telemetry:
            telemetry.capture_error("calibration", str(e))
        raise RuntimeError(f"Error during calibration: {e}") from e

    logger.info("RUNNER: completed calibration (acceptance rate %.3f).", results.acceptance_rate)
    if telemetry:
        telemetry.capture_calibration(output)
    return output


def run_forecast(config: ForecastConfig, calibration: CalibrationOutput) -> ForecastOutput:
    """
    Forecast daily cases by simulating posterior draws beyond the observed window.

    Parameters
    ----------
    config : ForecastConfig
        Validated workflow configuration.
    calibration : CalibrationOutput
        Output of ``run_calibration``.

    Returns
    -------
    ForecastOutput
        Ensemble of trajectories and their per-day quantiles.

    Raises
    ------
    RuntimeError
        If forecasting fails.
    """
    logger.info("RUNNER: running forecast.")
    telemetry = ExecutionTelemetry.get_current()
    if telemetry:
        telemetry.enter_forecast()

    settings = config.forecast
    observed = calibration.observed
    try:
        rng = forecast_rng(calibration.seed)
        param_samples = sample_posterior(
            calibration.results.accepted_params,
            n_total_iterations=calibration.results.n_iterations,
            burnin=calibration.burnin,
            sample_size=settings.sample_size,
            rng=rng,
        )
        factory = make_forecast_factory(
            last_observed_count=observed.last_count,
            last_date=observed.last_date,
            forecast_days=settings.n_days,
            population=calibration.population,
        )
        ensemble = forecast(param_samples, factory, settings.n_days, rng)
        output = ForecastOutput(
            seed=calibration.seed,
            dates=forecast_dates(observed.last_date, settings.n_days),
            param_samples=param_samples,
            ensemble=ensemble,
            quantiles=summarize(ensemble, settings.quantiles, start_date=observed.last_date),
        )
    except Exception as e:
        if telemetry:
            telemetry.capture_error("forecast", str(e))
        raise RuntimeError(f"Error during forecast: {e}") from e

    logger.info("RUNNER: completed forecast of %d trajectories.", len(ensemble))
    if telemetry:
        telemetry.capture_forecast(output)
    return output
