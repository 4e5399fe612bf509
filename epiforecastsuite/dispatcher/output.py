"""Output generation functions for formatting and saving results."""

import io
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from ..forecast import BAND_LABELS, quantile_bands
from ..schema.dispatcher import CalibrationOutput, ForecastOutput
from ..seasons import locate_season_starts
from ..telemetry import ExecutionTelemetry

logger = logging.getLogger(__name__)


# ===== Output Generator Helper Functions =====


def dataframe_to_gzipped_csv(df: pd.DataFrame, **csv_kwargs) -> bytes:
    """
    Convert a DataFrame to gzip-compressed CSV bytes.

    Parameters
    ----------
    df : pd.DataFrame
        The DataFrame to convert
    **csv_kwargs
        Additional keyword arguments to pass to DataFrame.to_csv()

    Returns
    -------
    bytes
        Gzip-compressed CSV data as bytes
    """
    buffer = io.BytesIO()
    df.to_csv(buffer, date_format="%Y-%m-%d", compression="gzip", **csv_kwargs)
    return buffer.getvalue()


def format_posterior_table(calibration: CalibrationOutput, level: float = 0.95) -> pd.DataFrame:
    """Posterior summary of parameters and summary statistics in one table, tagged by ``kind``."""
    results = calibration.results
    params = results.summary(calibration.burnin, level)
    params.insert(0, "kind", "parameter")
    stats = results.stats_summary(calibration.burnin, level)
    stats.insert(0, "kind", "statistic")
    table = pd.concat([params, stats], ignore_index=True)
    table.insert(1, "credible_level", level)
    return table


def format_metadata_table(calibration: CalibrationOutput) -> pd.DataFrame:
    """One-row table describing the calibration run."""
    observed = calibration.observed
    results = calibration.results
    meta = {
        "seed": calibration.seed,
        "population": calibration.population,
        "window_start": observed.first_date,
        "window_end": observed.last_date,
        "n_days": len(observed),
        "n_iterations": results.n_iterations,
        "burnin": calibration.burnin,
        "epsilon": results.epsilon,
        "acceptance_rate": results.acceptance_rate,
    }
    for season, day in locate_season_starts(observed.dates).as_dict().items():
        meta[f"{season}_start"] = day
    return pd.DataFrame([meta])


def format_trajectories_table(forecast: ForecastOutput) -> pd.DataFrame:
    """Long table of forecast trajectories: member, day, date, cases."""
    n_members, n_days = forecast.ensemble.shape
    return pd.DataFrame(
        {
            "member": np.repeat(np.arange(n_members), n_days),
            "day": np.tile(np.arange(n_days), n_members),
            "date": np.tile(np.asarray(forecast.dates, dtype="datetime64[D]"), n_members),
            "cases": forecast.ensemble.reshape(-1),
        }
    )


def format_forecast_samples_table(forecast: ForecastOutput, param_names) -> pd.DataFrame:
    """Posterior draw used by each forecast member."""
    table = pd.DataFrame(forecast.param_samples, columns=list(param_names))
    table.insert(0, "member", np.arange(len(table)))
    return table


def has_band_levels(quantiles: pd.DataFrame) -> bool:
    return all(np.isclose(quantiles["quantile"], q).any() for q in BAND_LABELS)


# ===== Output Generators =====


def generate_outputs(
    *,
    calibration: CalibrationOutput,
    forecast: ForecastOutput | None = None,
    credible_level: float = 0.95,
) -> dict[str, bytes]:
    """
    Create a dictionary of outputs for a calibration and (optional) forecast.

    Parameters
    ----------
        calibration: the CalibrationOutput of the workflow.
        forecast: the ForecastOutput of the workflow, if a forecast was run.
        credible_level: level of the posterior intervals.

    Returns
    -------
        A dictionary where keys are intended filenames for writing data, and values are gzip-compressed CSV bytes.
    """
    logger.info("OUTPUT GENERATOR: dispatched for calibration%s", " and forecast" if forecast else "")
    telemetry = ExecutionTelemetry.get_current()
    if telemetry:
        telemetry.enter_output()

    out_dict = {
        "observed.csv.gz": dataframe_to_gzipped_csv(calibration.observed.to_dataframe(), header=True, index=False),
        "chain.csv.gz": dataframe_to_gzipped_csv(calibration.results.to_dataframe(), header=True, index=False),
        "posteriors.csv.gz": dataframe_to_gzipped_csv(
            format_posterior_table(calibration, credible_level), header=True, index=False
        ),
        "model_metadata.csv.gz": dataframe_to_gzipped_csv(
            format_metadata_table(calibration), header=True, index=False
        ),
    }

    if forecast is not None:
        out_dict["forecast_quantiles.csv.gz"] = dataframe_to_gzipped_csv(
            forecast.quantiles, header=True, index=False
        )
        out_dict["forecast_trajectories.csv.gz"] = dataframe_to_gzipped_csv(
            format_trajectories_table(forecast), header=True, index=False
        )
        param_names = calibration.results.param_names or [
            f"param_{i}" for i in range(forecast.param_samples.shape[1])
        ]
        out_dict["forecast_samples.csv.gz"] = dataframe_to_gzipped_csv(
            format_forecast_samples_table(forecast, param_names), header=True, index=False
        )
        if has_band_levels(forecast.quantiles):
            out_dict["forecast_bands.csv.gz"] = dataframe_to_gzipped_csv(
                quantile_bands(forecast.quantiles), header=True, index=False
            )
        else:
            logger.warning("OUTPUT GENERATOR: forecast quantiles lack the band levels, skipping forecast_bands")

    if telemetry:
        for filename, data in out_dict.items():
            telemetry.capture_file(filename, len(data))
        telemetry.exit_output()

    return out_dict


def write_outputs(outputs: dict[str, bytes], directory: str | Path) -> list[Path]:
    """
    Write generated outputs to ``directory``, creating it if needed.

    Returns
    -------
    list[Path]
        Paths of the written files.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for filename, data in outputs.items():
        path = directory / filename
        path.write_bytes(data)
        written.append(path)
    logger.info("OUTPUT GENERATOR: wrote %d files to %s", len(written), directory)
    return written
