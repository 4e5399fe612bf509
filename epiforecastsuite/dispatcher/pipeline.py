"""End-to-end workflow: fetch data, calibrate, forecast and write outputs."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..data.fetch import fetch_case_counts, load_case_counts
from ..data.observed import ObservedSeries
from ..schema.dispatcher import CalibrationOutput, ForecastOutput
from ..schema.forecast import DataSpec, ForecastConfig
from ..telemetry import ExecutionTelemetry
from .output import generate_outputs, write_outputs
from .runner import run_calibration, run_forecast

logger = logging.getLogger(__name__)


class PipelineResult(BaseModel):
    """Everything produced by ``run_forecast_pipeline``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    calibration: CalibrationOutput = Field(description="Calibration stage output.")
    forecast: ForecastOutput = Field(description="Forecast stage output.")
    outputs: dict[str, bytes] = Field(description="Filenames mapped to gzip-compressed CSV bytes.")
    telemetry: ExecutionTelemetry = Field(description="Telemetry of the workflow.")
    written: list[Path] = Field(default_factory=list, description="Files written to the output directory.")


def load_observed(data: DataSpec) -> ObservedSeries:
    """Fetch or load the observed series described by the data section."""
    if data.source_url is not None:
        return fetch_case_counts(
            n_days=data.n_days,
            data_url=data.source_url,
            target_file=data.target_file,
            date_column=data.date_column,
            value_column=data.value_column,
        )
    return load_case_counts(
        data.path, n_days=data.n_days, date_column=data.date_column, value_column=data.value_column
    )


def run_forecast_pipeline(config: ForecastConfig, observed: ObservedSeries | None = None) -> PipelineResult:
    """
    Run calibration and forecasting for a validated configuration.

    Parameters
    ----------
    config : ForecastConfig
        Validated workflow configuration.
    observed : ObservedSeries | None
        Observed series to use instead of the configured data source.

    Returns
    -------
    PipelineResult
        Stage outputs, generated files and telemetry.
    """
    with ExecutionTelemetry() as telemetry:
        telemetry.capture_configuration(config)

        if observed is None:
            logger.info("PIPELINE: loading observed data.")
            observed = load_observed(config.data)
        observed.require_length(config.data.n_days)

        calibration = run_calibration(config, observed)
        logger.info(
            "PIPELINE: posterior summary\n%s",
            calibration.results.format_summary(calibration.burnin, config.calibration.credible_level),
        )
        forecast = run_forecast(config, calibration)
        outputs = generate_outputs(
            calibration=calibration, forecast=forecast, credible_level=config.calibration.credible_level
        )

        written = []
        if config.output.directory:
            directory = Path(config.output.directory)
            written = write_outputs(outputs, directory)
            if config.output.plots:
                written.extend(_save_plots(calibration, forecast, directory))
            if config.output.telemetry:
                telemetry.to_text(directory / "telemetry.txt")
                telemetry.to_json(directory / "telemetry.json")
                written.extend([directory / "telemetry.txt", directory / "telemetry.json"])

    logger.info("PIPELINE: completed with status %s.", telemetry.status)
    return PipelineResult(
        calibration=calibration, forecast=forecast, outputs=outputs, telemetry=telemetry, written=written
    )


def _save_plots(calibration: CalibrationOutput, forecast: ForecastOutput, directory: Path) -> list[Path]:
    from ..plotting import plot_forecast, plot_observed, plot_posterior, save_figures

    figures = {
        "observed": plot_observed(calibration.observed),
        "posterior": plot_posterior(calibration.results, calibration.observed.dates, burnin=calibration.burnin),
        "forecast": plot_forecast(calibration.observed, forecast.quantiles),
    }
    return save_figures(figures, directory)
