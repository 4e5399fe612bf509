"""Dispatcher module for calibrating, forecasting and generating outputs."""

from .output import (
    dataframe_to_gzipped_csv,
    format_metadata_table,
    format_posterior_table,
    format_trajectories_table,
    generate_outputs,
    write_outputs,
)
from .pipeline import PipelineResult, load_observed, run_forecast_pipeline
from .runner import forecast_rng, run_calibration, run_forecast

__all__ = [
    # Runner functions
    "forecast_rng",
    "run_calibration",
    "run_forecast",
    # Output functions
    "dataframe_to_gzipped_csv",
    "format_metadata_table",
    "format_posterior_table",
    "format_trajectories_table",
    "generate_outputs",
    "write_outputs",
    # Pipeline
    "PipelineResult",
    "load_observed",
    "run_forecast_pipeline",
]
