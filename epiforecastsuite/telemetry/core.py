"""Execution telemetry tracking and reporting for epiforecastsuite workflows.

This module tracks execution metrics throughout the calibration, forecast and
output stages of a workflow. It generates both human-readable text summaries
and structured JSON data for automated analysis.
"""

import json
import os
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .formatters import JsonFormatter, TextFormatter

if TYPE_CHECKING:
    from ..schema.dispatcher import CalibrationOutput, ForecastOutput
    from ..schema.forecast import ForecastConfig


def _get_package_version() -> str:
    """Get epiforecastsuite version."""
    from .. import __version__

    return __version__


class ExecutionTelemetry:
    """Track execution metrics and telemetry for dispatcher workflows.

    Supports optional context-based access via ContextVar for cleaner function
    signatures without explicit parameter threading.

    Attributes
    ----------
    metadata : dict
        Process and environment metadata
    configuration : dict
        Workflow configuration details
    calibration : dict
        Calibration stage metrics
    forecast : dict
        Forecast stage metrics
    output : dict
        Output stage metrics
    status : str
        Workflow status ("running", "completed", "failed")
    warnings : list
        List of warning messages
    errors : list
        List of error messages recorded by failed stages
    """

    _current: ContextVar["ExecutionTelemetry | None"] = ContextVar("execution_telemetry", default=None)

    @classmethod
    def get_current(cls) -> "ExecutionTelemetry | None":
        """Get the current ExecutionTelemetry from context, if any."""
        return cls._current.get()

    @classmethod
    def set_current(cls, telemetry: "ExecutionTelemetry | None") -> None:
        """Set the current ExecutionTelemetry in context (None to clear)."""
        cls._current.set(telemetry)

    def __enter__(self) -> "ExecutionTelemetry":
        """Enter context manager - set this telemetry as current."""
        self.set_current(self)
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        """Exit context manager - clear current telemetry, marking it failed on exceptions."""
        if exc_val is not None:
            self.status = "failed"
        self.set_current(None)

    def __init__(self) -> None:
        self.metadata: dict[str, Any] = {
            "process_id": os.getpid(),
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            "epiforecastsuite_version": _get_package_version(),
        }
        self.configuration: dict[str, Any] = {}
        self.calibration: dict[str, Any] = {}
        self.forecast: dict[str, Any] = {}
        self.output: dict[str, Any] = {}
        self.status = "running"
        self.warnings: list[str] = []
        self.errors: list[dict[str, str]] = []

    @staticmethod
    def _record_stage_start(stage_dict: dict[str, Any]) -> None:
        stage_dict["start_time"] = datetime.now().isoformat()

    @staticmethod
    def _record_stage_end(stage_dict: dict[str, Any]) -> None:
        """Record end time and calculate duration for a stage."""
        end_time = datetime.now()
        stage_dict["end_time"] = end_time.isoformat()
        start_time = datetime.fromisoformat(stage_dict["start_time"])
        stage_dict["duration_seconds"] = (end_time - start_time).total_seconds()

    def capture_configuration(self, config: "ForecastConfig") -> None:
        """Record the workflow configuration.

        Parameters
        ----------
        config : ForecastConfig
            Validated workflow configuration
        """
        self.configuration.update(
            {
                "model": config.model.name,
                "population": config.model.population,
                "random_seed": config.model.seed,
                "data_source": config.data.source_url or config.data.path,
                "n_days": config.data.n_days,
                "n_samples": config.calibration.n_samples,
                "burnin": config.calibration.burnin,
                "epsilon": config.calibration.epsilon,
                "forecast_days": config.forecast.n_days,
                "sample_size": config.forecast.sample_size,
            }
        )

    def enter_calibration(self) -> None:
        """Enter the calibration stage."""
        self._record_stage_start(self.calibration)

    def capture_calibration(self, output: "CalibrationOutput") -> None:
        """Capture metrics from a finished calibration.

        Parameters
        ----------
        output : CalibrationOutput
            Calibration output object from runner
        """
        results = output.results
        self._record_stage_end(self.calibration)
        self.calibration.update(
            {
                "window_start": output.observed.first_date.isoformat(),
                "window_end": output.observed.last_date.isoformat(),
                "n_iterations": int(results.n_iterations),
                "burnin": output.burnin,
                "acceptance_rate": float(results.acceptance_rate),
            }
        )
        if results.acceptance_rate == 0:
            self.record_warning("No proposal was accepted during calibration")

    def enter_forecast(self) -> None:
        """Enter the forecast stage."""
        self._record_stage_start(self.forecast)

    def capture_forecast(self, output: "ForecastOutput") -> None:
        """Capture metrics from a finished forecast.

        Parameters
        ----------
        output : ForecastOutput
            Forecast output object from runner
        """
        self._record_stage_end(self.forecast)
        self.forecast.update(
            {
                "n_trajectories": int(output.ensemble.shape[0]),
                "horizon_days": len(output.dates),
                "start_date": output.dates[0].isoformat(),
                "end_date": output.dates[-1].isoformat(),
            }
        )

    def capture_error(self, stage: str, error: str) -> None:
        """Record a stage failure and mark the workflow as failed."""
        self.errors.append({"stage": stage, "error": error})
        self.status = "failed"

    def enter_output(self) -> None:
        """Enter the output stage."""
        self._record_stage_start(self.output)
        self.output["files"] = []

    def capture_file(self, filename: str, size_bytes: int) -> None:
        """Capture an output file.

        Parameters
        ----------
        filename : str
            Name of the output file
        size_bytes : int
            Size of the file in bytes
        """
        self.output["files"].append({"name": filename, "size_bytes": size_bytes})

    def exit_output(self) -> None:
        """Exit the output stage and finalize the telemetry."""
        self._record_stage_end(self.output)
        if self.output.get("files"):
            self.output["total_size_bytes"] = sum(f["size_bytes"] for f in self.output["files"])
        self.complete()

    def complete(self) -> None:
        """Mark the workflow as completed unless a stage failed."""
        if self.status != "failed":
            self.status = "completed"
        self._calculate_total_duration()

    def _calculate_total_duration(self) -> None:
        """Calculate total workflow duration from earliest start to latest end."""
        stages = (self.calibration, self.forecast, self.output)
        start_times = [datetime.fromisoformat(s["start_time"]) for s in stages if "start_time" in s]
        end_times = [datetime.fromisoformat(s["end_time"]) for s in stages if "end_time" in s]
        if start_times and end_times:
            self.metadata["total_duration_seconds"] = (max(end_times) - min(start_times)).total_seconds()

    def record_warning(self, message: str) -> None:
        """Add a warning message to the summary."""
        self.warnings.append(message)

    def to_dict(self) -> dict[str, Any]:
        """Export telemetry as a dictionary.

        Returns
        -------
        dict
            Complete telemetry data
        """
        return {
            "metadata": self.metadata,
            "configuration": self.configuration,
            "calibration": self.calibration,
            "forecast": self.forecast,
            "output": self.output,
            "status": self.status,
            "warnings": self.warnings,
            "errors": self.errors,
        }

    def to_text(self, path: str | Path | None = None) -> str | None:
        """Generate human-readable text summary.

        Parameters
        ----------
        path : str | Path | None, optional
            If provided, write summary to this file path and return None.
            If None (default), return the summary as a string.
        """
        formatter = TextFormatter()
        data = self.to_dict()

        if path is not None:
            formatter.write(data, path)
            return None
        return formatter.format(data)

    def to_json(self, path: str | Path | None = None) -> str | None:
        """Generate structured JSON summary.

        Parameters
        ----------
        path : str | Path | None, optional
            If provided, write summary to this file path and return None.
            If None (default), return the summary as a string.
        """
        formatter = JsonFormatter()
        data = self.to_dict()

        if path is not None:
            formatter.write(data, path)
            return None
        return formatter.format(data)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return (
            f"ExecutionTelemetry(status={self.status!r}, "
            f"stages={[name for name in ('calibration', 'forecast', 'output') if getattr(self, name)]})"
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionTelemetry":
        """Reconstruct an ExecutionTelemetry from ``to_dict()`` output."""
        telemetry = cls()
        telemetry.metadata = data.get("metadata", {})
        telemetry.configuration = data.get("configuration", {})
        telemetry.calibration = data.get("calibration", {})
        telemetry.forecast = data.get("forecast", {})
        telemetry.output = data.get("output", {})
        telemetry.status = data.get("status", "unknown")
        telemetry.warnings = data.get("warnings", [])
        telemetry.errors = data.get("errors", [])
        return telemetry

    @classmethod
    def load_from_json(cls, json_path: str | Path) -> "ExecutionTelemetry":
        """Load an ExecutionTelemetry from a JSON file.

        Raises
        ------
        FileNotFoundError
            If the JSON file does not exist
        """
        json_path = Path(json_path)
        if not json_path.exists():
            msg = f"Telemetry file not found: {json_path}"
            raise FileNotFoundError(msg)
        return cls.from_dict(json.loads(json_path.read_text()))
