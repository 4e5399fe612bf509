"""Text formatter for telemetry output."""

from datetime import datetime
from typing import Any

from ...utils.formatting import format_duration, format_file_size
from .base import TelemetryFormatter

# Text formatting constants
HEADER_WIDTH = 60
HEADER_SEPARATOR = "=" * HEADER_WIDTH
SECTION_SEPARATOR = "-" * HEADER_WIDTH


class TextFormatter(TelemetryFormatter):
    """Human-readable text summary formatter."""

    def format(self, telemetry_data: dict[str, Any]) -> str:
        """Generate human-readable text summary.

        Parameters
        ----------
        telemetry_data : dict
            Telemetry data from ExecutionTelemetry.to_dict()

        Returns
        -------
        str
            Formatted text summary
        """
        lines = []
        self._add_header(lines, telemetry_data)
        self._add_configuration(lines, telemetry_data)
        self._add_calibration(lines, telemetry_data)
        self._add_forecast(lines, telemetry_data)
        self._add_output(lines, telemetry_data)
        self._add_summary(lines, telemetry_data)
        self._add_warnings(lines, telemetry_data)
        self._add_errors(lines, telemetry_data)
        return "\n".join(lines)

    def _add_header(self, lines: list[str], data: dict[str, Any]) -> None:
        lines.append(HEADER_SEPARATOR)
        lines.append("Telemetry Summary")
        lines.append(HEADER_SEPARATOR)
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Status: {data.get('status', 'unknown')}")
        lines.append("")

    def _add_configuration(self, lines: list[str], data: dict[str, Any]) -> None:
        config = data.get("configuration", {})
        if not config:
            return

        lines.append("CONFIGURATION")
        lines.append(SECTION_SEPARATOR)
        if "model" in config:
            lines.append(f"Model: {config['model']} (population {config.get('population', '?')})")
        if "data_source" in config:
            lines.append(f"Data: {config['data_source']} (last {config.get('n_days', '?')} days)")
        if "n_samples" in config:
            lines.append(
                f"Calibration: {config['n_samples']} iterations, burn-in {config.get('burnin', '?')}, "
                f"epsilon {config.get('epsilon', '?')}"
            )
        if "forecast_days" in config:
            lines.append(f"Forecast: {config['forecast_days']} days, {config.get('sample_size', '?')} draws")
        if config.get("random_seed") is not None:
            lines.append(f"Random seed: {config['random_seed']}")
        lines.append("")

    def _add_calibration(self, lines: list[str], data: dict[str, Any]) -> None:
        calibration = data.get("calibration", {})
        if not calibration:
            return

        lines.append("CALIBRATION STAGE")
        lines.append(SECTION_SEPARATOR)
        if "duration_seconds" in calibration:
            lines.append(f"Duration: {format_duration(calibration['duration_seconds'])}")
        if "window_start" in calibration:
            lines.append(f"Window: {calibration['window_start']} to {calibration['window_end']}")
        if "n_iterations" in calibration:
            lines.append(f"Iterations: {calibration['n_iterations']} (burn-in {calibration['burnin']})")
        if "acceptance_rate" in calibration:
            lines.append(f"Acceptance rate: {calibration['acceptance_rate']:.1%}")
        lines.append("")

    def _add_forecast(self, lines: list[str], data: dict[str, Any]) -> None:
        forecast = data.get("forecast", {})
        if not forecast:
            return

        lines.append("FORECAST STAGE")
        lines.append(SECTION_SEPARATOR)
        if "duration_seconds" in forecast:
            lines.append(f"Duration: {format_duration(forecast['duration_seconds'])}")
        if "n_trajectories" in forecast:
            lines.append(f"Trajectories: {forecast['n_trajectories']}")
        if "start_date" in forecast:
            lines.append(
                f"Horizon: {forecast['horizon_days']} days ({forecast['start_date']} to {forecast['end_date']})"
            )
        lines.append("")

    def _add_output(self, lines: list[str], data: dict[str, Any]) -> None:
        output = data.get("output", {})
        if not output:
            return

        lines.append("OUTPUT STAGE")
        lines.append(SECTION_SEPARATOR)
        if "duration_seconds" in output:
            lines.append(f"Duration: {format_duration(output['duration_seconds'])}")
        if "files" in output:
            lines.append(f"Files generated: {len(output['files'])}")
            for file_info in output["files"]:
                lines.append(f"  - {file_info['name']} ({format_file_size(file_info['size_bytes'])})")
            if "total_size_bytes" in output:
                lines.append(f"Total size: {format_file_size(output['total_size_bytes'])}")
        lines.append("")

    def _add_summary(self, lines: list[str], data: dict[str, Any]) -> None:
        metadata = data.get("metadata", {})

        lines.append("SUMMARY")
        lines.append(SECTION_SEPARATOR)
        if "total_duration_seconds" in metadata:
            lines.append(f"Total duration: {format_duration(metadata['total_duration_seconds'])}")
        if "epiforecastsuite_version" in metadata:
            lines.append(f"Version: {metadata['epiforecastsuite_version']}")
        lines.append("")

    def _add_warnings(self, lines: list[str], data: dict[str, Any]) -> None:
        warnings = data.get("warnings", [])
        if not warnings:
            return

        lines.append(f"WARNINGS ({len(warnings)})")
        lines.append(SECTION_SEPARATOR)
        for warning in warnings:
            lines.append(f"- {warning}")
        lines.append("")

    def _add_errors(self, lines: list[str], data: dict[str, Any]) -> None:
        errors = data.get("errors", [])
        if not errors:
            return

        lines.append(f"ERRORS ({len(errors)})")
        lines.append(SECTION_SEPARATOR)
        for error in errors:
            lines.append(f"- [{error['stage']}] {error['error']}")
        lines.append("")
