"""JSON formatter for telemetry output."""

import json
from typing import Any

from .base import TelemetryFormatter


class JsonFormatter(TelemetryFormatter):
    """Structured JSON output formatter."""

    def format(self, telemetry_data: dict[str, Any]) -> str:
        """Generate structured JSON summary.

        Values JSON cannot encode natively (dates, numpy scalars) are rendered with ``str``.
        """
        return json.dumps(telemetry_data, indent=2, default=str)
