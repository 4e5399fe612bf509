"""Execution telemetry tracking and reporting."""

from .core import ExecutionTelemetry

__all__ = [
    "ExecutionTelemetry",
]
