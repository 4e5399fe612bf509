"""Utility functions for epiforecastsuite.

- formatting: Formatting utilities for human-readable output
"""

from .formatting import format_duration, format_file_size, format_interval

__all__ = [
    "format_duration",
    "format_file_size",
    "format_interval",
]
