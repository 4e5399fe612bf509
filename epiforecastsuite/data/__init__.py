"""Observed data ingestion."""

from .fetch import fetch_case_counts, load_case_counts, read_csv_from_zip
from .observed import ObservedSeries

__all__ = [
    "ObservedSeries",
    "fetch_case_counts",
    "load_case_counts",
    "read_csv_from_zip",
]
