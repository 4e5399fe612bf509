"""Utility functions for fetching observed case counts."""

import io
import logging
import re
import zipfile
from pathlib import Path

import pandas as pd
import requests

from .observed import ObservedSeries

logger = logging.getLogger(__name__)

UTAH_COVID19_URL = "https://coronavirus-dashboard.utah.gov/Utah_COVID19_data.zip"
UTAH_TRENDS_FILE = "Trends_Epidemic+"
REQUEST_TIMEOUT = 60


def read_csv_from_zip(content: bytes, target_file: str) -> pd.DataFrame:
    """
    Read the CSV file whose name matches ``target_file`` from a zip archive.

    Parameters
    ----------
    content : bytes
        Raw zip archive.
    target_file : str
        Case-insensitive regular expression matched against the archive member names.

    Returns
    -------
    pd.DataFrame
        Contents of the first matching member.

    Raises
    ------
    ValueError
        If no member name matches.
    """
    pattern = re.compile(target_file, flags=re.IGNORECASE)
    with zipfile.ZipFile(io.BytesIO(content)) as archive:
        matches = [name for name in archive.namelist() if pattern.search(name)]
        if not matches:
            msg = f"No file matching {target_file!r} in archive; members: {archive.namelist()}"
            raise ValueError(msg)
        if len(matches) > 1:
            logger.warning("Several files match %r (%s); using %s", target_file, matches, matches[0])
        with archive.open(matches[0]) as handle:
            return pd.read_csv(handle)


def fetch_case_counts(
    n_days: int,
    data_url: str = UTAH_COVID19_URL,
    target_file: str = UTAH_TRENDS_FILE,
    date_column: str = "Date",
    value_column: str = "Daily.Cases",
) -> ObservedSeries:
    """
    Download a zipped case-count dataset and return its last ``n_days`` days.

    Parameters
    ----------
    n_days : int
        Length of the window ending at the most recent date in the data.
    data_url : str
        URL of the zip archive. Defaults to the Utah DHHS COVID-19 dashboard export.
    target_file : str
        Regular expression selecting the CSV member of the archive.
    date_column, value_column : str
        Columns holding dates and daily case counts.

    Returns
    -------
    ObservedSeries
        The observed window.

    Raises
    ------
    requests.HTTPError
        If the download fails.
    ValueError
        If the archive or its contents are malformed.

    Examples
    --------
    >>> observed = fetch_case_counts(n_days=90)
    >>> len(observed)
    90
    """
    logger.info("Downloading case counts from %s", data_url)
    response = requests.get(data_url, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()

    data = read_csv_from_zip(response.content, target_file)
    series = ObservedSeries.from_dataframe(data, date_column=date_column, value_column=value_column)
    window = series.last_days(n_days)
    logger.info("Fetched %d days of case counts (%s to %s)", len(window), window.first_date, window.last_date)
    return window


def load_case_counts(
    path: str | Path,
    n_days: int | None = None,
    date_column: str = "Date",
    value_column: str = "Daily.Cases",
) -> ObservedSeries:
    """Load case counts from a local CSV (or zipped CSV) file, optionally keeping the last ``n_days`` days."""
    data = pd.read_csv(path)
    series = ObservedSeries.from_dataframe(data, date_column=date_column, value_column=value_column)
    return series.last_days(n_days) if n_days else series
