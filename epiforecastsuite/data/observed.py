"""Observed daily case-count series."""

import datetime as dt
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ObservedSeries:
    """
    Date-ascending daily case counts without duplicate dates.

    Attributes
    ----------
    dates : tuple[date, ...]
        Observation dates, strictly increasing.
    cases : np.ndarray
        Daily case counts aligned with ``dates`` (read-only).
    """

    dates: tuple[dt.date, ...]
    cases: np.ndarray

    def __post_init__(self) -> None:
        dates = tuple(pd.Timestamp(d).date() for d in self.dates)
        cases = np.array(self.cases, dtype=float)

        if cases.ndim != 1 or len(dates) != cases.size:
            msg = f"Got {len(dates)} dates for case counts of shape {cases.shape}"
            raise ValueError(msg)
        if cases.size == 0:
            msg = "Observed series is empty"
            raise ValueError(msg)
        if np.isnan(cases).any():
            msg = "Observed case counts contain missing values"
            raise ValueError(msg)
        if (cases < 0).any():
            msg = "Observed case counts must be non-negative"
            raise ValueError(msg)
        if any(later <= earlier for earlier, later in zip(dates, dates[1:])):
            duplicated = sorted(d for d, count in Counter(dates).items() if count > 1)
            msg = (
                f"Observed dates must be strictly increasing (duplicates: {duplicated})"
                if duplicated
                else "Observed dates must be strictly increasing"
            )
            raise ValueError(msg)

        cases.flags.writeable = False
        object.__setattr__(self, "dates", dates)
        object.__setattr__(self, "cases", cases)

    @classmethod
    def from_dataframe(
        cls, data: pd.DataFrame, date_column: str = "Date", value_column: str = "Daily.Cases"
    ) -> "ObservedSeries":
        """Build a series from a data frame, sorting by date."""
        missing = [c for c in (date_column, value_column) if c not in data.columns]
        if missing:
            msg = f"Observed data lacks columns {missing}; available columns: {list(data.columns)}"
            raise ValueError(msg)
        frame = data[[date_column, value_column]].copy()
        frame[date_column] = pd.to_datetime(frame[date_column])
        frame = frame.sort_values(date_column)
        return cls(dates=tuple(frame[date_column].dt.date), cases=frame[value_column].to_numpy(dtype=float))

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def first_date(self) -> dt.date:
        return self.dates[0]

    @property
    def last_date(self) -> dt.date:
        return self.dates[-1]

    @property
    def last_count(self) -> float:
        return float(self.cases[-1])

    def last_days(self, n_days: int) -> "ObservedSeries":
        """Observations dated within the ``n_days`` days ending at the last date."""
        if n_days < 1:
            msg = f"n_days must be positive, got {n_days}"
            raise ValueError(msg)
        cutoff = self.last_date - dt.timedelta(days=n_days)
        keep = [i for i, d in enumerate(self.dates) if d > cutoff]
        return ObservedSeries(dates=tuple(self.dates[i] for i in keep), cases=self.cases[keep])

    def require_length(self, n_days: int) -> None:
        """Raise ValueError when the series is shorter than ``n_days``."""
        if len(self) < n_days:
            msg = f"Observed series has {len(self)} days, at least {n_days} are required"
            raise ValueError(msg)

    def to_dataframe(self, date_column: str = "date", value_column: str = "cases") -> pd.DataFrame:
        return pd.DataFrame({date_column: pd.to_datetime(list(self.dates)), value_column: self.cases})

    @classmethod
    def from_pairs(cls, pairs: Sequence[tuple[dt.date, float]]) -> "ObservedSeries":
        """Build a series from (date, count) pairs in chronological order."""
        return cls(dates=tuple(d for d, _ in pairs), cases=np.array([c for _, c in pairs], dtype=float))
