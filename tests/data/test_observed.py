"""Tests for the observed case-count series."""

import datetime as dt

import numpy as np
import pandas as pd
import pytest

from epiforecastsuite.data.observed import ObservedSeries


@pytest.fixture
def frame():
    dates = pd.date_range("2023-01-01", periods=120, freq="D")
    return pd.DataFrame({"Date": dates.strftime("%Y-%m-%d"), "Daily.Cases": np.arange(120)})


class TestObservedSeries:
    """Test construction and validation."""

    def test_from_dataframe(self, frame):
        series = ObservedSeries.from_dataframe(frame)
        assert len(series) == 120
        assert series.first_date == dt.date(2023, 1, 1)
        assert series.last_date == dt.date(2023, 4, 30)
        assert series.last_count == 119.0

    def test_rows_are_sorted_by_date(self, frame):
        series = ObservedSeries.from_dataframe(frame.iloc[::-1])
        assert series.first_date == dt.date(2023, 1, 1)
        assert series.cases[0] == 0

    def test_missing_column_raises(self, frame):
        with pytest.raises(ValueError, match="lacks columns"):
            ObservedSeries.from_dataframe(frame, value_column="cases")

    def test_custom_columns(self, frame):
        renamed = frame.rename(columns={"Date": "day", "Daily.Cases": "count"})
        series = ObservedSeries.from_dataframe(renamed, date_column="day", value_column="count")
        assert len(series) == 120

    def test_cases_are_read_only(self, frame):
        series = ObservedSeries.from_dataframe(frame)
        with pytest.raises(ValueError):
            series.cases[0] = 5

    @pytest.mark.parametrize(
        "cases,match",
        [
            ([1.0, np.nan, 3.0], "missing values"),
            ([1.0, -2.0, 3.0], "non-negative"),
        ],
    )
    def test_invalid_counts_raise(self, cases, match):
        dates = [dt.date(2023, 1, 1) + dt.timedelta(days=i) for i in range(3)]
        with pytest.raises(ValueError, match=match):
            ObservedSeries(dates=dates, cases=cases)

    def test_duplicate_dates_raise(self):
        dates = [dt.date(2023, 1, 1), dt.date(2023, 1, 2), dt.date(2023, 1, 2)]
        with pytest.raises(ValueError, match="duplicates"):
            ObservedSeries(dates=dates, cases=[1, 2, 3])

    def test_duplicate_dates_are_listed_once(self):
        dates = [dt.date(2023, 1, 1) + dt.timedelta(days=i // 3) for i in range(3000)]
        with pytest.raises(ValueError) as excinfo:
            ObservedSeries(dates=dates, cases=np.ones(3000))
        message = str(excinfo.value)
        assert message.count("datetime.date(2023, 1, 1)") == 1
        assert "datetime.date(2025, 9, 26)" in message

    def test_empty_series_raises(self):
        with pytest.raises(ValueError, match="empty"):
            ObservedSeries(dates=[], cases=[])

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError, match="2 dates"):
            ObservedSeries(dates=[dt.date(2023, 1, 1), dt.date(2023, 1, 2)], cases=[1, 2, 3])


class TestWindows:
    """Test windowing helpers."""

    def test_last_days(self, frame):
        window = ObservedSeries.from_dataframe(frame).last_days(90)
        assert len(window) == 90
        assert window.last_date == dt.date(2023, 4, 30)
        assert window.first_date == dt.date(2023, 1, 31)
        assert window.cases[0] == 30

    def test_last_days_with_gaps_keeps_calendar_window(self):
        pairs = [(dt.date(2023, 1, 1) + dt.timedelta(days=i), float(i)) for i in range(0, 20, 2)]
        window = ObservedSeries.from_pairs(pairs).last_days(5)
        assert window.dates == (dt.date(2023, 1, 15), dt.date(2023, 1, 17), dt.date(2023, 1, 19))

    def test_last_days_must_be_positive(self, frame):
        with pytest.raises(ValueError, match="positive"):
            ObservedSeries.from_dataframe(frame).last_days(0)

    def test_require_length(self, frame):
        series = ObservedSeries.from_dataframe(frame)
        series.require_length(120)
        with pytest.raises(ValueError, match="at least 121"):
            series.require_length(121)

    def test_to_dataframe(self, frame):
        out = ObservedSeries.from_dataframe(frame).to_dataframe()
        assert list(out.columns) == ["date", "cases"]
        assert out["date"].iloc[0] == pd.Timestamp("2023-01-01")
