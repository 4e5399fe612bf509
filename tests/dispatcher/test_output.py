"""Tests for epiforecastsuite.dispatcher.output module."""

import datetime as dt
import gzip
import io

import numpy as np
import pandas as pd
import pytest

from epiforecastsuite.data.observed import ObservedSeries
from epiforecastsuite.dispatcher.output import (
    dataframe_to_gzipped_csv,
    format_forecast_samples_table,
    format_metadata_table,
    format_posterior_table,
    format_trajectories_table,
    generate_outputs,
    has_band_levels,
    write_outputs,
)
from epiforecastsuite.dispatcher.runner import run_calibration, run_forecast
from epiforecastsuite.parameters import PARAMETER_NAMES
from epiforecastsuite.schema.forecast import validate_forecast_config
from epiforecastsuite.telemetry import ExecutionTelemetry


def read_gzipped_csv(data: bytes) -> pd.DataFrame:
    return pd.read_csv(io.BytesIO(data), compression="gzip")


@pytest.fixture(scope="module")
def config():
    return validate_forecast_config(
        {
            "model": {"population": 10000, "seed": 21},
            "data": {"path": "cases.csv", "n_days": 30},
            "calibration": {"n_samples": 25, "burnin": 5},
            "forecast": {"n_days": 5, "sample_size": 8},
        }
    )


@pytest.fixture(scope="module")
def calibration(config):
    start = dt.date(2023, 2, 11)
    observed = ObservedSeries.from_pairs([(start + dt.timedelta(days=i), 12.0) for i in range(30)])
    return run_calibration(config, observed)


@pytest.fixture(scope="module")
def forecast_output(config, calibration):
    return run_forecast(config, calibration)


class TestDataframeToGzippedCsv:
    """Tests for dataframe_to_gzipped_csv."""

    def test_output_is_gzip(self):
        data = dataframe_to_gzipped_csv(pd.DataFrame({"a": [1, 2]}), index=False)
        assert data[:2] == b"\x1f\x8b"
        assert gzip.decompress(data).decode().splitlines() == ["a", "1", "2"]

    def test_dates_are_iso_formatted(self):
        frame = pd.DataFrame({"date": pd.to_datetime(["2023-03-01"])})
        data = dataframe_to_gzipped_csv(frame, index=False)
        assert "2023-03-01" in gzip.decompress(data).decode()


class TestFormatTables:
    """Tests for the table helpers."""

    def test_posterior_table(self, calibration):
        table = format_posterior_table(calibration, level=0.9)
        assert list(table.columns[:2]) == ["kind", "credible_level"]
        assert (table["kind"] == "parameter").sum() == 7
        assert (table["kind"] == "statistic").sum() == 4
        assert np.all(table["credible_level"] == 0.9)
        assert np.all(table["lower"] <= table["upper"])

    def test_metadata_table(self, calibration):
        table = format_metadata_table(calibration)
        assert len(table) == 1
        row = table.iloc[0]
        assert row["seed"] == 21
        assert row["n_days"] == 30
        assert row["window_start"] == dt.date(2023, 2, 11)
        assert row["winter_start"] == 0
        assert row["spring_start"] == 18
        assert row["summer_start"] == -1
        assert row["fall_start"] == -1

    def test_trajectories_table(self, forecast_output):
        table = format_trajectories_table(forecast_output)
        assert list(table.columns) == ["member", "day", "date", "cases"]
        assert len(table) == 8 * 5
        first_member = table[table["member"] == 0]
        np.testing.assert_array_equal(first_member["cases"], forecast_output.ensemble[0])
        assert pd.Timestamp(first_member["date"].iloc[0]).date() == forecast_output.dates[0]

    def test_forecast_samples_table(self, forecast_output):
        table = format_forecast_samples_table(forecast_output, PARAMETER_NAMES)
        assert list(table.columns) == ["member", *PARAMETER_NAMES]
        assert len(table) == 8

    def test_has_band_levels(self, forecast_output):
        assert has_band_levels(forecast_output.quantiles)
        assert not has_band_levels(forecast_output.quantiles[forecast_output.quantiles["quantile"] != 0.5])


class TestGenerateOutputs:
    """Tests for generate_outputs."""

    def test_calibration_only(self, calibration):
        outputs = generate_outputs(calibration=calibration)
        assert set(outputs) == {"observed.csv.gz", "chain.csv.gz", "posteriors.csv.gz", "model_metadata.csv.gz"}
        chain = read_gzipped_csv(outputs["chain.csv.gz"])
        assert len(chain) == 25
        observed = read_gzipped_csv(outputs["observed.csv.gz"])
        assert list(observed.columns) == ["date", "cases"]
        assert len(observed) == 30

    def test_with_forecast(self, calibration, forecast_output):
        outputs = generate_outputs(calibration=calibration, forecast=forecast_output)
        assert {
            "forecast_quantiles.csv.gz",
            "forecast_trajectories.csv.gz",
            "forecast_samples.csv.gz",
            "forecast_bands.csv.gz",
        } <= set(outputs)
        bands = read_gzipped_csv(outputs["forecast_bands.csv.gz"])
        assert list(bands.columns) == ["day", "date", "lb_95", "lb_50", "median", "ub_50", "ub_95"]
        assert len(bands) == 5

    def test_bands_skipped_without_levels(self, calibration, forecast_output, caplog):
        partial = forecast_output.model_copy(
            update={"quantiles": forecast_output.quantiles[forecast_output.quantiles["quantile"] == 0.5]}
        )
        outputs = generate_outputs(calibration=calibration, forecast=partial)
        assert "forecast_bands.csv.gz" not in outputs
        assert "forecast_quantiles.csv.gz" in outputs
        assert "skipping forecast_bands" in caplog.text

    def test_telemetry_captures_files(self, calibration, forecast_output):
        with ExecutionTelemetry() as telemetry:
            outputs = generate_outputs(calibration=calibration, forecast=forecast_output)
        files = {f["name"]: f["size_bytes"] for f in telemetry.output["files"]}
        assert files == {name: len(data) for name, data in outputs.items()}
        assert telemetry.output["total_size_bytes"] == sum(files.values())
        assert telemetry.status == "completed"


class TestWriteOutputs:
    """Tests for write_outputs."""

    def test_writes_files(self, tmp_path, calibration):
        outputs = generate_outputs(calibration=calibration)
        directory = tmp_path / "nested" / "out"
        written = write_outputs(outputs, directory)
        assert sorted(p.name for p in written) == sorted(outputs)
        for path in written:
            assert path.read_bytes() == outputs[path.name]
