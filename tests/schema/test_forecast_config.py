"""Tests for the forecast configuration schema."""

import pytest
from pydantic import ValidationError

from epiforecastsuite.data.fetch import UTAH_COVID19_URL
from epiforecastsuite.schema.forecast import (
    CalibrationSpec,
    DataSpec,
    ForecastConfig,
    ForecastSpec,
    InitialParameters,
    ModelSpec,
    validate_forecast_config,
)


@pytest.fixture
def minimal_config():
    return {"data": {"source_url": UTAH_COVID19_URL}}


class TestDefaults:
    """Default values of each section."""

    def test_minimal_config(self, minimal_config):
        config = validate_forecast_config(minimal_config)
        assert isinstance(config, ForecastConfig)
        assert config.model.name == "COVID-19"
        assert config.model.population == 10000
        assert config.model.seed is None
        assert config.data.target_file == "Trends_Epidemic+"
        assert config.data.date_column == "Date"
        assert config.data.value_column == "Daily.Cases"
        assert config.data.n_days == 90
        assert config.calibration.n_samples == 6000
        assert config.calibration.burnin == 2000
        assert config.calibration.epsilon == 0.25
        assert config.calibration.proposal_scale == 0.025
        assert config.calibration.credible_level == 0.95
        assert config.forecast.n_days == 14
        assert config.forecast.sample_size == 200
        assert config.forecast.quantiles == [0.025, 0.25, 0.5, 0.75, 0.975]
        assert config.output.directory is None

    def test_default_initial_parameters(self):
        params = InitialParameters().to_model_parameters()
        assert params.to_array().tolist() == pytest.approx([1 / 7, 0.05, 0.04, 0.06, 0.07, 10.0, 2.0])

    def test_utah_data_section(self):
        data = DataSpec.utah(n_days=60)
        assert data.source_url == UTAH_COVID19_URL
        assert data.n_days == 60


class TestDataSpec:
    """Data source validation."""

    def test_path_source(self):
        assert DataSpec(path="cases.csv").path == "cases.csv"

    def test_no_source_raises(self):
        with pytest.raises(ValidationError, match="Exactly one"):
            DataSpec()

    def test_two_sources_raise(self):
        with pytest.raises(ValidationError, match="Exactly one"):
            DataSpec(source_url=UTAH_COVID19_URL, path="cases.csv")

    def test_window_too_short(self):
        with pytest.raises(ValidationError):
            DataSpec(path="cases.csv", n_days=1)


class TestCalibrationSpec:
    """Calibration section validation."""

    @pytest.mark.parametrize("burnin", [100, 150])
    def test_burnin_must_leave_iterations(self, burnin):
        with pytest.raises(ValidationError, match="burnin"):
            CalibrationSpec(n_samples=100, burnin=burnin)

    @pytest.mark.parametrize("field", ["epsilon", "proposal_scale"])
    def test_positive_fields(self, field):
        with pytest.raises(ValidationError):
            CalibrationSpec(**{field: 0.0})

    def test_initial_parameters_are_bounded(self):
        with pytest.raises(ValidationError, match="strictly between 0 and 1"):
            CalibrationSpec(initial_parameters={"recovery_rate": 1.5})
        with pytest.raises(ValidationError, match="non-negative"):
            CalibrationSpec(initial_parameters={"contact_rate_weekend": -2})


class TestForecastSpec:
    """Forecast section validation."""

    @pytest.mark.parametrize(
        "quantiles,match",
        [
            ([], "At least one"),
            ([0.0, 0.5], r"\(0, 1\)"),
            ([0.5, 1.2], r"\(0, 1\)"),
            ([0.5, 0.25], "strictly increasing"),
            ([0.5, 0.5], "strictly increasing"),
        ],
    )
    def test_invalid_quantiles(self, quantiles, match):
        with pytest.raises(ValidationError, match=match):
            ForecastSpec(quantiles=quantiles)

    def test_non_positive_horizon(self):
        with pytest.raises(ValidationError):
            ForecastSpec(n_days=0)


class TestValidateForecastConfig:
    """Error wrapping of validate_forecast_config."""

    def test_errors_are_wrapped(self):
        with pytest.raises(ValueError, match="Configuration validation error"):
            validate_forecast_config({"data": {}})

    def test_missing_data_section(self):
        with pytest.raises(ValueError, match="Configuration validation error"):
            validate_forecast_config({})

    def test_population_must_be_positive(self, minimal_config):
        with pytest.raises(ValueError, match="Configuration validation error"):
            validate_forecast_config({**minimal_config, "model": {"population": 0}})

    def test_large_sample_size_warns(self, minimal_config, caplog):
        config = validate_forecast_config(
            {
                **minimal_config,
                "calibration": {"n_samples": 50, "burnin": 20},
                "forecast": {"sample_size": 100},
            }
        )
        assert config.forecast.sample_size == 100
        assert "draws will repeat" in caplog.text

    def test_model_section(self):
        assert ModelSpec(population=500, seed=3).seed == 3
