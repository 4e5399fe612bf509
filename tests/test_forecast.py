"""Tests for posterior predictive forecasting."""

import datetime as dt

import numpy as np
import pytest

from epiforecastsuite.forecast import (
    DEFAULT_QUANTILES,
    forecast,
    forecast_dates,
    make_forecast_factory,
    quantile_bands,
    sample_posterior,
    summarize,
)
from epiforecastsuite.parameters import ModelParameters
from epiforecastsuite.simulator import SIRConnSimulator

DEFAULTS = np.array([1 / 7, 0.05, 0.04, 0.06, 0.07, 10.0, 2.0])


@pytest.fixture
def chain():
    """100 iterations whose recovery rate encodes the iteration number."""
    rows = np.tile(DEFAULTS, (100, 1))
    rows[:, 0] = np.linspace(0.01, 0.99, 100)
    return rows


class TestSamplePosterior:
    """Test sample_posterior."""

    def test_draws_only_after_burnin(self, chain):
        samples = sample_posterior(chain, 100, burnin=60, sample_size=30, rng=np.random.default_rng(0))
        assert samples.shape == (30, 7)
        assert np.all(samples[:, 0] >= chain[60, 0])

    def test_without_replacement_when_possible(self, chain):
        samples = sample_posterior(chain, 100, burnin=60, sample_size=40, rng=np.random.default_rng(0))
        assert len(np.unique(samples[:, 0])) == 40

    def test_with_replacement_when_needed(self, chain, caplog):
        samples = sample_posterior(chain, 100, burnin=90, sample_size=25, rng=np.random.default_rng(0))
        assert samples.shape == (25, 7)
        assert len(np.unique(samples[:, 0])) <= 10
        assert "sampling with replacement" in caplog.text

    def test_is_reproducible(self, chain):
        first = sample_posterior(chain, 100, burnin=10, sample_size=20, rng=np.random.default_rng(5))
        second = sample_posterior(chain, 100, burnin=10, sample_size=20, rng=np.random.default_rng(5))
        np.testing.assert_array_equal(first, second)

    @pytest.mark.parametrize(
        "n_total,burnin,sample_size,match",
        [
            (100, 100, 10, "burnin"),
            (100, -1, 10, "burnin"),
            (101, 10, 10, "exceeds the chain length"),
            (100, 10, 0, "sample_size"),
        ],
    )
    def test_invalid_arguments_raise(self, chain, n_total, burnin, sample_size, match):
        with pytest.raises(ValueError, match=match):
            sample_posterior(chain, n_total, burnin=burnin, sample_size=sample_size, rng=np.random.default_rng(0))


class TestForecast:
    """Test the forecast factory and the ensemble runner."""

    def test_factory_starts_at_last_observation(self):
        factory = make_forecast_factory(
            last_observed_count=25, last_date=dt.date(2023, 11, 29), forecast_days=14, population=10000
        )
        sim = factory(ModelParameters.from_array(DEFAULTS), 3)
        assert isinstance(sim, SIRConnSimulator)
        assert sim.initial_infected == 25
        assert sim.seed == 3
        # 2023-11-29 is a Wednesday in fall; winter starts on forecast day 2
        assert sim.contact_rate == 10.0
        assert sim.transmission_rate == 0.06
        winter = [c for c in sim.schedule if c.field == "transmission_rate" and c.value == 0.07]
        assert [c.day for c in winter] == [2]

    def test_forecast_dates_start_on_last_observed_date(self):
        dates = forecast_dates(dt.date(2023, 12, 30), 4)
        assert dates == [dt.date(2023, 12, 30), dt.date(2023, 12, 31), dt.date(2024, 1, 1), dt.date(2024, 1, 2)]

    def test_ensemble_shape_and_reproducibility(self):
        factory = make_forecast_factory(10, dt.date(2023, 6, 1), 14, 10000)
        samples = np.tile(DEFAULTS, (8, 1))
        first = forecast(samples, factory, 14, np.random.default_rng(1))
        second = forecast(samples, factory, 14, np.random.default_rng(1))
        assert first.shape == (8, 14)
        assert np.all(first[:, 0] == 10)
        assert np.all(first >= 0)
        np.testing.assert_array_equal(first, second)

    def test_members_use_independent_streams(self):
        factory = make_forecast_factory(200, dt.date(2023, 6, 1), 30, 10000)
        samples = np.tile(DEFAULTS, (5, 1))
        ensemble = forecast(samples, factory, 30, np.random.default_rng(2))
        assert len({tuple(row) for row in ensemble}) > 1

    def test_invalid_horizon_raises(self):
        factory = make_forecast_factory(10, dt.date(2023, 6, 1), 14, 10000)
        with pytest.raises(ValueError, match="forecast_days"):
            forecast(np.tile(DEFAULTS, (2, 1)), factory, 0, np.random.default_rng(0))


class TestSummaries:
    """Test quantile summaries and bands."""

    @pytest.fixture
    def ensemble(self):
        return np.random.default_rng(4).poisson(lam=np.linspace(5, 50, 14), size=(200, 14)).astype(float)

    def test_quantiles_are_monotone_per_day(self, ensemble):
        table = summarize(ensemble)
        assert len(table) == 14 * len(DEFAULT_QUANTILES)
        for _, day in table.groupby("day"):
            assert day["quantile"].is_monotonic_increasing
            assert day["value"].is_monotonic_increasing

    def test_median_matches_numpy(self, ensemble):
        table = summarize(ensemble, quantiles=[0.5])
        np.testing.assert_allclose(table["value"], np.median(ensemble, axis=0))

    def test_dates_are_added(self, ensemble):
        table = summarize(ensemble, start_date=dt.date(2024, 2, 27))
        assert list(table.columns) == ["day", "date", "quantile", "value"]
        assert table.loc[table["day"] == 3, "date"].iloc[0] == dt.date(2024, 3, 1)

    @pytest.mark.parametrize("quantiles", [[], [0.0, 0.5], [0.5, 1.0]])
    def test_invalid_quantiles_raise(self, ensemble, quantiles):
        with pytest.raises(ValueError, match="Quantiles"):
            summarize(ensemble, quantiles=quantiles)

    def test_bands(self, ensemble):
        bands = quantile_bands(summarize(ensemble, start_date=dt.date(2024, 1, 1)))
        assert list(bands.columns) == ["day", "date", "lb_95", "lb_50", "median", "ub_50", "ub_95"]
        assert len(bands) == 14
        assert np.all(bands["lb_95"] <= bands["lb_50"])
        assert np.all(bands["lb_50"] <= bands["median"])
        assert np.all(bands["median"] <= bands["ub_50"])
        assert np.all(bands["ub_50"] <= bands["ub_95"])

    def test_bands_need_default_levels(self, ensemble):
        with pytest.raises(ValueError, match="lacks levels"):
            quantile_bands(summarize(ensemble, quantiles=[0.1, 0.5, 0.9]))
