"""End-to-end calibration and forecast on a synthetic observed series."""

import datetime as dt

import numpy as np
import pytest

from epiforecastsuite.calibration import calibrate
from epiforecastsuite.data import ObservedSeries
from epiforecastsuite.forecast import (
    DEFAULT_QUANTILES,
    forecast,
    make_forecast_factory,
    quantile_bands,
    sample_posterior,
    summarize,
)
from epiforecastsuite.parameters import ModelParameters

N_DAYS = 90
POPULATION = 10000


@pytest.fixture(scope="module")
def observed():
    start = dt.date(2023, 7, 15)
    return ObservedSeries.from_pairs([(start + dt.timedelta(days=i), 10.0) for i in range(N_DAYS)])


@pytest.fixture(scope="module")
def results(observed):
    initial = ModelParameters.from_array([1 / 7, 0.05, 0.04, 0.06, 0.07, 10.0, 2.0])
    return calibrate(
        observed.dates,
        observed.cases,
        initial,
        population=POPULATION,
        n_samples=50,
        epsilon=0.25,
        seed=2024,
        prevalence=10 / POPULATION,
    )


def test_chain_has_one_record_per_iteration(results):
    assert results.n_iterations == 50
    assert results.accepted_params.shape == (50, 7)
    assert np.all(np.isfinite(results.scores))


def test_held_parameters_remain_valid(results):
    for row in results.accepted_params:
        ModelParameters.from_array(row)


def test_forecast_from_posterior(observed, results):
    rng = np.random.default_rng(7)
    samples = sample_posterior(results.accepted_params, results.n_iterations, burnin=20, sample_size=10, rng=rng)
    assert samples.shape == (10, 7)

    factory = make_forecast_factory(observed.last_count, observed.last_date, 14, POPULATION)
    ensemble = forecast(samples, factory, 14, rng)
    assert ensemble.shape == (10, 14)
    assert np.all(ensemble >= 0)
    assert np.all(ensemble[:, 0] == 10)

    table = summarize(ensemble, DEFAULT_QUANTILES, start_date=observed.last_date)
    assert len(table) == 14 * 5
    for _, day in table.groupby("day"):
        assert day["value"].is_monotonic_increasing

    bands = quantile_bands(table)
    assert bands["date"].iloc[0] == observed.last_date
    assert bands["date"].iloc[-1] == observed.last_date + dt.timedelta(days=13)
