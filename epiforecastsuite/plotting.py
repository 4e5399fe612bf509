"""Figures for observed data, posterior distributions and forecasts."""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from matplotlib import pyplot as plt

from .data.observed import ObservedSeries
from .forecast import quantile_bands
from .lfmcmc import LFMCMCResults
from .parameters import PARAMETER_NAMES
from .seasons import Season, locate_season_starts

logger = logging.getLogger(__name__)

# Color-blind-friendly palette
LIGHT_BLUE = "#56B4E9"
ORANGE = "#E69F00"

OBSERVED_TAIL_DAYS = 30


def plot_observed(observed: ObservedSeries, figsize=(10, 4)):
    """Plot the observed daily case counts."""
    fig, ax = plt.subplots(figsize=figsize)
    frame = observed.to_dataframe()
    ax.plot(frame["date"], frame["cases"], color="black", marker="o", markersize=3)
    ax.set_xlabel("Date")
    ax.set_ylabel("Daily Cases")
    ax.set_title(f"Observed daily cases ({observed.first_date} to {observed.last_date})")
    fig.autofmt_xdate()
    plt.tight_layout()
    return fig


def posterior_parameter_indices(dates) -> list[int]:
    """
    Indices of the parameters worth plotting for a calibration window.

    Recovery and contact rates are always included; a seasonal transmission rate
    only when its season occurs in ``dates``.
    """
    starts = locate_season_starts(dates)
    indices = [0, 5, 6]
    indices.extend(1 + i for i, season in enumerate(Season) if starts.is_present(season))
    return indices


def plot_posterior(results: LFMCMCResults, dates, burnin: int = 0, figsize=(8, 12), bins=30):
    """
    Plot the posterior distribution of each relevant parameter.

    Parameters
    ----------
    results : LFMCMCResults
        Calibrated chain.
    dates : sequence of date
        Calibration window, used to skip transmission rates of absent seasons.
    burnin : int
        Number of leading iterations to discard.

    Returns
    -------
    matplotlib.figure.Figure
        One panel per parameter with the initial value marked.
    """
    posterior = results.posterior(burnin)
    names = results.param_names or PARAMETER_NAMES
    indices = posterior_parameter_indices(dates)

    fig, axes = plt.subplots(len(indices), 1, figsize=figsize, squeeze=False)
    axes = axes.flatten()
    for ax, index in zip(axes, indices, strict=True):
        values = posterior[:, index]
        ax.hist(values, bins=bins, alpha=0.7, edgecolor="black", color=ORANGE, density=True)
        ax.axvline(results.initial_params[index], color="black", linestyle="-", alpha=0.8, label="Initial")
        ax.axvline(np.mean(values), color="red", linestyle="--", alpha=0.7, label=f"Mean: {np.mean(values):.3f}")
        ax.set_title(names[index])
        ax.set_ylabel("Density")
        ax.legend(fontsize=8)

    plt.suptitle(f"Posterior Distributions (n={len(posterior):,} samples, burn-in {burnin:,})")
    plt.tight_layout()
    return fig


def plot_forecast(observed: ObservedSeries, quantiles: pd.DataFrame, figsize=(10, 5)):
    """
    Plot the last observed days followed by the forecast median with 50% and 95% bands.

    Parameters
    ----------
    observed : ObservedSeries
        Observed case counts; only the last 30 days are shown.
    quantiles : pd.DataFrame
        Output of ``forecast.summarize`` with a ``date`` column.
    """
    if "date" not in quantiles.columns:
        msg = "Forecast quantiles need a 'date' column to be plotted"
        raise ValueError(msg)
    bands = quantile_bands(quantiles)
    bands["date"] = pd.to_datetime(bands["date"])
    recent = observed.last_days(OBSERVED_TAIL_DAYS).to_dataframe()

    fig, ax = plt.subplots(figsize=figsize)
    ax.fill_between(bands["date"], bands["lb_95"], bands["ub_95"], color=LIGHT_BLUE, alpha=0.4, label="95% interval")
    ax.fill_between(bands["date"], bands["lb_50"], bands["ub_50"], color=LIGHT_BLUE, alpha=0.4, label="50% interval")
    ax.plot(recent["date"], recent["cases"], color="black", marker="o", markersize=3, label="Observed Cases")
    ax.plot(
        bands["date"], bands["median"], color=LIGHT_BLUE, marker="o", markersize=3, label="Forecasted Cases (median)"
    )
    ax.set_xlabel("Date")
    ax.set_ylabel("Daily Cases")
    ax.legend()
    fig.autofmt_xdate()
    plt.tight_layout()
    return fig


def save_figures(figures: dict, directory) -> list:
    """Save figures as PNG files named after their keys and close them."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for name, fig in figures.items():
        path = directory / f"{name}.png"
        fig.savefig(path, dpi=150)
        plt.close(fig)
        paths.append(path)
    logger.info("Saved %d figures to %s", len(paths), directory)
    return paths
