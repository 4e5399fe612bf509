"""Schema definitions for the workflow dispatcher."""

from datetime import date

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..data.observed import ObservedSeries
from ..lfmcmc import LFMCMCResults


class CalibrationOutput(BaseModel):
    """Results of a call to ``calibrate()`` with tracking information."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    seed: int | None = Field(None, description="Random seed.")
    population: int = Field(description="Simulated population size.")
    burnin: int = Field(description="Number of leading iterations discarded from the posterior.")
    observed: ObservedSeries = Field(description="Observed series the chain was calibrated against.")
    results: LFMCMCResults = Field(description="Results of a call to calibrate()")

    @model_validator(mode="after")
    def check_burnin(self: "CalibrationOutput") -> "CalibrationOutput":
        """Burn-in must leave at least one iteration of the chain."""
        if not 0 <= self.burnin < self.results.n_iterations:
            msg = f"burnin must be in [0, {self.results.n_iterations}), got {self.burnin}"
            raise ValueError(msg)
        return self


class ForecastOutput(BaseModel):
    """Posterior predictive forecast ensemble with its per-day quantiles."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    seed: int | None = Field(None, description="Random seed.")
    dates: list[date] = Field(description="Calendar date of each forecast day (day 0 is the last observed date).")
    param_samples: np.ndarray = Field(description="(n_members, n_params) posterior draws.")
    ensemble: np.ndarray = Field(description="(n_members, n_days) daily new infections.")
    quantiles: pd.DataFrame = Field(description="Long table of per-day quantiles (day, date, quantile, value).")

    @model_validator(mode="after")
    def check_shapes(self: "ForecastOutput") -> "ForecastOutput":
        """Ensemble rows match the posterior draws and columns match the dates."""
        if self.ensemble.shape != (len(self.param_samples), len(self.dates)):
            msg = (
                f"Ensemble of shape {self.ensemble.shape} does not match {len(self.param_samples)} "
                f"posterior draws over {len(self.dates)} days"
            )
            raise ValueError(msg)
        return self
