import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from ..data.fetch import UTAH_COVID19_URL, UTAH_TRENDS_FILE
from ..forecast import DEFAULT_QUANTILES
from ..parameters import ModelParameters
from .common import Meta

logger = logging.getLogger(__name__)

MIN_WINDOW_DAYS = 2


# ----------------------------------------
# Schema models
# ----------------------------------------


class ModelSpec(BaseModel):
    """Model section: the simulated population."""

    name: str = Field("COVID-19", description="Name of the simulated disease.")
    population: int = Field(10000, gt=0, description="Number of agents in the simulated population.")
    seed: int | None = Field(None, ge=0, description="Random seed for calibration and forecasting.")


class DataSpec(BaseModel):
    """Observed data section."""

    source_url: str | None = Field(None, description="URL of a zip archive containing the case-count CSV.")
    path: str | None = Field(None, description="Path to a local case-count CSV file.")
    target_file: str = Field(
        UTAH_TRENDS_FILE, description="Regular expression matching the CSV member of the zip archive."
    )
    date_column: str = Field("Date", description="Name of column containing dates in observed data.")
    value_column: str = Field("Daily.Cases", description="Name of column containing daily case counts.")
    n_days: int = Field(90, ge=MIN_WINDOW_DAYS, description="Number of most recent days used for calibration.")

    @model_validator(mode="after")
    def check_single_source(self: "DataSpec") -> "DataSpec":
        """Exactly one of source_url and path must be given."""
        if (self.source_url is None) == (self.path is None):
            msg = "Exactly one of 'source_url' and 'path' must be specified for observed data"
            raise ValueError(msg)
        return self

    @classmethod
    def utah(cls, n_days: int = 90) -> "DataSpec":
        """Data section pointing at the Utah DHHS COVID-19 dashboard export."""
        return cls(source_url=UTAH_COVID19_URL, n_days=n_days)


class InitialParameters(BaseModel):
    """Starting point of the calibration chain."""

    recovery_rate: float = Field(1 / 7, description="Daily probability that an infected agent recovers.")
    transmission_rate_spring: float = Field(0.05, description="Per-contact transmission probability in spring.")
    transmission_rate_summer: float = Field(0.04, description="Per-contact transmission probability in summer.")
    transmission_rate_fall: float = Field(0.06, description="Per-contact transmission probability in fall.")
    transmission_rate_winter: float = Field(0.07, description="Per-contact transmission probability in winter.")
    contact_rate_weekday: float = Field(10.0, description="Expected contacts per agent on weekdays.")
    contact_rate_weekend: float = Field(2.0, description="Expected contacts per agent on weekends.")

    @model_validator(mode="after")
    def check_bounds(self: "InitialParameters") -> "InitialParameters":
        """Apply the model parameter bounds."""
        self.to_model_parameters()
        return self

    def to_model_parameters(self) -> ModelParameters:
        return ModelParameters(**self.model_dump())


class CalibrationSpec(BaseModel):
    """LFMCMC calibration section."""

    n_samples: int = Field(6000, gt=0, description="Number of LFMCMC iterations.")
    burnin: int = Field(2000, ge=0, description="Number of leading iterations discarded from the posterior.")
    epsilon: float = Field(0.25, gt=0, description="Kernel bandwidth.")
    proposal_scale: float = Field(0.025, gt=0, description="Standard deviation of the proposal steps.")
    initial_parameters: InitialParameters = Field(
        default_factory=InitialParameters, description="Initial parameter values of the chain."
    )
    credible_level: float = Field(0.95, gt=0, lt=1, description="Level of the reported credible intervals.")

    @model_validator(mode="after")
    def check_burnin(self: "CalibrationSpec") -> "CalibrationSpec":
        """Burn-in must leave at least one iteration."""
        if self.burnin >= self.n_samples:
            msg = f"burnin ({self.burnin}) must be smaller than n_samples ({self.n_samples})"
            raise ValueError(msg)
        return self


class ForecastSpec(BaseModel):
    """Posterior predictive forecast section."""

    n_days: int = Field(14, gt=0, description="Forecast horizon in days.")
    sample_size: int = Field(200, gt=0, description="Number of posterior draws, one trajectory each.")
    quantiles: list[float] = Field(
        default_factory=lambda: list(DEFAULT_QUANTILES), description="Quantile levels reported per day."
    )

    @field_validator("quantiles")
    @classmethod
    def validate_quantiles(cls, v: list[float]) -> list[float]:
        """Quantiles must be strictly increasing and inside (0, 1)."""
        if not v:
            msg = "At least one quantile is required"
            raise ValueError(msg)
        if any(q <= 0 or q >= 1 for q in v):
            msg = f"Quantiles must lie in (0, 1), got {v}"
            raise ValueError(msg)
        if any(b <= a for a, b in zip(v, v[1:])):
            msg = f"Quantiles must be strictly increasing, got {v}"
            raise ValueError(msg)
        return v


class OutputSpec(BaseModel):
    """Output section."""

    directory: str | None = Field(None, description="Directory where output files are written.")
    plots: bool = Field(False, description="Whether to save observed, posterior and forecast figures.")
    telemetry: bool = Field(True, description="Whether to write a telemetry summary.")


class ForecastConfig(BaseModel):
    """Root configuration model for calibration and forecasting."""

    meta: Meta | None = Field(None, description="General metadata.")
    model: ModelSpec = Field(default_factory=ModelSpec, description="Model configuration")
    data: DataSpec = Field(description="Observed data configuration")
    calibration: CalibrationSpec = Field(default_factory=CalibrationSpec, description="Calibration configuration")
    forecast: ForecastSpec = Field(default_factory=ForecastSpec, description="Forecast configuration")
    output: OutputSpec = Field(default_factory=OutputSpec, description="Output configuration")

    @model_validator(mode="after")
    def check_sample_size(self: "ForecastConfig") -> "ForecastConfig":
        """Warn when the forecast needs more draws than the post burn-in chain holds."""
        available = self.calibration.n_samples - self.calibration.burnin
        if self.forecast.sample_size > available:
            logger.warning(
                "forecast.sample_size (%d) exceeds the %d post burn-in iterations; draws will repeat",
                self.forecast.sample_size,
                available,
            )
        return self


def validate_forecast_config(config: dict) -> ForecastConfig:
    """
    Validate the given configuration against the schema.

    Parameters
    ----------
    config: dict
        The configuration dictionary to validate.

    Returns
    -------
    ForecastConfig
        The validated configuration.
    """
    try:
        root = ForecastConfig(**config)
        logger.info("Configuration validated successfully.")
    except Exception as e:
        msg = f"Configuration validation error: {e}"
        raise ValueError(msg) from e
    return root
