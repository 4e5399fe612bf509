from .common import Meta
from .dispatcher import CalibrationOutput, ForecastOutput
from .forecast import (
    CalibrationSpec,
    DataSpec,
    ForecastConfig,
    ForecastSpec,
    InitialParameters,
    ModelSpec,
    OutputSpec,
    validate_forecast_config,
)

__all__ = [
    "CalibrationOutput",
    "CalibrationSpec",
    "DataSpec",
    "ForecastConfig",
    "ForecastOutput",
    "ForecastSpec",
    "InitialParameters",
    "Meta",
    "ModelSpec",
    "OutputSpec",
    "validate_forecast_config",
]
