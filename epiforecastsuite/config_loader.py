### config_loader.py
# Functions for loading and validating configuration files (defined in YAML format).

import logging
from pathlib import Path

import yaml

from .schema.forecast import ForecastConfig, validate_forecast_config

__all__ = [
    "load_forecast_config_from_file",
    "load_forecast_config_from_string",
]

logger = logging.getLogger(__name__)


def load_forecast_config_from_file(path: str | Path) -> ForecastConfig:
    """
    Load forecast configuration YAML from the given path and validate against the schema.

    Parameters
    ----------
        path: The file path to the YAML configuration file.

    Returns
    -------
        The validated configuration object.
    """
    with Path(path).open() as f:
        raw = yaml.safe_load(f)

    root = validate_forecast_config(raw or {})
    logger.info("Forecast configuration loaded successfully.")
    return root


def load_forecast_config_from_string(text: str) -> ForecastConfig:
    """Validate a forecast configuration given as a YAML string."""
    return validate_forecast_config(yaml.safe_load(text) or {})
