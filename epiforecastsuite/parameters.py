"""Calibration parameter vector for the seasonal SIR-connected model."""

import logging
from dataclasses import astuple, dataclass, fields

import numpy as np

from .seasons import Season

logger = logging.getLogger(__name__)


PARAMETER_NAMES = (
    "Recovery rate",
    "Transmission rate (spring)",
    "Transmission rate (summer)",
    "Transmission rate (fall)",
    "Transmission rate (winter)",
    "Contact rate (weekday)",
    "Contact rate (weekend)",
)

SUMMARY_STAT_NAMES = (
    "Time to peak",
    "Size of peak",
    "Mean (cases)",
    "Standard deviation (cases)",
)

# Positions of the rate-like (0, 1) entries and of the non-negative contact rates
RATE_INDICES = slice(0, 5)
CONTACT_INDICES = slice(5, 7)
N_PARAMETERS = len(PARAMETER_NAMES)


@dataclass(frozen=True)
class ModelParameters:
    """
    The 7-dimensional calibration vector, in fixed order.

    Attributes
    ----------
    recovery_rate : float
        Daily probability that an infected agent recovers, in (0, 1).
    transmission_rate_spring, transmission_rate_summer, transmission_rate_fall, transmission_rate_winter : float
        Per-contact transmission probability for each season, in (0, 1).
    contact_rate_weekday, contact_rate_weekend : float
        Expected contacts per agent per day, >= 0.
    """

    recovery_rate: float
    transmission_rate_spring: float
    transmission_rate_summer: float
    transmission_rate_fall: float
    transmission_rate_winter: float
    contact_rate_weekday: float
    contact_rate_weekend: float

    def __post_init__(self) -> None:
        values = astuple(self)
        for field, value in zip(fields(self)[RATE_INDICES], values[RATE_INDICES], strict=True):
            if not 0 < value < 1:
                msg = f"{field.name} must lie strictly between 0 and 1, got {value}"
                raise ValueError(msg)
        for field, value in zip(fields(self)[CONTACT_INDICES], values[CONTACT_INDICES], strict=True):
            if not value >= 0:
                msg = f"{field.name} must be non-negative, got {value}"
                raise ValueError(msg)

    @classmethod
    def from_array(cls, values) -> "ModelParameters":
        """Build parameters from a positional vector of length 7."""
        values = np.asarray(values, dtype=float)
        if values.shape != (N_PARAMETERS,):
            msg = f"Expected a parameter vector of length {N_PARAMETERS}, got shape {values.shape}"
            raise ValueError(msg)
        return cls(*(float(v) for v in values))

    def to_array(self) -> np.ndarray:
        """Return the positional vector (order of PARAMETER_NAMES)."""
        return np.array(astuple(self), dtype=float)

    def transmission_rate(self, season: Season) -> float:
        """Transmission rate used while the given season is in effect."""
        return getattr(self, f"transmission_rate_{Season(season).value}")

    def contact_rate(self, weekend: bool) -> float:
        return self.contact_rate_weekend if weekend else self.contact_rate_weekday

    def as_named_dict(self) -> dict[str, float]:
        """Map the display names in PARAMETER_NAMES to values."""
        return dict(zip(PARAMETER_NAMES, astuple(self), strict=True))
