"""
Stochastic SIR model with homogeneous ("connected") contact mixing.

Overview
--------
Agents move Susceptible -> Infected -> Recovered in discrete daily steps. Agents
within a compartment are exchangeable, so per-agent Bernoulli draws are sampled
in aggregate as binomial counts:

- Susceptible -> Infected: each susceptible agent makes Binomial(N, c/N) contacts
  with uniformly chosen agents; each contact is infected with probability I/N and
  transmits with probability p_t. Marginalizing the contacts gives the
  per-agent infection probability ``1 - (1 - (c/N) * (I/N) * p_t) ** N``, which
  approaches ``1 - exp(-c * p_t * I/N)`` and is therefore invariant to N in
  expectation. ``contact_rate`` is thus a per-capita rate and the simulated
  population can be much smaller than the real one.
- Infected -> Recovered: each infected agent recovers with probability
  ``recovery_rate`` per day.

Both transitions are drawn from the state at the start of the day.

Contact, transmission and recovery rates can be changed at given days through a
declarative ParameterSchedule that the stepping loop consults before each step.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


ScheduledField = Literal["contact_rate", "transmission_rate", "recovery_rate"]
SCHEDULABLE_FIELDS = ("contact_rate", "transmission_rate", "recovery_rate")
_PROBABILITY_FIELDS = ("transmission_rate", "recovery_rate")


def _check_rate(name: str, value: float) -> float:
    value = float(value)
    if np.isnan(value) or value < 0:
        msg = f"{name} must be a non-negative number, got {value}"
        raise ValueError(msg)
    if name in _PROBABILITY_FIELDS and value > 1:
        msg = f"{name} is a daily probability and cannot exceed 1, got {value}"
        raise ValueError(msg)
    return value


# ============================================================
# Parameter schedule
# ============================================================


@dataclass(frozen=True)
class ScheduledChange:
    """Set ``field`` to ``value`` when the simulation reaches ``day``."""

    day: int
    field: ScheduledField
    value: float

    def __post_init__(self) -> None:
        if self.day < 0:
            msg = f"Scheduled day must be non-negative, got {self.day}"
            raise ValueError(msg)
        if self.field not in SCHEDULABLE_FIELDS:
            msg = f"Cannot schedule changes to '{self.field}'. Schedulable fields: {SCHEDULABLE_FIELDS}"
            raise ValueError(msg)
        object.__setattr__(self, "value", _check_rate(self.field, self.value))


class ParameterSchedule:
    """
    Table of day-keyed parameter changes.

    Changes for a given day are applied in the order they were added. The table
    can be built and inspected independently of any simulator.
    """

    def __init__(self, changes: list[ScheduledChange] | None = None):
        self._by_day: dict[int, list[ScheduledChange]] = {}
        for change in changes or []:
            self.add(change)

    def add(self, change: ScheduledChange) -> "ParameterSchedule":
        self._by_day.setdefault(change.day, []).append(change)
        return self

    def set(self, day: int, field: ScheduledField, value: float) -> "ParameterSchedule":
        """Shorthand for ``add(ScheduledChange(day, field, value))``."""
        return self.add(ScheduledChange(day=day, field=field, value=value))

    def changes_on(self, day: int) -> list[ScheduledChange]:
        return list(self._by_day.get(day, []))

    def days(self) -> list[int]:
        return sorted(self._by_day)

    def __iter__(self):
        for day in self.days():
            yield from self._by_day[day]

    def __len__(self) -> int:
        return sum(len(changes) for changes in self._by_day.values())

    def __repr__(self) -> str:
        return f"ParameterSchedule(n_changes={len(self)}, days={len(self._by_day)})"

    def to_dataframe(self) -> pd.DataFrame:
        """One row per change with columns day, field, value."""
        return pd.DataFrame([(c.day, c.field, c.value) for c in self], columns=["day", "field", "value"])


# ============================================================
# Simulation history
# ============================================================


@dataclass(eq=False)
class SimulationHistory:
    """
    Daily compartment counts and transition counts of one run.

    A run of ``n_days`` yields ``n_days + 1`` rows: row 0 is the initial state
    (its ``new_infections`` is the seeded infected count) and row ``n_days`` is
    the state after the final step. Use ``incidence()`` to obtain exactly
    ``n_days`` daily case counts; it drops the final row.
    """

    day: np.ndarray
    susceptible: np.ndarray
    infected: np.ndarray
    recovered: np.ndarray
    new_infections: np.ndarray
    new_recoveries: np.ndarray

    @property
    def n_days(self) -> int:
        return len(self.day) - 1

    def incidence(self) -> np.ndarray:
        """Susceptible -> Infected counts for days 0..n_days-1."""
        return self.new_infections[:-1].astype(float)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "day": self.day,
                "S": self.susceptible,
                "I": self.infected,
                "R": self.recovered,
                "S_to_I": self.new_infections,
                "I_to_R": self.new_recoveries,
            }
        )


# ============================================================
# Simulator
# ============================================================


@dataclass
class SIRConnSimulator:
    """
    Discrete-time stochastic SIR model over a fixed population.

    Parameters
    ----------
    n : int
        Simulated population size.
    prevalence : float
        Fraction of the population infected at day 0.
    contact_rate : float
        Expected contacts per agent per day.
    transmission_rate : float
        Probability that a contact with an infected agent transmits.
    recovery_rate : float
        Daily recovery probability of an infected agent.
    seed : int | None
        Seed of the random stream. Identical seeds and parameters reproduce
        identical histories.
    schedule : ParameterSchedule
        Parameter changes applied before the step of the matching day.
    """

    n: int
    prevalence: float
    contact_rate: float
    transmission_rate: float
    recovery_rate: float
    seed: int | None = None
    schedule: ParameterSchedule = dataclasses.field(default_factory=ParameterSchedule)

    def __post_init__(self) -> None:
        if int(self.n) != self.n or self.n <= 0:
            msg = f"Population size must be a positive integer, got {self.n}"
            raise ValueError(msg)
        self.n = int(self.n)
        if not 0 <= self.prevalence <= 1:
            msg = f"Prevalence must be a fraction between 0 and 1, got {self.prevalence}"
            raise ValueError(msg)
        self.contact_rate = _check_rate("contact_rate", self.contact_rate)
        self.transmission_rate = _check_rate("transmission_rate", self.transmission_rate)
        self.recovery_rate = _check_rate("recovery_rate", self.recovery_rate)
        self.reset()

    @classmethod
    def initialize(
        cls,
        n: int,
        prevalence: float,
        contact_rate: float,
        transmission_rate: float,
        recovery_rate: float,
        seed: int | None = None,
    ) -> "SIRConnSimulator":
        """Create a simulator with an empty schedule."""
        return cls(
            n=n,
            prevalence=prevalence,
            contact_rate=contact_rate,
            transmission_rate=transmission_rate,
            recovery_rate=recovery_rate,
            seed=seed,
        )

    @property
    def initial_infected(self) -> int:
        return int(round(self.prevalence * self.n))

    def reset(self) -> None:
        """Restore day 0: counts, current rates and random stream."""
        self.today = 0
        self.infected = self.initial_infected
        self.susceptible = self.n - self.infected
        self.recovered = 0
        self._rates = {
            "contact_rate": self.contact_rate,
            "transmission_rate": self.transmission_rate,
            "recovery_rate": self.recovery_rate,
        }
        self._rng = np.random.default_rng(self.seed)

    def schedule_parameter_change(self, day: int, field: ScheduledField, value: float) -> None:
        """Register a change of ``field`` to ``value`` at ``day``."""
        self.schedule.set(day, field, value)

    def current_rates(self) -> dict[str, float]:
        return dict(self._rates)

    def _apply_scheduled_changes(self, day: int) -> None:
        for change in self.schedule.changes_on(day):
            self._rates[change.field] = change.value

    def infection_probability(self) -> float:
        """Per-susceptible probability of infection over the current day."""
        if self.infected == 0:
            return 0.0
        contact_prob = min(self._rates["contact_rate"] / self.n, 1.0)
        per_agent = contact_prob * (self.infected / self.n) * self._rates["transmission_rate"]
        return float(-np.expm1(self.n * np.log1p(-per_agent)))

    def step(self) -> tuple[int, int]:
        """Advance one day; returns (new infections, new recoveries)."""
        self.today += 1
        self._apply_scheduled_changes(self.today)

        new_infections = int(self._rng.binomial(self.susceptible, self.infection_probability()))
        new_recoveries = int(self._rng.binomial(self.infected, self._rates["recovery_rate"]))

        self.susceptible -= new_infections
        self.infected += new_infections - new_recoveries
        self.recovered += new_recoveries
        return new_infections, new_recoveries

    def run(self, n_days: int) -> SimulationHistory:
        """
        Simulate ``n_days`` days from the initial state.

        The simulator is reset first, so repeated calls reproduce the same history.

        Returns
        -------
        SimulationHistory
            ``n_days + 1`` rows, day 0 being the initial state.
        """
        if n_days < 0:
            msg = f"n_days must be non-negative, got {n_days}"
            raise ValueError(msg)

        self.reset()
        self._apply_scheduled_changes(0)

        rows = np.zeros((n_days + 1, 6), dtype=np.int64)
        rows[0] = (0, self.susceptible, self.infected, self.recovered, self.infected, 0)
        for day in range(1, n_days + 1):
            new_infections, new_recoveries = self.step()
            rows[day] = (day, self.susceptible, self.infected, self.recovered, new_infections, new_recoveries)

        return SimulationHistory(*(rows[:, j].copy() for j in range(6)))
