"""Calendar helpers: meteorological seasons and weekday/weekend classification."""

import datetime as dt
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from enum import Enum

logger = logging.getLogger(__name__)


class Season(str, Enum):
    """Meteorological seasons (northern hemisphere), in calendar order."""

    spring = "spring"
    summer = "summer"
    fall = "fall"
    winter = "winter"


# Month number -> season
_MONTH_TO_SEASON = {
    3: Season.spring,
    4: Season.spring,
    5: Season.spring,
    6: Season.summer,
    7: Season.summer,
    8: Season.summer,
    9: Season.fall,
    10: Season.fall,
    11: Season.fall,
    12: Season.winter,
    1: Season.winter,
    2: Season.winter,
}


def classify_season(date: dt.date) -> Season:
    """
    Return the season for the given date.

    Only the month is used, so the result does not depend on the year:
    spring is March-May, summer June-August, fall September-November and
    winter December-February.

    Parameters
    ----------
        date: A date or datetime.

    Returns
    -------
        The Season containing the date.
    """
    return _MONTH_TO_SEASON[date.month]


def seasons_for(dates: Iterable[dt.date]) -> list[Season]:
    """Classify every date in the sequence."""
    return [classify_season(d) for d in dates]


def is_weekend(date: dt.date) -> bool:
    """True on Saturdays and Sundays."""
    return date.weekday() >= 5  # noqa: PLR2004


class SeasonStarts(Mapping):
    """
    First index of each season within an ordered date sequence.

    Seasons that never occur are absent from the mapping rather than stored
    as a sentinel; use ``get`` or ``is_present`` to query them. ``as_dict``
    renders the conventional ``-1`` marker for absent seasons, for reporting.
    """

    def __init__(self, starts: dict[Season, int]):
        self._starts = {Season(season): int(index) for season, index in starts.items()}

    def __getitem__(self, season: Season) -> int:
        try:
            return self._starts[Season(season)]
        except ValueError as e:
            raise KeyError(season) from e

    def __iter__(self) -> Iterator[Season]:
        return (season for season in Season if season in self._starts)

    def __len__(self) -> int:
        return len(self._starts)

    def __repr__(self) -> str:
        inner = ", ".join(f"{season.value}={self._starts[season]}" for season in self)
        return f"SeasonStarts({inner})"

    def is_present(self, season: Season) -> bool:
        return season in self

    def present(self) -> list[Season]:
        """Seasons occurring in the sequence, ordered by first occurrence."""
        return sorted(self._starts, key=self._starts.__getitem__)

    def as_dict(self) -> dict[str, int]:
        """Season name -> first index, with -1 for seasons that never occur."""
        return {season.value: self._starts.get(season, -1) for season in Season}


def locate_season_starts(dates: Sequence[dt.date]) -> SeasonStarts:
    """
    Find the position of the first date belonging to each season.

    Parameters
    ----------
        dates: Dates in chronological order.

    Returns
    -------
        SeasonStarts mapping each season that occurs to its first 0-based index.
    """
    starts: dict[Season, int] = {}
    for index, season in enumerate(seasons_for(dates)):
        starts.setdefault(season, index)

    missing = [season.value for season in Season if season not in starts]
    if missing and dates:
        logger.debug("Seasons absent between %s and %s: %s", dates[0], dates[-1], missing)
    return SeasonStarts(starts)
