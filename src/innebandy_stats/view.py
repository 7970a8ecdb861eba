"""Filtering and sorting of a standings table for display.

The aggregation returns standings in first-seen order; this module derives
what a front-end shows: exact-match filters on team, age and birth year,
a sort by one of ``SORT_KEYS``, and the distinct values available for each
filter.
"""

from dataclasses import dataclass, field
from typing import Iterable

from innebandy_stats.models import PlayerStanding

DEFAULT_SORT = "points"

# Sort key -> attribute(s) compared when sorting descending. Ascending
# sorts use only the first attribute, except for the default points sort.
_DESCENDING_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name",),
    "age": ("age",),
    "birthyear": ("birth_year",),
    "team": ("team",),
    "matches": ("matches",),
    "goals": ("goals", "points"),
    "assists": ("assists", "points"),
    "ppg": ("points_per_game", "points"),
    "penalty": ("penalty_minutes",),
    "points": ("points", "goals"),
}

SORT_KEYS = tuple(_DESCENDING_KEYS)


@dataclass
class StandingsFilter:
    """Exact-match filter; ``None`` fields are not applied."""

    team: str | None = None
    age: int | None = None
    birth_year: int | None = None

    def matches(self, standing: PlayerStanding) -> bool:
        if self.team and standing.team != self.team:
            return False
        if self.age is not None and standing.age != self.age:
            return False
        if self.birth_year is not None and standing.birth_year != self.birth_year:
            return False
        return True


@dataclass
class AvailableFilters:
    """Distinct filter values present in a table, each ascending."""

    teams: list[str] = field(default_factory=list)
    ages: list[int] = field(default_factory=list)
    birth_years: list[int] = field(default_factory=list)


def filter_standings(
    standings: Iterable[PlayerStanding], flt: StandingsFilter | None = None
) -> list[PlayerStanding]:
    if flt is None:
        return list(standings)
    return [s for s in standings if flt.matches(s)]


def sort_standings(
    standings: Iterable[PlayerStanding],
    sort: str = DEFAULT_SORT,
    descending: bool = True,
) -> list[PlayerStanding]:
    """Sort a table the way the standings page does.

    Descending ``goals``, ``assists`` and ``ppg`` break ties on points.
    The ``points`` sort (also used for unknown keys) breaks ties on goals
    and then name, the name always ascending. Remaining ties keep their
    input order.
    """
    rows = list(standings)
    if sort not in _DESCENDING_KEYS:
        sort = DEFAULT_SORT
    attrs = _DESCENDING_KEYS[sort]

    if sort == DEFAULT_SORT:
        # Name is the last tiebreak and ascending in both directions;
        # Python's sort is stable, so sort by it first.
        rows.sort(key=lambda s: s.name)
        rows.sort(key=lambda s: (s.points, s.goals), reverse=descending)
        return rows

    if not descending:
        attrs = attrs[:1]
    rows.sort(key=lambda s: tuple(getattr(s, a) for a in attrs), reverse=descending)
    return rows


def available_filters(standings: Iterable[PlayerStanding]) -> AvailableFilters:
    """Collect filter choices from the unfiltered table."""
    rows = list(standings)
    return AvailableFilters(
        teams=sorted({s.team for s in rows if s.team}),
        ages=sorted({s.age for s in rows if s.age > 0}),
        birth_years=sorted({s.birth_year for s in rows if s.birth_year > 0}),
    )
