"""Folding lineups, match events and player profiles into standings.

``StandingsTable`` maps player id to a mutable ``PlayerStanding``. The
three fold operations only ever add to it:

* **Lineups** decide participation: each appearance in a roster is one
  match played. Age and birth year are taken when positive.
* **Events** decide scoring: goals, assists and penalty minutes. A player
  seen only in events keeps ``matches == 0``.
* **Profiles** backfill identity (name, age, birth year) after the folds.

Iteration order is the order in which players were first seen.
"""

import logging
from typing import Iterable, Iterator

from innebandy_stats.models import Lineup, Match, Player, PlayerStanding

logger = logging.getLogger(__name__)

# Every penalty counts as two minutes, whatever its code.
PENALTY_MINUTES_PER_EVENT = 2


class StandingsTable:
    """Create-or-update accumulator of per-player statistics."""

    def __init__(self) -> None:
        self._players: dict[int, PlayerStanding] = {}

    def ensure(self, player_id: int, name: str, team: str) -> PlayerStanding:
        """Return the standing for *player_id*, creating it if unseen.

        *name* and *team* are only used on creation; an existing standing
        keeps the values it was created with.
        """
        standing = self._players.get(player_id)
        if standing is None:
            standing = PlayerStanding(player_id=player_id, name=name, team=team)
            self._players[player_id] = standing
        return standing

    def fold_lineup(self, lineup: Lineup) -> None:
        """Count one match for every player in either roster."""
        for team_name, players in lineup.rosters():
            for player in players:
                standing = self.ensure(player.player_id, player.name, team_name)
                standing.matches += 1
                if player.age > 0:
                    standing.age = player.age
                if player.birth_year > 0:
                    standing.birth_year = player.birth_year

    def fold_events(self, match: Match) -> None:
        """Add goals, assists and penalty minutes from a match's events."""
        if not match.events:
            return

        for event in match.events:
            if event.player_id <= 0:
                continue
            team_name = event.match_team_name.strip()

            if event.is_goal:
                scorer = self.ensure(event.player_id, event.player_name, team_name)
                scorer.goals += 1
                if event.player_assist_id > 0:
                    assister = self.ensure(
                        event.player_assist_id, event.player_assist_name, team_name
                    )
                    assister.assists += 1
            elif event.is_penalty:
                standing = self.ensure(event.player_id, event.player_name, team_name)
                standing.penalty_minutes += PENALTY_MINUTES_PER_EVENT

    def apply_profile(self, player: Player) -> bool:
        """Backfill name, age and birth year from a profile.

        Profiles for players not already in the table are ignored.

        Returns:
            True if the profile matched a known player.
        """
        standing = self._players.get(player.player_id)
        if standing is None:
            logger.debug("Ignoring profile for unknown player %d", player.player_id)
            return False
        if player.age > 0:
            standing.age = player.age
        if player.birth_year > 0:
            standing.birth_year = player.birth_year
        if player.name:
            standing.name = player.name
        return True

    def player_ids(self) -> list[int]:
        return list(self._players)

    def standings(self) -> list[PlayerStanding]:
        return list(self._players.values())

    def __contains__(self, player_id: int) -> bool:
        return player_id in self._players

    def __getitem__(self, player_id: int) -> PlayerStanding:
        return self._players[player_id]

    def __iter__(self) -> Iterator[PlayerStanding]:
        return iter(self._players.values())

    def __len__(self) -> int:
        return len(self._players)


def build_table(
    lineups: Iterable[Lineup],
    details: Iterable[Match],
) -> StandingsTable:
    """Fold all lineups, then all match events, into a new table."""
    table = StandingsTable()
    for lineup in lineups:
        table.fold_lineup(lineup)
    for match in details:
        table.fold_events(match)
    return table
