"""Pydantic v2 models for innebandy API records and the standings aggregate.

Re-exports all model classes for convenient import::

    from innebandy_stats.models import Match, Lineup, PlayerStanding, ...
"""

from .competition import Competition
from .lineup import Lineup, LineupPlayer
from .match import (
    EVENT_TYPE_GOAL,
    EVENT_TYPE_PENALTY,
    MATCH_STATUS_COMPLETED,
    Match,
    MatchEvent,
)
from .player import Player
from .standing import PlayerStanding

__all__ = [
    "Competition",
    "Match",
    "MatchEvent",
    "Lineup",
    "LineupPlayer",
    "Player",
    "PlayerStanding",
    "MATCH_STATUS_COMPLETED",
    "EVENT_TYPE_GOAL",
    "EVENT_TYPE_PENALTY",
]
