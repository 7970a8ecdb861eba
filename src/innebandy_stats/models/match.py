"""Pydantic v2 models for matches and their events.

The match list endpoint returns matches without events; the match details
endpoint returns a single match with ``events`` populated.
"""

from datetime import datetime

from pydantic import Field

from .base import ApiModel

MATCH_STATUS_COMPLETED = 4

EVENT_TYPE_GOAL = 1
EVENT_TYPE_PENALTY = 2


class MatchEvent(ApiModel):
    """A single event in a match (goal, penalty, timeout, ...)."""

    match_event_id: int = Field(default=0, alias="matcheventid")
    match_id: int = Field(default=0, alias="matchid")
    match_event_type_id: int = Field(default=0, alias="matcheventtypeid")
    match_event_type: str = Field(default="", alias="matcheventtype")
    period: int = 0
    period_name: str = Field(default="", alias="periodname")
    minute: int = 0
    second: int = 0
    player_id: int = Field(default=0, alias="playerid")
    player_name: str = Field(default="", alias="playername")
    player_shirt_no: int | None = Field(default=None, alias="playershirtno")
    player_assist_id: int = Field(default=0, alias="playerassistid")
    player_assist_name: str = Field(default="", alias="playerassistname")
    player_assist_shirt_no: int | None = Field(default=None, alias="playerassistshirtno")
    match_team_id: int = Field(default=0, alias="matchteamid")
    is_home_team: bool | None = Field(default=None, alias="ishometeam")
    match_team_name: str = Field(default="", alias="matchteamname")
    match_team_short_name: str | None = Field(default=None, alias="matchteamshortname")
    # Score after the event
    goals_home_team: int = Field(default=0, alias="goalshometeam")
    goals_away_team: int = Field(default=0, alias="goalsawayteam")
    penalty_code: str = Field(default="", alias="penaltycode")
    penalty_name: str = Field(default="", alias="penaltyname")
    is_pp_goal: bool = Field(default=False, alias="isppgoal")

    @property
    def is_goal(self) -> bool:
        return self.match_event_type_id == EVENT_TYPE_GOAL

    @property
    def is_penalty(self) -> bool:
        return self.match_event_type_id == EVENT_TYPE_PENALTY


class Match(ApiModel):
    """A scheduled or played match in a competition."""

    match_id: int = Field(alias="matchid")
    match_no: str = Field(default="", alias="matchno")
    competition_id: int = Field(default=0, alias="competitionid")
    competition_name: str = Field(default="", alias="competitionname")
    category_name: str = Field(default="", alias="categoryname")
    home_team_id: int = Field(default=0, alias="hometeamid")
    home_team: str = Field(default="", alias="hometeam")
    home_team_short_name: str = Field(default="", alias="hometeamshortname")
    home_team_logotype_url: str = Field(default="", alias="hometeamlogotypeurl")
    away_team_id: int = Field(default=0, alias="awayteamid")
    away_team: str = Field(default="", alias="awayteam")
    away_team_short_name: str = Field(default="", alias="awayteamshortname")
    away_team_logotype_url: str = Field(default="", alias="awayteamlogotypeurl")
    match_date_time: datetime | None = Field(default=None, alias="matchdatetime")
    venue: str = ""
    goals_home_team: int | None = Field(default=None, alias="goalshometeam")
    goals_away_team: int | None = Field(default=None, alias="goalsawayteam")
    match_status: int = Field(default=0, alias="matchstatus")
    round: int = 0
    round_name: str = Field(default="", alias="roundname")
    home_match_team_id: int = Field(default=0, alias="homematchteamid")
    away_match_team_id: int = Field(default=0, alias="awaymatchteamid")
    events: list[MatchEvent] | None = None

    @property
    def is_completed(self) -> bool:
        """Whether the result is final (status 4)."""
        return self.match_status == MATCH_STATUS_COMPLETED
