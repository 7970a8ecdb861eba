"""Pydantic v2 models for match lineups."""

from pydantic import Field

from .base import ApiModel


class LineupPlayer(ApiModel):
    """A player fielded by one team in one match."""

    player_id: int = Field(alias="playerid")
    team_id: int = Field(default=0, alias="teamid")
    name: str = ""
    age: int = 0
    birth_year: int = Field(default=0, alias="birthyear")
    shirt_no: int | None = Field(default=None, alias="shirtno")


class Lineup(ApiModel):
    """Both rosters for a single match."""

    match_id: int = Field(default=0, alias="matchid")
    home_team_id: int = Field(default=0, alias="hometeamid")
    home_team: str = Field(default="", alias="hometeam")
    home_team_short_name: str = Field(default="", alias="hometeamshortname")
    away_team_id: int = Field(default=0, alias="awayteamid")
    away_team: str = Field(default="", alias="awayteam")
    away_team_short_name: str = Field(default="", alias="awayteamshortname")
    home_team_players: list[LineupPlayer] = Field(default_factory=list, alias="hometeamplayers")
    away_team_players: list[LineupPlayer] = Field(default_factory=list, alias="awayteamplayers")

    def rosters(self) -> list[tuple[str, list[LineupPlayer]]]:
        """(trimmed team name, players) for home then away."""
        return [
            (self.home_team.strip(), self.home_team_players),
            (self.away_team.strip(), self.away_team_players),
        ]
