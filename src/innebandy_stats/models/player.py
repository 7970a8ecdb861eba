"""Pydantic v2 model for player profile records."""

from pydantic import Field

from .base import ApiModel


class Player(ApiModel):
    """Federation-wide player profile.

    The cumulative stats here span all competitions; only identity fields
    (name, age, birth year) are used when building standings.
    """

    player_id: int = Field(alias="playerid")
    name: str = ""
    age: int = 0
    birth_year: int = Field(default=0, alias="birthyear")
    shirt_no: int | None = Field(default=None, alias="shirtno")
    position: str = ""
    matches: int = 0
    goals: int = 0
    assists: int = 0
    points: int = 0
    penalty_minutes: int = Field(default=0, alias="penaltyminutes")
    licensed_association_name: str = Field(default="", alias="licensedassociationname")
