"""Pydantic v2 model for competition (series) records."""

from pydantic import Field

from .base import ApiModel


class Competition(ApiModel):
    """A competition as listed per season and federation."""

    competition_id: int = Field(alias="competitionid")
    name: str = ""
    category_name: str = Field(default="", alias="categoryname")
    competition_status: str = Field(default="", alias="competitionstatus")
    age_category_id: int = Field(default=0, alias="agecategoryid")
    federation_name: str = Field(default="", alias="federationname")
    season_name: str = Field(default="", alias="seasonname")
    gender_id: int = Field(default=0, alias="genderid")
