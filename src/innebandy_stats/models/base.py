"""Shared base for records decoded from the innebandy API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class ApiModel(BaseModel):
    """Immutable record decoded from an API JSON object.

    The API's keys are camel-case (``matchID``, ``homeTeamPlayers``) and
    are matched case-insensitively against lower-case field aliases.
    ``null`` values are dropped so the field default applies.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                str(key).lower(): value
                for key, value in data.items()
                if value is not None
            }
        return data
