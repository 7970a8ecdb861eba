"""Per-player aggregate built by the standings pipeline."""

from pydantic import BaseModel, computed_field


class PlayerStanding(BaseModel):
    """Running totals for one player in one competition.

    Mutable: lineup, event and profile folds update it in place. Points and
    points per game are derived on read.
    """

    player_id: int
    name: str = ""
    age: int = 0
    birth_year: int = 0
    team: str = ""
    matches: int = 0
    goals: int = 0
    assists: int = 0
    penalty_minutes: int = 0

    @computed_field
    @property
    def points(self) -> int:
        return self.goals + self.assists

    @computed_field
    @property
    def points_per_game(self) -> float:
        if self.matches > 0:
            return round(self.points / self.matches, 2)
        return 0.0
