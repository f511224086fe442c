from typing import Dict, List
from pydantic import BaseModel

from fantasy_league.core.config import Settings
from fantasy_league.core.errors import InvalidInputError, NotFoundError
from fantasy_league.models.team import TeamType

GAME_VERSION = "v1"

BASE_POINTS_BY_POSITION: Dict[int, int] = {
    1: 100, 2: 80, 3: 70, 4: 60, 5: 55, 6: 50, 7: 45, 8: 40, 9: 35, 10: 30,
    11: 25, 12: 22, 13: 20, 14: 18, 15: 16, 16: 15, 17: 14, 18: 13, 19: 12, 20: 11,
    21: 10, 22: 9, 23: 8, 24: 7, 25: 6, 26: 5, 27: 4, 28: 3, 29: 2, 30: 1,
}

QUAL_BONUS_BY_POSITION: Dict[int, int] = {
    1: 10, 2: 8, 3: 6,
    4: 3, 5: 3, 6: 3, 7: 3, 8: 3, 9: 3, 10: 3,
    11: 1, 12: 1, 13: 1, 14: 1, 15: 1, 16: 1, 17: 1, 18: 1, 19: 1, 20: 1,
}


class GameRules(BaseModel):
    """
    Every tunable of the game in one immutable value. Built once from the
    settings and handed to each service when it is constructed.
    """
    team_size: int = 6
    bench_size: int = 1
    gender_slots: Dict[str, int] = {"male": 4, "female": 2}
    budgets: Dict[str, int] = {TeamType.ELITE.value: 2_000_000, TeamType.JUNIOR.value: 500_000}
    max_transfers_per_race: int = 2
    dsq_penalty: int = -10
    qual_bonus_enabled: bool = True
    auto_sub_enabled: bool = True
    junior_team_enabled: bool = False
    lock_lead_hours: int = 48

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, s: Settings) -> "GameRules":
        return cls(
            team_size=s.TEAM_SIZE,
            bench_size=s.BENCH_SIZE,
            gender_slots={"male": s.GENDER_SLOTS_MALE, "female": s.GENDER_SLOTS_FEMALE},
            budgets={TeamType.ELITE.value: s.BUDGET_ELITE, TeamType.JUNIOR.value: s.BUDGET_JUNIOR},
            max_transfers_per_race=s.MAX_TRANSFERS_PER_RACE,
            dsq_penalty=s.DSQ_PENALTY,
            qual_bonus_enabled=s.QUAL_BONUS_ENABLED,
            auto_sub_enabled=s.AUTO_SUB_ENABLED,
            junior_team_enabled=s.JUNIOR_TEAM_ENABLED,
            lock_lead_hours=s.LOCK_LEAD_HOURS,
        )

    def enabled_team_types(self) -> List[TeamType]:
        if self.junior_team_enabled:
            return [TeamType.ELITE, TeamType.JUNIOR]
        return [TeamType.ELITE]

    def budget_for(self, team_type: TeamType) -> int:
        return self.budgets[team_type.value]

    def require_team_type(self, value) -> TeamType:
        """Normalizes a team type and rejects the junior team while it is disabled."""
        team_type = normalize_team_type(value)
        if team_type not in self.enabled_team_types():
            raise NotFoundError("Junior team is disabled")
        return team_type


def normalize_team_type(value) -> TeamType:
    if isinstance(value, TeamType):
        return value
    normalized = str(value or "").strip().lower()
    for team_type in TeamType:
        if team_type.value == normalized:
            return team_type
    raise InvalidInputError(f"Invalid team type: {value}")
