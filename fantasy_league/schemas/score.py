from pydantic import BaseModel, ValidationError
from typing import List, Optional
from datetime import datetime

from fantasy_league.core.errors import GameError

BREAKDOWN_VERSION = 1
SUPPORTED_BREAKDOWN_VERSIONS = {1}

class RiderBreakdown(BaseModel):
    slot_index: Optional[int] = None # None for the bench
    uci_id: str
    gender: str
    status: str
    position: Optional[int] = None
    base_points: int = 0
    qual_bonus: int = 0
    penalties: int = 0
    final_points: int = 0

class SubstitutionBreakdown(BaseModel):
    applied: bool = False
    bench_uci_id: Optional[str] = None
    replaced_starter_index: Optional[int] = None
    # AUTO_SUB_SAME_GENDER | NO_VALID_SUB | NO_BENCH | NO_ELIGIBLE_STARTER
    reason: str

class TeamScoreBreakdown(BaseModel):
    version: int = BREAKDOWN_VERSION
    starters: List[RiderBreakdown]
    bench: Optional[RiderBreakdown] = None
    substitution: SubstitutionBreakdown

class TeamScore(BaseModel):
    total_points: int
    breakdown: TeamScoreBreakdown

def decode_breakdown(data: dict) -> TeamScoreBreakdown:
    version = (data or {}).get("version", BREAKDOWN_VERSION)
    if version not in SUPPORTED_BREAKDOWN_VERSIONS:
        raise GameError(f"Unsupported score breakdown version {version}", 500)
    try:
        return TeamScoreBreakdown.model_validate(data)
    except ValidationError as e:
        raise GameError(f"Score breakdown is corrupt: {e}", 500)

class RaceScoreResponse(BaseModel):
    race_id: int
    user_id: str
    team_type: str
    total_points: int
    breakdown: TeamScoreBreakdown
    settled_at: Optional[datetime] = None
