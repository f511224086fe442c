from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List, Optional

from fantasy_league.models.race import RaceStatus, ResultStatus

class RaceBase(BaseModel):
    name: str
    location: Optional[str] = None
    country: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    lock_at: Optional[datetime] = None

class RaceCreate(RaceBase):
    season_id: int

class RaceResponse(RaceBase):
    id: int
    season_id: int
    game_status: RaceStatus
    needs_resettle: bool

    class Config:
        from_attributes = True

class RaceResultIn(BaseModel):
    uci_id: str
    status: ResultStatus = ResultStatus.DNS
    position: Optional[int] = None
    qualification_position: Optional[int] = None

    @field_validator('status', mode='before')
    def normalize_status(cls, v):
        """Unknown or missing statuses count as a non-start"""
        if isinstance(v, ResultStatus):
            return v
        raw = str(v or "").strip().upper()
        if raw in ResultStatus.__members__:
            return ResultStatus(raw)
        return ResultStatus.DNS

    @field_validator('position', 'qualification_position')
    def positive_position(cls, v):
        if v is not None and v <= 0:
            return None
        return v

class RaceResultsUpsert(BaseModel):
    results: List[RaceResultIn]
    is_final: bool = False

class ResultsUpsertOutcome(BaseModel):
    race_id: int
    updated: int
    status: RaceStatus
    needs_resettle: bool

# --- Lifecycle outcomes ---

class LockOutcome(BaseModel):
    race_id: int
    locked_teams: int
    skipped_teams: int
    lock_at: datetime
    status: RaceStatus
    locked: bool

class UnlockOutcome(BaseModel):
    race_id: int
    previous_status: RaceStatus
    removed_snapshots: int
    removed_scores: int
    removed_result_sets: int

class SettleOutcome(BaseModel):
    race_id: int
    results_hash: str
    updated_scores: int
    cost_updates_applied: bool
    # Costs still reflect an earlier result set (settle again with force)
    cost_updates_stale: bool = False

class TickError(BaseModel):
    race_id: int
    stage: str # "lock" | "settle"
    message: str

class TickOutcome(BaseModel):
    now: datetime
    locked: List[LockOutcome] = []
    settled: List[SettleOutcome] = []
    errors: List[TickError] = []

class TickRequest(BaseModel):
    allow_provisional: bool = False
    force_lock: bool = False
    force_settle: bool = False
