from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime

class StarterInput(BaseModel):
    uci_id: str
    starter_index: int

class BenchInput(BaseModel):
    uci_id: str

class RosterInput(BaseModel):
    """Roster sent by the team builder. Composition rules live in the validator."""
    name: Optional[str] = None
    starters: List[StarterInput]
    bench: Optional[BenchInput] = None

    @field_validator('name')
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None

class TeamValidationError(BaseModel):
    code: str
    message: str

class TeamMemberResponse(BaseModel):
    uci_id: str
    role: str
    starter_index: Optional[int] = None
    gender: str
    cost_at_save: int

    class Config:
        from_attributes = True

class TeamResponse(BaseModel):
    id: int
    user_id: str
    season_id: int
    team_type: str
    name: str
    budget_cap: int
    swaps_used: int
    swaps_remaining: int
    current_race_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TeamRosterResponse(BaseModel):
    team: TeamResponse
    starters: List[TeamMemberResponse]
    bench: Optional[TeamMemberResponse] = None

class UserTeamsResponse(BaseModel):
    season_id: int
    teams: List[TeamRosterResponse]

class JokerRequest(BaseModel):
    team_type: str
    season_id: Optional[int] = None

class JokerResponse(BaseModel):
    success: bool
    next_race_id: int
    team_type: str
