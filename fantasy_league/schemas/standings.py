from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class RaceLeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    team_type: str
    total_points: int

class SeasonStandingEntry(BaseModel):
    rank: int
    user_id: str
    total_points: int
    race_wins: int
    highest_single_race_score: int
    podium_finishes: int
    earliest_team_created_at: Optional[datetime] = None
