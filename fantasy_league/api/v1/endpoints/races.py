from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fantasy_league.api import deps
from fantasy_league.models.user import User
from fantasy_league.schemas.race import (
    LockOutcome,
    RaceCreate,
    RaceResponse,
    RaceResultsUpsert,
    ResultsUpsertOutcome,
    SettleOutcome,
    UnlockOutcome,
)
from fantasy_league.schemas.score import RaceScoreResponse
from fantasy_league.schemas.standings import RaceLeaderboardEntry
from fantasy_league.services import races as race_service
from fantasy_league.services.engine import GameEngine

router = APIRouter()

# --- 1. Calendar ---

@router.get("/", response_model=List[RaceResponse])
def read_races(
    season_id: Optional[int] = None,
    db: Session = Depends(deps.get_db),
):
    return race_service.list_races(db, season_id)

@router.post("/", response_model=RaceResponse, status_code=status.HTTP_201_CREATED)
def create_race(
    race_in: RaceCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return race_service.create_race(db, race_in)

@router.delete("/{race_id}")
def delete_race(
    race_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return race_service.delete_race(db, race_id)

# --- 2. Lifecycle (admin) ---

@router.post("/{race_id}/lock", response_model=LockOutcome)
def lock_race(
    race_id: int,
    force: bool = False,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return engine.lock_race(db, race_id, force=force)

@router.post("/{race_id}/unlock", response_model=UnlockOutcome)
def unlock_race(
    race_id: int,
    force: bool = False,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return engine.unlock_race(db, race_id, force=force)

@router.post("/{race_id}/results", response_model=ResultsUpsertOutcome)
def upsert_results(
    race_id: int,
    payload: RaceResultsUpsert,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return engine.upsert_race_results(db, race_id, payload.results, is_final=payload.is_final)

@router.post("/{race_id}/settle", response_model=SettleOutcome)
def settle_race(
    race_id: int,
    force: bool = False,
    allow_provisional: bool = False,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return engine.settle_race(db, race_id, force=force, allow_provisional=allow_provisional)

# --- 3. Scores ---

@router.get("/{race_id}/leaderboard", response_model=List[RaceLeaderboardEntry])
def race_leaderboard(
    race_id: int,
    team_type: Optional[str] = Query(None),
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
):
    return engine.get_race_leaderboard(db, race_id, team_type)

@router.get("/{race_id}/my-score", response_model=RaceScoreResponse)
def my_race_score(
    race_id: int,
    team_type: str = "elite",
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_user),
):
    return engine.get_user_race_score(db, race_id, current_user.id, team_type)
