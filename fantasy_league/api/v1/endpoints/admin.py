from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fantasy_league.api import deps
from fantasy_league.models.user import User
from fantasy_league.schemas.race import TickOutcome, TickRequest
from fantasy_league.schemas.rider import RiderUpsert
from fantasy_league.schemas.season import SeasonCreate, SeasonResponse
from fantasy_league.services.engine import GameEngine
from fantasy_league.services.rider_profiles import upsert_riders
from fantasy_league.services.seasons import create_season, list_seasons

router = APIRouter()

# --- SEASONS ---

@router.get("/seasons", response_model=List[SeasonResponse])
def read_seasons(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return list_seasons(db)

@router.post("/seasons", response_model=SeasonResponse, status_code=status.HTTP_201_CREATED)
def add_season(
    season_in: SeasonCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_admin),
):
    return create_season(db, season_in)

# --- RIDER CATALOG ---

@router.post("/riders")
def import_riders(
    riders: List[RiderUpsert],
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_active_admin),
):
    """Creates or refreshes catalog entries (gender, category, cost) by UCI id."""
    return upsert_riders(db, riders)

# --- GAME TICK ---

@router.post("/tick", response_model=TickOutcome)
def run_tick(
    payload: TickRequest,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_active_admin),
):
    """Runs a tick now instead of waiting for the scheduler."""
    return engine.run_tick(
        db,
        allow_provisional=payload.allow_provisional,
        force_lock=payload.force_lock,
        force_settle=payload.force_settle,
    )
