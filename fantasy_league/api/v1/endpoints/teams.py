from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fantasy_league.api import deps
from fantasy_league.models.user import User
from fantasy_league.schemas.team import (
    JokerRequest,
    JokerResponse,
    RosterInput,
    TeamRosterResponse,
    UserTeamsResponse,
)
from fantasy_league.services.engine import GameEngine
from fantasy_league.services.seasons import get_season_id_for_date

router = APIRouter()

@router.get("/me", response_model=UserTeamsResponse)
def read_my_teams(
    season_id: Optional[int] = None,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_user),
):
    """Rosters of the logged user (starters by slot, then bench)"""
    if season_id is None:
        season_id = get_season_id_for_date(db, engine.clock())
    return engine.get_user_teams(db, current_user.id, season_id)

@router.put("/me/{team_type}", response_model=TeamRosterResponse)
def save_my_roster(
    team_type: str,
    roster: RosterInput,
    season_id: Optional[int] = None,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_user),
):
    if season_id is None:
        season_id = get_season_id_for_date(db, engine.clock())
    return engine.upsert_roster(db, current_user.id, season_id, team_type, roster)

@router.post("/me/joker", response_model=JokerResponse)
def use_joker(
    payload: JokerRequest,
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
    current_user: User = Depends(deps.get_current_user),
):
    return engine.use_joker(db, current_user.id, payload.team_type, payload.season_id)
