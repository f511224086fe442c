from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fantasy_league.api import deps
from fantasy_league.schemas.standings import SeasonStandingEntry
from fantasy_league.services.engine import GameEngine
from fantasy_league.services.seasons import get_season_id_for_date

router = APIRouter()

@router.get("/", response_model=List[SeasonStandingEntry])
def current_standings(
    team_type: Optional[str] = Query(None),
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
):
    season_id = get_season_id_for_date(db, engine.clock())
    return engine.get_season_standings(db, season_id, team_type)

@router.get("/{season_id}", response_model=List[SeasonStandingEntry])
def season_standings(
    season_id: int,
    team_type: Optional[str] = Query(None),
    db: Session = Depends(deps.get_db),
    engine: GameEngine = Depends(deps.get_game_engine),
):
    return engine.get_season_standings(db, season_id, team_type)
