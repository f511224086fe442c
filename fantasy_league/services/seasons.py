import logging
from datetime import datetime
from typing import List
from sqlalchemy.orm import Session

from fantasy_league.core.clock import force_utc
from fantasy_league.db.session import transaction
from fantasy_league.models.season import Season
from fantasy_league.schemas.season import SeasonCreate

logger = logging.getLogger(__name__)


def list_seasons(db: Session) -> List[Season]:
    return db.query(Season).order_by(Season.start_at.desc()).all()


def create_season(db: Session, season_in: SeasonCreate) -> Season:
    with transaction(db):
        season = Season(
            name=season_in.name,
            start_at=force_utc(season_in.start_at),
            end_at=force_utc(season_in.end_at),
        )
        db.add(season)
        db.flush()
        logger.info(f"Season created: {season.id} {season.name}")
        return season


def get_season_id_for_date(db: Session, when: datetime) -> int:
    """
    The season running at `when`, else the most recent one. With no seasons
    at all, a calendar-year season is created.
    """
    current = db.query(Season).filter(
        Season.start_at <= when,
        Season.end_at >= when,
    ).order_by(Season.start_at.desc()).first()
    if current:
        return current.id

    latest = db.query(Season).order_by(Season.start_at.desc()).first()
    if latest:
        return latest.id

    year = when.year
    return create_season(db, SeasonCreate(
        name=f"Season {year}",
        start_at=datetime(year, 1, 1),
        end_at=datetime(year, 12, 31, 23, 59, 59, 999000),
    )).id
