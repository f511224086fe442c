import logging
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from fantasy_league.core.clock import force_utc, utc_now
from fantasy_league.core.errors import NotFoundError, NotReadyError
from fantasy_league.db.session import transaction
from fantasy_league.models.cost_update import RiderCostUpdate
from fantasy_league.models.joker import JokerCard
from fantasy_league.models.race import Race, RaceResult, RaceResultSet, RaceStatus
from fantasy_league.models.score import RaceScore
from fantasy_league.models.season import Season
from fantasy_league.models.snapshot import RaceSnapshot
from fantasy_league.models.team import Team
from fantasy_league.schemas.race import RaceCreate, RaceResultIn, ResultsUpsertOutcome

logger = logging.getLogger(__name__)

# Results are only accepted once rosters are frozen
RESULT_READY_STATUSES = {
    RaceStatus.LOCKED.value,
    RaceStatus.PROVISIONAL.value,
    RaceStatus.FINAL.value,
    RaceStatus.SETTLED.value,
}


def list_races(db: Session, season_id: Optional[int] = None) -> List[Race]:
    query = db.query(Race)
    if season_id is not None:
        query = query.filter(Race.season_id == season_id)
    return query.order_by(Race.start_date).all()


def create_race(db: Session, race_in: RaceCreate) -> Race:
    with transaction(db):
        season = db.query(Season).filter(Season.id == race_in.season_id).first()
        if not season:
            raise NotFoundError(f"Season {race_in.season_id} not found")

        race = Race(
            season_id=race_in.season_id,
            name=race_in.name,
            location=race_in.location,
            country=race_in.country,
            start_date=force_utc(race_in.start_date),
            end_date=force_utc(race_in.end_date),
            lock_at=force_utc(race_in.lock_at),
            game_status=RaceStatus.SCHEDULED.value,
            needs_resettle=False,
        )
        db.add(race)
        db.flush()
        logger.info(f"Race created: {race.id} {race.name} (season {race.season_id})")
        return race


def delete_race(db: Session, race_id: int) -> dict:
    """Deletes a race together with every row that references it."""
    with transaction(db):
        race = db.query(Race).filter(Race.id == race_id).first()
        if not race:
            raise NotFoundError(f"Race {race_id} not found")

        for model in (RaceSnapshot, RaceResult, RaceResultSet, RaceScore, RiderCostUpdate):
            db.query(model).filter(model.race_id == race_id).delete(synchronize_session=False)

        # Rosters and jokers anchored to this race fall back to no anchor
        db.query(Team).filter(Team.current_race_id == race_id).update(
            {Team.current_race_id: None}, synchronize_session=False
        )
        db.query(JokerCard).filter(JokerCard.active_race_id == race_id).update(
            {JokerCard.active_race_id: None}, synchronize_session=False
        )

        name = race.name
        db.delete(race)
        logger.warning(f"Race {race_id} ({name}) deleted")
        return {"deleted": True, "race_id": race_id, "name": name}


def upsert_race_results(
    db: Session,
    race_id: int,
    results: List[RaceResultIn],
    is_final: bool = False,
    clock: Callable[[], datetime] = utc_now,
) -> ResultsUpsertOutcome:
    """
    Stores provisional or final results of a locked race. New or changed
    results of a settled race (or its promotion to final) flag it for
    re-settlement; an identical resend leaves it settled.
    """
    with transaction(db):
        race = db.query(Race).filter(Race.id == race_id).first()
        if not race:
            raise NotFoundError(f"Race {race_id} not found")

        status = race.game_status or RaceStatus.SCHEDULED.value
        if status not in RESULT_READY_STATUSES:
            raise NotReadyError(f'Race {race_id} must be locked before results are imported (status "{status}")')

        now = clock()
        existing = {
            row.uci_id: row
            for row in db.query(RaceResult).filter(RaceResult.race_id == race_id).all()
        }

        # Last entry wins when the feed repeats a rider
        incoming = {result.uci_id: result for result in results}
        changed = False
        for uci_id, result in incoming.items():
            row = existing.get(uci_id)
            if row is None:
                changed = True
                db.add(RaceResult(
                    race_id=race_id,
                    uci_id=uci_id,
                    status=result.status.value,
                    position=result.position,
                    qualification_position=result.qualification_position,
                    updated_at=now,
                ))
                continue
            if (
                row.status == result.status.value
                and row.position == result.position
                and row.qualification_position == result.qualification_position
            ):
                continue
            changed = True
            row.status = result.status.value
            row.position = result.position
            row.qualification_position = result.qualification_position
            row.updated_at = now

        next_status = RaceStatus.FINAL.value if is_final else RaceStatus.PROVISIONAL.value
        if status == RaceStatus.SETTLED.value:
            result_set = db.query(RaceResultSet).filter(RaceResultSet.race_id == race_id).first()
            promoted = is_final and not (result_set and result_set.is_final)
            if changed or promoted:
                race.needs_resettle = True
            else:
                next_status = RaceStatus.SETTLED.value
        if race.game_status != next_status:
            race.game_status = next_status

        logger.info(f"Race {race_id}: {len(incoming)} results stored as {next_status}")
        return ResultsUpsertOutcome(
            race_id=race_id,
            updated=len(incoming),
            status=next_status,
            needs_resettle=bool(race.needs_resettle),
        )
