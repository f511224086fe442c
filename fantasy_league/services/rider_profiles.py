import logging
from typing import Dict, Iterable, List
from sqlalchemy.orm import Session

from fantasy_league.db.session import transaction
from fantasy_league.models.rider import Rider, Gender, RiderCategory
from fantasy_league.schemas.rider import RiderProfile, RiderUpsert

logger = logging.getLogger(__name__)


def _normalize_category(value: str) -> str:
    if value == RiderCategory.BOTH.value:
        return RiderCategory.BOTH.value
    if value == RiderCategory.JUNIOR.value:
        return RiderCategory.JUNIOR.value
    return RiderCategory.ELITE.value


def _normalize_gender(value: str) -> str:
    return Gender.FEMALE.value if value == Gender.FEMALE.value else Gender.MALE.value


def fetch_rider_profiles(db: Session, uci_ids: Iterable[str]) -> Dict[str, RiderProfile]:
    """Loads gender, category and cost of the given riders in a single query."""
    ids = list({uci_id for uci_id in uci_ids if uci_id})
    if not ids:
        return {}

    rows = db.query(Rider).filter(Rider.uci_id.in_(ids)).all()
    return {
        rider.uci_id: RiderProfile(
            uci_id=rider.uci_id,
            gender=_normalize_gender(rider.gender),
            category=_normalize_category(rider.category),
            cost=rider.cost,
        )
        for rider in rows
    }


def upsert_riders(db: Session, riders: List[RiderUpsert]) -> dict:
    """Catalog import: inserts new riders and refreshes known ones by UCI id."""
    incoming = {rider.uci_id: rider for rider in riders}
    with transaction(db):
        existing = {
            rider.uci_id: rider
            for rider in db.query(Rider).filter(Rider.uci_id.in_(list(incoming))).all()
        } if incoming else {}

        created = 0
        updated = 0
        for uci_id, rider_in in incoming.items():
            rider = existing.get(uci_id)
            if rider is None:
                db.add(Rider(**rider_in.model_dump()))
                created += 1
                continue
            rider.name = rider_in.name
            rider.team = rider_in.team
            rider.gender = rider_in.gender
            rider.category = rider_in.category
            rider.cost = rider_in.cost
            updated += 1

        logger.info(f"Rider catalog: {created} created, {updated} updated")
        return {"created": created, "updated": updated}
