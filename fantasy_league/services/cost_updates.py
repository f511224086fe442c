import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from fantasy_league.models.cost_update import RiderCostUpdate
from fantasy_league.models.race import ResultStatus
from fantasy_league.models.rider import Rider
from fantasy_league.schemas.race import RaceResultIn

logger = logging.getLogger(__name__)

NON_FINISH_CUT_PERCENT = 10


def _round_up_to_thousand(numerator: int, denominator: int) -> int:
    # Round to a whole unit first (half up), then up to the next multiple of 1000
    rounded = (2 * numerator + denominator) // (2 * denominator)
    return -(-rounded // 1000) * 1000


def calculate_updated_cost(current_cost: int, status: str, position: Optional[int]) -> Tuple[int, int]:
    """
    Post-race revaluation of one rider, returns (updated_cost, delta).
    Top 10: +(11 - position)%. Other finishers: unchanged. Non-finish: -10%.
    """
    status = ResultStatus(status).value
    if status == ResultStatus.FIN.value and position is not None and 0 < position <= 10:
        percent = 11 - position
        updated = _round_up_to_thousand(current_cost * (100 + percent), 100)
        return updated, updated - current_cost

    if status == ResultStatus.FIN.value:
        return current_cost, 0

    updated = _round_up_to_thousand(current_cost * (100 - NON_FINISH_CUT_PERCENT), 100)
    return updated, updated - current_cost


class CostUpdateOutcome:
    def __init__(self, applied: bool, updates: List[RiderCostUpdate], stale: bool = False):
        self.applied = applied
        self.updates = updates
        self.stale = stale


def apply_rider_cost_updates(
    db: Session,
    race_id: int,
    results_hash: str,
    results: List[RaceResultIn],
    now: datetime,
    force: bool = False,
) -> CostUpdateOutcome:
    """
    Applies the cost revaluation of a race once per result set. Runs inside
    the caller's transaction.

    Already applied with the same hash: no-op. Applied with another hash: no-op
    unless forced, in which case the previous deltas are reverted first.
    """
    existing = db.query(RiderCostUpdate).filter(RiderCostUpdate.race_id == race_id).all()

    if existing:
        same_hash = all(entry.results_hash == results_hash for entry in existing)
        if same_hash and not force:
            return CostUpdateOutcome(False, [])
        if not force:
            logger.warning(
                f"Race {race_id}: cost updates already applied for another result set; use force to reapply"
            )
            return CostUpdateOutcome(False, [], stale=True)

        previous_costs = {entry.uci_id: entry.previous_cost for entry in existing}
        for rider in db.query(Rider).filter(Rider.uci_id.in_(list(previous_costs))).all():
            rider.cost = previous_costs[rider.uci_id]
        for entry in existing:
            db.delete(entry)
        db.flush()
        logger.info(f"Race {race_id}: reverted {len(existing)} cost updates")

    if not results:
        return CostUpdateOutcome(False, [])

    uci_ids = list({result.uci_id for result in results})
    riders_by_uci_id = {
        rider.uci_id: rider
        for rider in db.query(Rider).filter(Rider.uci_id.in_(uci_ids)).all()
    }

    updates = []
    for result in results:
        rider = riders_by_uci_id.get(result.uci_id)
        if rider is None:
            continue

        updated_cost, delta = calculate_updated_cost(rider.cost, result.status.value, result.position)
        updates.append(RiderCostUpdate(
            race_id=race_id,
            uci_id=result.uci_id,
            status=result.status.value,
            position=result.position,
            previous_cost=rider.cost,
            updated_cost=updated_cost,
            delta=delta,
            results_hash=results_hash,
            created_at=now,
        ))
        if delta != 0:
            rider.cost = updated_cost

    if not updates:
        return CostUpdateOutcome(False, updates)

    db.add_all(updates)
    db.flush()
    logger.info(f"Race {race_id}: applied {len(updates)} rider cost updates")
    return CostUpdateOutcome(True, updates)
