import logging
from datetime import datetime
from typing import Callable, Dict, Optional
from sqlalchemy.orm import Session

from fantasy_league.core.clock import utc_now
from fantasy_league.core.errors import NotFoundError, NotReadyError
from fantasy_league.core.rules import GAME_VERSION, GameRules
from fantasy_league.db.session import transaction
from fantasy_league.models.race import Race, RaceResult, RaceResultSet, RaceStatus
from fantasy_league.models.score import RaceScore
from fantasy_league.models.snapshot import RaceSnapshot
from fantasy_league.schemas.race import RaceResultIn, SettleOutcome
from fantasy_league.schemas.snapshot import decode_snapshot
from fantasy_league.services.cost_updates import apply_rider_cost_updates
from fantasy_league.services.hashing import hash_payload
from fantasy_league.services.scoring import score_team_snapshot

logger = logging.getLogger(__name__)

FINAL_STATUSES = {RaceStatus.FINAL.value, RaceStatus.SETTLED.value}


def build_results_payload(race_id: int, results) -> dict:
    ordered = sorted(results, key=lambda r: r.uci_id)
    return {
        "game_version": GAME_VERSION,
        "race_id": race_id,
        "results": [
            {
                "uci_id": r.uci_id,
                "status": r.status.value,
                "position": r.position,
                "qualification_position": r.qualification_position,
            }
            for r in ordered
        ],
    }


class SettlementService:
    """Turns snapshots + results into race scores, once per distinct input."""

    def __init__(self, rules: GameRules, clock: Callable[[], datetime] = utc_now):
        self.rules = rules
        self.clock = clock

    def settle_race(
        self,
        db: Session,
        race_id: int,
        force: bool = False,
        allow_provisional: bool = False,
    ) -> SettleOutcome:
        """
        Scores every snapshot of the race. A score whose snapshot and result
        hashes both still match is left alone (force recomputes everything).
        Final data also triggers the rider cost revaluation.
        """
        with transaction(db):
            race = db.query(Race).filter(Race.id == race_id).first()
            if not race:
                raise NotFoundError(f"Race {race_id} not found")

            status = race.game_status or RaceStatus.SCHEDULED.value
            can_settle = status in FINAL_STATUSES or (allow_provisional and status == RaceStatus.PROVISIONAL.value)
            if not can_settle:
                raise NotReadyError(f'Race {race_id} status "{status}" is not ready to settle')

            rows = db.query(RaceResult).filter(RaceResult.race_id == race_id).all()
            if not rows:
                raise NotReadyError(f"Race {race_id} has no results loaded. Import results before settling.")

            results = [
                RaceResultIn(
                    uci_id=row.uci_id,
                    status=row.status,
                    position=row.position,
                    qualification_position=row.qualification_position,
                )
                for row in rows
            ]
            results_hash = hash_payload(build_results_payload(race_id, results))
            result_set = db.query(RaceResultSet).filter(RaceResultSet.race_id == race_id).first()
            if status == RaceStatus.SETTLED.value:
                # Nothing was ingested since the last settle, keep its finality
                is_final = bool(result_set and result_set.is_final)
            else:
                is_final = status == RaceStatus.FINAL.value
            now = self.clock()

            snapshots = db.query(RaceSnapshot).filter(RaceSnapshot.race_id == race_id).all()
            if not snapshots:
                raise NotReadyError(f"Race {race_id} has no team snapshots. Lock the race before settling.")

            self._record_result_set(db, race_id, result_set, results_hash, is_final, now)

            results_by_uci_id: Dict[str, RaceResultIn] = {r.uci_id: r for r in results}
            existing_scores = {
                (score.user_id, score.team_type): score
                for score in db.query(RaceScore).filter(RaceScore.race_id == race_id).all()
            }

            updated_scores = 0
            for snapshot in snapshots:
                existing = existing_scores.get((snapshot.user_id, snapshot.team_type))
                if (
                    existing is not None
                    and not force
                    and existing.snapshot_hash_used == snapshot.snapshot_hash
                    and existing.results_hash_used == results_hash
                ):
                    continue

                scored = score_team_snapshot(decode_snapshot(snapshot), results_by_uci_id, self.rules)
                breakdown = scored.breakdown.model_dump()

                if existing is None:
                    db.add(RaceScore(
                        race_id=race_id,
                        user_id=snapshot.user_id,
                        team_type=snapshot.team_type,
                        total_points=scored.total_points,
                        breakdown_json=breakdown,
                        snapshot_hash_used=snapshot.snapshot_hash,
                        results_hash_used=results_hash,
                        settled_at=now,
                    ))
                else:
                    existing.total_points = scored.total_points
                    existing.breakdown_json = breakdown
                    existing.snapshot_hash_used = snapshot.snapshot_hash
                    existing.results_hash_used = results_hash
                    existing.settled_at = now
                updated_scores += 1

            cost_updates_applied = False
            cost_updates_stale = False
            if is_final:
                outcome = apply_rider_cost_updates(db, race_id, results_hash, results, now, force=force)
                cost_updates_applied = outcome.applied
                cost_updates_stale = outcome.stale

            if race.game_status != RaceStatus.SETTLED.value:
                race.game_status = RaceStatus.SETTLED.value
            if race.needs_resettle:
                race.needs_resettle = False

            logger.info(f"Race {race_id} settled: {updated_scores} scores written (results {results_hash[:12]})")
            return SettleOutcome(
                race_id=race_id,
                results_hash=results_hash,
                updated_scores=updated_scores,
                cost_updates_applied=cost_updates_applied,
                cost_updates_stale=cost_updates_stale,
            )

    @staticmethod
    def _record_result_set(
        db: Session,
        race_id: int,
        result_set: Optional[RaceResultSet],
        results_hash: str,
        is_final: bool,
        now: datetime,
    ):
        if result_set is None:
            db.add(RaceResultSet(race_id=race_id, results_hash=results_hash, is_final=is_final, updated_at=now))
            return
        if result_set.results_hash == results_hash and result_set.is_final == is_final:
            return
        result_set.results_hash = results_hash
        result_set.is_final = is_final
        result_set.updated_at = now
