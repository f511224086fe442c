import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from fantasy_league.core.clock import utc_now
from fantasy_league.core.errors import ConflictError, NotFoundError, NotReadyError
from fantasy_league.core.rules import GAME_VERSION, GameRules
from fantasy_league.db.session import transaction
from fantasy_league.models.race import Race, RaceResultSet, RaceStatus
from fantasy_league.models.score import RaceScore
from fantasy_league.models.snapshot import RaceSnapshot
from fantasy_league.models.team import Team, TeamType
from fantasy_league.schemas.race import LockOutcome, UnlockOutcome
from fantasy_league.schemas.rider import RiderProfile
from fantasy_league.schemas.snapshot import SNAPSHOT_SCHEMA_VERSION, SnapshotRider
from fantasy_league.schemas.team import BenchInput, StarterInput
from fantasy_league.services.hashing import hash_payload
from fantasy_league.services.rider_profiles import fetch_rider_profiles
from fantasy_league.services.teams import split_members
from fantasy_league.services.validation import validate_team

logger = logging.getLogger(__name__)

# Past "locked" the race carries results and scores visible to players
PROGRESSED_STATUSES = {RaceStatus.PROVISIONAL.value, RaceStatus.FINAL.value, RaceStatus.SETTLED.value}


def build_snapshot_payload(
    race_id: int,
    user_id: str,
    team_type: TeamType,
    starters: List[SnapshotRider],
    bench: Optional[SnapshotRider],
) -> dict:
    """The canonical content of a snapshot; its hash identifies the roster at lock."""
    total_cost = sum(s.cost_at_lock for s in starters) + (bench.cost_at_lock if bench else 0)
    return {
        "game_version": GAME_VERSION,
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "race_id": race_id,
        "user_id": user_id,
        "team_type": team_type.value,
        "starters": [s.model_dump() for s in starters],
        "bench": bench.model_dump() if bench else None,
        "total_cost_at_lock": total_cost,
    }


class RaceLifecycleService:
    """Lock and unlock of races, and the snapshots they produce."""

    def __init__(self, rules: GameRules, clock: Callable[[], datetime] = utc_now):
        self.rules = rules
        self.clock = clock

    def lock_race(self, db: Session, race_id: int, force: bool = False) -> LockOutcome:
        """
        Freezes every valid roster of the race's season into a snapshot.

        Safe to call again: identical rosters are no-ops, a roster that changed
        since the first lock is a conflict unless force overwrites it. Invalid
        rosters are skipped and score nothing for this race.
        """
        with transaction(db):
            race = db.query(Race).filter(Race.id == race_id).first()
            if not race:
                raise NotFoundError(f"Race {race_id} not found")

            now = self.clock()
            lock_at = race.effective_lock_at(self.rules.lock_lead_hours)
            status = race.game_status or RaceStatus.SCHEDULED.value

            if not force and now < lock_at:
                return LockOutcome(
                    race_id=race_id, locked_teams=0, skipped_teams=0, lock_at=lock_at,
                    status=status, locked=status == RaceStatus.LOCKED.value,
                )

            if status == RaceStatus.SCHEDULED.value:
                race.game_status = RaceStatus.LOCKED.value
                status = RaceStatus.LOCKED.value

            locked_teams = 0
            skipped_teams = 0
            for team_type in self.rules.enabled_team_types():
                locked, skipped = self._snapshot_team_type(db, race, team_type, now, force)
                locked_teams += locked
                skipped_teams += skipped

            db.flush()
            logger.info(
                f"Race {race_id} lock: {locked_teams} snapshots written, {skipped_teams} rosters skipped (status {status})"
            )
            return LockOutcome(
                race_id=race_id, locked_teams=locked_teams, skipped_teams=skipped_teams,
                lock_at=lock_at, status=status, locked=status == RaceStatus.LOCKED.value,
            )

    def _snapshot_team_type(self, db: Session, race: Race, team_type: TeamType, now: datetime, force: bool):
        teams = db.query(Team).filter(
            Team.season_id == race.season_id,
            Team.team_type == team_type.value,
        ).order_by(Team.id).all()
        if not teams:
            return 0, 0

        all_ids = [member.uci_id for team in teams for member in team.members]
        riders = fetch_rider_profiles(db, all_ids)

        existing: Dict[str, RaceSnapshot] = {
            snapshot.user_id: snapshot
            for snapshot in db.query(RaceSnapshot).filter(
                RaceSnapshot.race_id == race.id,
                RaceSnapshot.team_type == team_type.value,
            ).all()
        }

        locked = 0
        skipped = 0
        for team in teams:
            starters, bench_member = split_members(team.members)
            starters_input = [
                StarterInput(uci_id=m.uci_id, starter_index=m.starter_index if m.starter_index is not None else -1)
                for m in starters
            ]
            bench_input = BenchInput(uci_id=bench_member.uci_id) if bench_member else None

            # Held riders keep their grandfathered cost for the budget check
            overrides = {
                m.uci_id: min(m.cost_at_save, riders[m.uci_id].cost)
                for m in team.members if m.uci_id in riders
            }
            validation = validate_team(
                team_type, starters_input, bench_input, riders,
                self.rules.budget_for(team_type), self.rules, overrides,
            )
            if not validation.ok:
                skipped += 1
                logger.info(
                    f"Race {race.id}: roster of {team.user_id} ({team_type.value}) skipped: "
                    f"{', '.join(e.code for e in validation.errors)}"
                )
                continue

            snap_starters = [self._snapshot_rider(riders[s.uci_id]) for s in starters_input]
            snap_bench = self._snapshot_rider(riders[bench_input.uci_id]) if bench_input else None
            payload = build_snapshot_payload(race.id, team.user_id, team_type, snap_starters, snap_bench)
            snapshot_hash = hash_payload(payload)

            current = existing.get(team.user_id)
            if current is None:
                db.add(RaceSnapshot(
                    race_id=race.id,
                    user_id=team.user_id,
                    team_type=team_type.value,
                    schema_version=SNAPSHOT_SCHEMA_VERSION,
                    starters_json=payload["starters"],
                    bench_json=payload["bench"],
                    total_cost_at_lock=payload["total_cost_at_lock"],
                    snapshot_hash=snapshot_hash,
                    created_at=now,
                ))
                locked += 1
                continue

            if current.snapshot_hash == snapshot_hash:
                continue

            if not force:
                raise ConflictError(
                    f"Snapshot mismatch for user {team.user_id} ({team_type.value}). Team changed after lock."
                )

            logger.warning(f"Race {race.id}: overwriting snapshot of {team.user_id} ({team_type.value})")
            current.schema_version = SNAPSHOT_SCHEMA_VERSION
            current.starters_json = payload["starters"]
            current.bench_json = payload["bench"]
            current.total_cost_at_lock = payload["total_cost_at_lock"]
            current.snapshot_hash = snapshot_hash
            locked += 1

        return locked, skipped

    @staticmethod
    def _snapshot_rider(rider: RiderProfile) -> SnapshotRider:
        return SnapshotRider(uci_id=rider.uci_id, gender=rider.gender, cost_at_lock=rider.cost)

    def unlock_race(self, db: Session, race_id: int, force: bool = False) -> UnlockOutcome:
        """
        Administrative reversal to "scheduled". Snapshots always go; scores and
        the result set of a race past "locked" only go with force.
        """
        with transaction(db):
            race = db.query(Race).filter(Race.id == race_id).first()
            if not race:
                raise NotFoundError(f"Race {race_id} not found")

            previous_status = race.game_status or RaceStatus.SCHEDULED.value
            needs_force = previous_status in PROGRESSED_STATUSES
            if needs_force and not force:
                raise NotReadyError(f"Race {race_id} is {previous_status}; use force to unlock")

            removed_snapshots = db.query(RaceSnapshot).filter(
                RaceSnapshot.race_id == race_id
            ).delete(synchronize_session=False)

            removed_scores = 0
            removed_result_sets = 0
            if needs_force:
                removed_scores = db.query(RaceScore).filter(
                    RaceScore.race_id == race_id
                ).delete(synchronize_session=False)
                removed_result_sets = db.query(RaceResultSet).filter(
                    RaceResultSet.race_id == race_id
                ).delete(synchronize_session=False)

            race.game_status = RaceStatus.SCHEDULED.value
            race.needs_resettle = False

            logger.warning(
                f"Race {race_id} unlocked from {previous_status}: removed {removed_snapshots} snapshots, "
                f"{removed_scores} scores, {removed_result_sets} result sets"
            )
            return UnlockOutcome(
                race_id=race_id,
                previous_status=previous_status,
                removed_snapshots=removed_snapshots,
                removed_scores=removed_scores,
                removed_result_sets=removed_result_sets,
            )
