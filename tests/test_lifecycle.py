from datetime import timedelta

import pytest

from fantasy_league.core.errors import ConflictError, NotFoundError, NotReadyError
from fantasy_league.models.race import Race, RaceResultSet, RaceStatus
from fantasy_league.models.rider import Rider
from fantasy_league.models.score import RaceScore
from fantasy_league.models.snapshot import RaceSnapshot
from fantasy_league.models.team import TeamMember, TeamType
from fantasy_league.schemas.race import RaceResultIn

from helpers import NOW, make_race, make_season, make_team, seed_catalog

BOB_STARTERS = ["m5", "m6", "m3", "m4", "f1", "f4"]


@pytest.fixture
def season(db):
    seed_catalog(db)
    season = make_season(db)
    make_team(db, season, "alice")
    make_team(db, season, "bob", starters=BOB_STARTERS)
    return season


@pytest.fixture
def race(db, season):
    # Default lock (48h before start) has already passed
    return make_race(db, season, "Round 1", NOW + timedelta(hours=24))


def _snapshots(db, race_id):
    return {s.user_id: s for s in db.query(RaceSnapshot).filter(RaceSnapshot.race_id == race_id).all()}


def test_lock_before_lock_time_writes_nothing(db, game, season, writes):
    race = make_race(db, season, "Round 1", NOW + timedelta(days=5))
    writes.reset()

    outcome = game.lock_race(db, race.id)

    assert outcome.locked is False
    assert outcome.status == RaceStatus.SCHEDULED
    assert outcome.lock_at == race.start_date - timedelta(hours=48)
    assert (outcome.locked_teams, outcome.skipped_teams) == (0, 0)
    assert writes.count == 0


def test_force_locks_early(db, game, season):
    race = make_race(db, season, "Round 1", NOW + timedelta(days=5))
    outcome = game.lock_race(db, race.id, force=True)
    assert outcome.locked is True
    assert outcome.locked_teams == 2


def test_lock_snapshots_every_valid_roster(db, game, race):
    outcome = game.lock_race(db, race.id)

    assert outcome.locked is True
    assert outcome.status == RaceStatus.LOCKED
    assert (outcome.locked_teams, outcome.skipped_teams) == (2, 0)
    assert db.query(Race).filter(Race.id == race.id).one().game_status == "locked"

    snapshots = _snapshots(db, race.id)
    alice = snapshots["alice"]
    assert [s["uci_id"] for s in alice.starters_json] == ["m1", "m2", "m3", "m4", "f1", "f2"]
    assert alice.bench_json == {"uci_id": "f3", "gender": "female", "cost_at_lock": 150_000}
    assert alice.total_cost_at_lock == 1_450_000
    assert alice.schema_version == 1
    assert len(alice.snapshot_hash) == 64
    assert alice.snapshot_hash != snapshots["bob"].snapshot_hash


def test_relock_is_a_full_noop(db, game, race, writes):
    game.lock_race(db, race.id)
    writes.reset()

    outcome = game.lock_race(db, race.id)

    assert (outcome.locked_teams, outcome.skipped_teams) == (0, 0)
    assert outcome.status == RaceStatus.LOCKED
    assert writes.count == 0


def test_roster_change_after_lock_conflicts_unless_forced(db, game, race):
    game.lock_race(db, race.id)
    original_hash = _snapshots(db, race.id)["alice"].snapshot_hash

    member = db.query(TeamMember).filter(TeamMember.uci_id == "m1").first()
    member.uci_id = "m5"
    member.cost_at_save = 100_000
    db.commit()

    with pytest.raises(ConflictError):
        game.lock_race(db, race.id)
    assert _snapshots(db, race.id)["alice"].snapshot_hash == original_hash

    outcome = game.lock_race(db, race.id, force=True)
    assert outcome.locked_teams == 1
    assert _snapshots(db, race.id)["alice"].snapshot_hash != original_hash
    assert _snapshots(db, race.id)["alice"].starters_json[0]["uci_id"] == "m5"


def test_invalid_roster_is_skipped(db, game, season, race):
    make_team(db, season, "carol", starters=["m1", "m2", "m3", "m4", "m5", "f1"])

    outcome = game.lock_race(db, race.id)

    assert (outcome.locked_teams, outcome.skipped_teams) == (2, 1)
    assert "carol" not in _snapshots(db, race.id)


def test_snapshot_uses_catalog_cost_at_lock(db, game, race):
    db.query(Rider).filter(Rider.uci_id == "m1").update({Rider.cost: 320_000})
    db.commit()

    game.lock_race(db, race.id)

    assert _snapshots(db, race.id)["alice"].starters_json[0]["cost_at_lock"] == 320_000


def test_disabled_junior_rosters_are_ignored(db, game, season, race):
    make_team(db, season, "dave", team_type=TeamType.JUNIOR)
    outcome = game.lock_race(db, race.id)
    assert outcome.locked_teams == 2
    assert db.query(RaceSnapshot).filter(RaceSnapshot.team_type == "junior").count() == 0


def test_lock_unknown_race(db, game):
    with pytest.raises(NotFoundError):
        game.lock_race(db, 999)


def test_unlock_locked_race(db, game, race):
    game.lock_race(db, race.id)

    outcome = game.unlock_race(db, race.id)

    assert outcome.previous_status == RaceStatus.LOCKED
    assert outcome.removed_snapshots == 2
    assert db.query(RaceSnapshot).count() == 0
    assert db.query(Race).filter(Race.id == race.id).one().game_status == "scheduled"


def test_unlock_settled_race_needs_force(db, game, race):
    game.lock_race(db, race.id)
    game.upsert_race_results(db, race.id, [RaceResultIn(uci_id="m1", status="FIN", position=1)], is_final=True)
    game.settle_race(db, race.id)

    with pytest.raises(NotReadyError):
        game.unlock_race(db, race.id)
    assert db.query(RaceScore).count() == 2

    outcome = game.unlock_race(db, race.id, force=True)
    assert outcome.previous_status == RaceStatus.SETTLED
    assert (outcome.removed_snapshots, outcome.removed_scores, outcome.removed_result_sets) == (2, 2, 1)
    assert db.query(RaceScore).count() == 0
    assert db.query(RaceResultSet).count() == 0
    race = db.query(Race).filter(Race.id == race.id).one()
    assert (race.game_status, race.needs_resettle) == ("scheduled", False)
