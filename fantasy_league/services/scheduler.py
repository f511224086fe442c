from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session
import logging

from fantasy_league.core.config import settings
from fantasy_league.db.session import SessionLocal
from fantasy_league.models.race import Race, RaceStatus
from fantasy_league.schemas.race import TickError, TickOutcome

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def run_game_tick(
    db: Session,
    lifecycle,
    settlement,
    allow_provisional: bool = False,
    force_lock: bool = False,
    force_settle: bool = False,
) -> TickOutcome:
    """
    One pass over the calendar: lock races whose lock time passed, then
    settle races with final results or pending re-settlement. A failing race
    is reported in `errors` and never stops the others.
    """
    now = lifecycle.clock()
    outcome = TickOutcome(now=now)

    # --- 1. LOCK (scheduled -> locked) ---
    scheduled = db.query(Race).filter(
        Race.game_status == RaceStatus.SCHEDULED.value
    ).order_by(Race.start_date).all()
    lock_candidates = [
        race.id for race in scheduled
        if race.effective_lock_at(lifecycle.rules.lock_lead_hours) <= now
    ]

    for race_id in lock_candidates:
        try:
            result = lifecycle.lock_race(db, race_id, force=force_lock)
            if result.locked or result.locked_teams > 0 or result.skipped_teams > 0:
                outcome.locked.append(result)
        except Exception as e:
            logger.exception(f"Tick: lock of race {race_id} failed")
            outcome.errors.append(TickError(race_id=race_id, stage="lock", message=str(e)))

    # --- 2. SETTLE ---
    statuses = [RaceStatus.FINAL.value, RaceStatus.SETTLED.value]
    if allow_provisional:
        statuses.append(RaceStatus.PROVISIONAL.value)
    candidates = db.query(Race).filter(Race.game_status.in_(statuses)).order_by(Race.start_date).all()
    settle_targets = [
        race.id for race in candidates
        if race.game_status == RaceStatus.FINAL.value
        or race.needs_resettle
        or (allow_provisional and race.game_status == RaceStatus.PROVISIONAL.value)
    ]

    for race_id in settle_targets:
        try:
            result = settlement.settle_race(
                db, race_id, force=force_settle, allow_provisional=allow_provisional
            )
            outcome.settled.append(result)
        except Exception as e:
            logger.exception(f"Tick: settlement of race {race_id} failed")
            outcome.errors.append(TickError(race_id=race_id, stage="settle", message=str(e)))

    if outcome.locked or outcome.settled or outcome.errors:
        logger.info(
            f"Tick {now.isoformat()}: {len(outcome.locked)} locked, "
            f"{len(outcome.settled)} settled, {len(outcome.errors)} errors"
        )
    return outcome


def run_tick_job():
    """Scheduler entry point, with a session of its own."""
    # Late import: the engine pulls in every service
    from fantasy_league.services.engine import get_engine

    db = SessionLocal()
    try:
        get_engine().run_tick(db, allow_provisional=settings.TICK_ALLOW_PROVISIONAL)
    except Exception as e:
        logger.error(f"Scheduler tick failed: {e}")
        db.rollback()
    finally:
        db.close()


def start_scheduler():
    if not scheduler.running:
        scheduler.add_job(run_tick_job, 'interval', minutes=settings.TICK_INTERVAL_MINUTES, id="game_tick", replace_existing=True)
        scheduler.start()
        logger.info(f"Scheduler started (tick every {settings.TICK_INTERVAL_MINUTES} min)")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
