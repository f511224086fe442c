from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from fantasy_league.models.race import Race, RaceStatus

CLOSED_STATUSES = {RaceStatus.LOCKED.value, RaceStatus.SETTLED.value}


class EditingWindow:
    def __init__(self, next_race: Optional[Race], last_started_race: Optional[Race],
                 has_settled_rounds: bool, editing_open: bool):
        self.next_race = next_race
        self.last_started_race = last_started_race
        self.has_settled_rounds = has_settled_rounds
        self.editing_open = editing_open


def compute_editing_window(races: List[Race], now: datetime, lock_lead_hours: int) -> EditingWindow:
    """
    Rosters are editable only between the settlement of the last started race
    and the lock of the next one.
    """
    ordered = sorted(races, key=lambda race: race.start_date)
    if not ordered:
        return EditingWindow(None, None, False, False)

    has_settled_rounds = any(race.game_status == RaceStatus.SETTLED.value for race in ordered)
    started = [race for race in ordered if race.start_date <= now]
    last_started_race = started[-1] if started else None
    next_race = next((race for race in ordered if race.start_date > now), None)

    ready_for_edits = last_started_race is None or last_started_race.game_status == RaceStatus.SETTLED.value

    editing_open = False
    if next_race is not None and ready_for_edits:
        lock_at = next_race.effective_lock_at(lock_lead_hours)
        status = (next_race.game_status or RaceStatus.SCHEDULED.value).lower()
        editing_open = now < lock_at and status not in CLOSED_STATUSES

    return EditingWindow(next_race, last_started_race, has_settled_rounds, editing_open)


def get_editing_window(db: Session, season_id: int, now: datetime, lock_lead_hours: int) -> EditingWindow:
    races = db.query(Race).filter(Race.season_id == season_id).order_by(Race.start_date).all()
    return compute_editing_window(races, now, lock_lead_hours)
