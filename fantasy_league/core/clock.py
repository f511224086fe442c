from datetime import datetime
from typing import Optional

import pytz

from fantasy_league.core.config import settings


def force_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalizes a datetime to naive UTC, the form stored in the database.
    Naive inputs are assumed to already be UTC.
    """
    if dt is None:
        return dt
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def parse_iso(value: str) -> datetime:
    return force_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def utc_now() -> datetime:
    """Current time in naive UTC, or the frozen NOW_OVERRIDE when set."""
    if settings.NOW_OVERRIDE:
        return parse_iso(settings.NOW_OVERRIDE)
    return datetime.now(pytz.utc).replace(tzinfo=None)
