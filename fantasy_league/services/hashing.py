import enum
import hashlib
import json
from datetime import date, datetime

import pytz
from pydantic import BaseModel


def _format_datetime(value: datetime) -> str:
    # Fixed UTC text form: 2025-05-01T10:00:00.000Z
    if value.tzinfo is not None:
        value = value.astimezone(pytz.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _sort_value(value):
    if isinstance(value, BaseModel):
        return _sort_value(value.model_dump())
    if isinstance(value, enum.Enum):
        return _sort_value(value.value)
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _sort_value(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [_sort_value(item) for item in value]
    return value


def stable_stringify(value) -> str:
    """Canonical JSON: keys sorted at every level, dates normalized, no whitespace."""
    return json.dumps(_sort_value(value), separators=(",", ":"), ensure_ascii=False)


def hash_payload(value) -> str:
    return hashlib.sha256(stable_stringify(value).encode("utf-8")).hexdigest()
