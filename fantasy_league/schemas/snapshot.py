from pydantic import BaseModel, ValidationError
from typing import List, Optional

from fantasy_league.core.errors import GameError

SNAPSHOT_SCHEMA_VERSION = 1
SUPPORTED_SNAPSHOT_VERSIONS = {1}

class SnapshotRider(BaseModel):
    uci_id: str
    gender: str
    cost_at_lock: int = 0

class TeamSnapshot(BaseModel):
    """Decoded starters/bench of a stored RaceSnapshot, starters in slot order"""
    schema_version: int = SNAPSHOT_SCHEMA_VERSION
    starters: List[SnapshotRider]
    bench: Optional[SnapshotRider] = None

def decode_snapshot(row) -> TeamSnapshot:
    """
    Reads a RaceSnapshot row back into a TeamSnapshot. Rows written by an
    unknown schema version are refused instead of being scored wrongly.
    """
    version = row.schema_version or SNAPSHOT_SCHEMA_VERSION
    if version not in SUPPORTED_SNAPSHOT_VERSIONS:
        raise GameError(f"Snapshot {row.id} has unsupported schema version {version}", 500)
    try:
        return TeamSnapshot(
            schema_version=version,
            starters=row.starters_json or [],
            bench=row.bench_json,
        )
    except ValidationError as e:
        raise GameError(f"Snapshot {row.id} is corrupt: {e}", 500)
