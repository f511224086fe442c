from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON, UniqueConstraint
from fantasy_league.db.base import Base

class RaceSnapshot(Base):
    """Frozen copy of a roster at lock time. Scoring reads only from here."""
    __tablename__ = "race_snapshots"
    __table_args__ = (UniqueConstraint("race_id", "user_id", "team_type", name="uq_snapshot_race_user_type"),)

    id = Column(Integer, primary_key=True, index=True)
    race_id = Column(Integer, ForeignKey("races.id"), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    team_type = Column(String(10), nullable=False)

    schema_version = Column(Integer, nullable=False, default=1)
    starters_json = Column(JSON, nullable=False)
    bench_json = Column(JSON, nullable=True)
    total_cost_at_lock = Column(Integer, nullable=False)
    snapshot_hash = Column(String(64), nullable=False)

    created_at = Column(DateTime, nullable=True)
