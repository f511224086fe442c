from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON, UniqueConstraint
from fantasy_league.db.base import Base

class RaceScore(Base):
    """
    Points of one snapshot in one race. Valid while both recorded hashes
    match the current snapshot and result set.
    """
    __tablename__ = "race_scores"
    __table_args__ = (UniqueConstraint("race_id", "user_id", "team_type", name="uq_score_race_user_type"),)

    id = Column(Integer, primary_key=True, index=True)
    race_id = Column(Integer, ForeignKey("races.id"), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    team_type = Column(String(10), nullable=False)

    total_points = Column(Integer, nullable=False, default=0)
    breakdown_json = Column(JSON, nullable=False)
    snapshot_hash_used = Column(String(64), nullable=False)
    results_hash_used = Column(String(64), nullable=False)

    settled_at = Column(DateTime, nullable=True)
