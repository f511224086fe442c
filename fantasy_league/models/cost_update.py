from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from fantasy_league.db.base import Base

class RiderCostUpdate(Base):
    """Audit row of a post-race cost revaluation (lets a race be re-applied)"""
    __tablename__ = "rider_cost_updates"

    id = Column(Integer, primary_key=True, index=True)
    race_id = Column(Integer, ForeignKey("races.id"), nullable=False, index=True)
    uci_id = Column(String(32), nullable=False)

    status = Column(String(3), nullable=False)
    position = Column(Integer, nullable=True)
    previous_cost = Column(Integer, nullable=False)
    updated_cost = Column(Integer, nullable=False)
    delta = Column(Integer, nullable=False)
    results_hash = Column(String(64), nullable=False)

    created_at = Column(DateTime, nullable=True)
