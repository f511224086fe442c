from datetime import timedelta

from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from fantasy_league.db.base import Base
import enum

class RaceStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    LOCKED = "locked"
    PROVISIONAL = "provisional"
    FINAL = "final"
    SETTLED = "settled"

class ResultStatus(str, enum.Enum):
    FIN = "FIN"
    DNF = "DNF"
    DNS = "DNS"
    DNQ = "DNQ"
    DSQ = "DSQ"

class Race(Base):
    __tablename__ = "races"

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    name = Column(String(100), nullable=False)
    location = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)

    # Rosters freeze at this moment (defaults to LOCK_LEAD_HOURS before the start)
    lock_at = Column(DateTime, nullable=True)

    game_status = Column(String(20), default=RaceStatus.SCHEDULED.value, nullable=False)
    needs_resettle = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    season = relationship("Season", back_populates="races")

    def effective_lock_at(self, lead_hours: int):
        if self.lock_at:
            return self.lock_at
        return self.start_date - timedelta(hours=lead_hours)

class RaceResult(Base):
    """One rider's outcome in a race (provisional until the race is final)"""
    __tablename__ = "race_results"
    __table_args__ = (UniqueConstraint("race_id", "uci_id", name="uq_race_result_rider"),)

    id = Column(Integer, primary_key=True, index=True)
    race_id = Column(Integer, ForeignKey("races.id"), nullable=False, index=True)
    uci_id = Column(String(32), nullable=False)

    status = Column(String(3), nullable=False)
    position = Column(Integer, nullable=True)
    qualification_position = Column(Integer, nullable=True)

    updated_at = Column(DateTime, nullable=True)

class RaceResultSet(Base):
    """Hash of the result set last used to settle the race"""
    __tablename__ = "race_result_sets"

    race_id = Column(Integer, ForeignKey("races.id"), primary_key=True)
    results_hash = Column(String(64), nullable=False)
    is_final = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, nullable=True)
