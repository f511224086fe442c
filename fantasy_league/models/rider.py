from sqlalchemy import Column, Integer, String
from fantasy_league.db.base import Base
import enum

class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"

class RiderCategory(str, enum.Enum):
    ELITE = "elite"
    JUNIOR = "junior"
    BOTH = "both" # Eligible for elite and junior teams

class Rider(Base):
    """Rider catalog entry, kept up to date by the rankings import"""
    __tablename__ = "riders"

    id = Column(Integer, primary_key=True, index=True)
    uci_id = Column(String(32), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    team = Column(String(255), nullable=True)
    gender = Column(String(10), nullable=False)
    category = Column(String(10), nullable=False, default=RiderCategory.ELITE.value)
    cost = Column(Integer, nullable=False, default=0)
