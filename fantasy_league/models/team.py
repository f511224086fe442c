from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from fantasy_league.db.base import Base
import enum

class TeamType(str, enum.Enum):
    ELITE = "elite"
    JUNIOR = "junior"

class MemberRole(str, enum.Enum):
    STARTER = "STARTER"
    BENCH = "BENCH"

class Team(Base):
    """A user's roster for one season and team type"""
    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("user_id", "season_id", "team_type", name="uq_team_user_season_type"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    team_type = Column(String(10), nullable=False)

    name = Column(String(100), nullable=False)
    budget_cap = Column(Integer, nullable=False)

    # Transfer ledger, anchored to the next unlocked race
    swaps_used = Column(Integer, default=0, nullable=False)
    swaps_remaining = Column(Integer, default=2, nullable=False)
    current_race_id = Column(Integer, ForeignKey("races.id"), nullable=True)

    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)

    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")

class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    uci_id = Column(String(32), nullable=False)

    role = Column(String(10), nullable=False)
    starter_index = Column(Integer, nullable=True) # None for the bench
    gender = Column(String(10), nullable=False)

    # Cost charged when the rider joined (grandfathered on later saves)
    cost_at_save = Column(Integer, nullable=False)

    team = relationship("Team", back_populates="members")
