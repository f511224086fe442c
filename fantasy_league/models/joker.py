from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from fantasy_league.db.base import Base

class JokerCard(Base):
    """Joker state of a user in a season (one use per season)"""
    __tablename__ = "joker_cards"
    __table_args__ = (UniqueConstraint("user_id", "season_id", name="uq_joker_user_season"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)

    used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)

    # Pending transfer waiver: the next save of this race and team type (cleared once used)
    active_race_id = Column(Integer, ForeignKey("races.id"), nullable=True)
    active_team_type = Column(String(10), nullable=True)

    user = relationship("User")
