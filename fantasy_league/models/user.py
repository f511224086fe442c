from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from fantasy_league.db.base import Base

class User(Base):
    __tablename__ = "users"

    # Opaque id issued by the identity provider
    id = Column(String(255), primary_key=True)
    display_name = Column(String(255), nullable=True)
    is_admin = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
