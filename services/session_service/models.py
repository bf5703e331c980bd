from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from shared.config.database import Base

class Session(Base):
    __tablename__ = "sessions"

    session_id = Column(String, primary_key=True, index=True) # UUID string
    user_id = Column(String(32), nullable=False, index=True)
    is_active = Column(Boolean, default=True)

    # Relationship to items
    items = relationship("SessionItem", back_populates="session", lazy="selectin")

class SessionItem(Base):
    __tablename__ = "session_items"
    # One copy of a listing per cart; a listing is a single physical book
    __table_args__ = (UniqueConstraint("session_id", "listing_id"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("sessions.session_id"))
    listing_id = Column(String(32), nullable=False)
    added_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    session = relationship("Session", back_populates="items")
