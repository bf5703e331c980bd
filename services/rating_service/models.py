import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, String, Text
from shared.config.database import Base


class Rating(Base):
    """Append-only; a seller's aggregate is always recomputed from these rows."""
    __tablename__ = "ratings"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    seller_id = Column(String(32), nullable=False, index=True)
    buyer_id = Column(String(32), nullable=False, index=True)
    rating = Column(Float, nullable=False)
    comment = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    transaction_id = Column(String(32), nullable=False, default="")  # order id, may be empty
