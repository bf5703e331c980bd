import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from shared.config.database import Base


class ListingStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    seller_id = Column(String(32), nullable=False, index=True)
    seller_username = Column(String(100), nullable=False, default="")
    title = Column(String, nullable=False)
    author = Column(String, nullable=False, default="")
    isbn = Column(String(20), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    image_url = Column(String, nullable=False, default="")
    price = Column(Float, nullable=False)
    status = Column(String, nullable=False, default=ListingStatus.AVAILABLE.value, index=True)

    # Denormalised from the rating aggregator
    seller_rating = Column(Float, nullable=False, default=0.0)
    seller_rating_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
