import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, String
from shared.config.database import Base

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    order_id = Column(String(32), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    status = Column(String, default="pending") # pending, success, failed
    transaction_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
