import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, JSON, String
from sqlalchemy.sql import func

from shared.config.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    username = Column(String(100), nullable=False, default="")
    phone_number = Column(String(20), nullable=False, default="")
    shipping_address = Column(JSON, nullable=True) # shared.schemas.Address
    user_rating = Column(Float, nullable=False, default=0.0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
