import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, JSON, String
from shared.config.database import Base


def new_id() -> str:
    return uuid.uuid4().hex

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    LABEL_CREATED = "LABEL_CREATED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Legal transitions; the store itself does not enforce these
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.LABEL_CREATED, OrderStatus.CANCELLED},
    OrderStatus.LABEL_CREATED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)

    # Listing snapshot
    listing_id = Column(String(32), nullable=False, index=True)
    book_title = Column(String, nullable=False, default="")
    book_author = Column(String, nullable=False, default="")
    book_image_url = Column(String, nullable=False, default="")

    # Parties
    buyer_id = Column(String(32), nullable=False, index=True)
    seller_id = Column(String(32), nullable=False, index=True)

    # Pricing
    book_price = Column(Float, nullable=False, default=0.0)
    shipping_cost = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)

    # Address snapshots (shared.schemas.Address as JSON)
    buyer_address = Column(JSON, nullable=True)
    seller_address = Column(JSON, nullable=True)

    # Shipping, filled in progressively
    tracking_number = Column(String, nullable=True)
    courier_name = Column(String, nullable=True)
    shipping_label_url = Column(String, nullable=True)
    courier_order_id = Column(String, nullable=True)
    courier_shipment_id = Column(String, nullable=True, index=True)

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value, index=True)
    is_seller_rated = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
