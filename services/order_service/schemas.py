from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.schemas import Address
from .models import OrderStatus


class OrderCreate(BaseModel):
    listing_id: str
    seller_id: str
    book_title: str = ""
    book_author: str = ""
    book_image_url: str = ""
    book_price: float = Field(ge=0)
    shipping_cost: float = Field(default=0.0, ge=0)
    total_amount: Optional[float] = None # computed when omitted
    buyer_address: Optional[Address] = None
    seller_address: Optional[Address] = None
    # Accepted for wire compatibility; always replaced by the caller identity
    buyer_id: Optional[str] = None

class OrderCreated(BaseModel):
    id: str
    status: OrderStatus = OrderStatus.PENDING

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class OrderResponse(BaseModel):
    id: str
    listing_id: str
    book_title: str
    book_author: str
    book_image_url: str
    buyer_id: str
    seller_id: str
    book_price: float
    shipping_cost: float
    total_amount: float
    buyer_address: Optional[Address] = None
    seller_address: Optional[Address] = None
    tracking_number: Optional[str] = None
    courier_name: Optional[str] = None
    shipping_label_url: Optional[str] = None
    courier_order_id: Optional[str] = None
    courier_shipment_id: Optional[str] = None
    status: OrderStatus
    is_seller_rated: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
