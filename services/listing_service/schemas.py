from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ListingStatus

class ListingCreate(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = ""
    isbn: str = ""
    description: str = ""
    image_url: str = ""
    price: float = Field(..., ge=0)

class ListingStatusUpdate(BaseModel):
    status: ListingStatus

class ListingResponse(BaseModel):
    id: str
    seller_id: str
    seller_username: str
    title: str
    author: str
    isbn: str
    description: str
    image_url: str
    price: float
    status: ListingStatus
    seller_rating: float
    seller_rating_count: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
