from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

class RatingCreate(BaseModel):
    seller_id: str
    rating: float
    comment: str = ""
    transaction_id: str = ""
    # Accepted for compatibility; always replaced by the caller and server time
    buyer_id: Optional[str] = None
    timestamp: Optional[datetime] = None

class RatingCreated(BaseModel):
    id: str

class RatingResponse(BaseModel):
    id: str
    seller_id: str
    buyer_id: str
    rating: float
    comment: str
    timestamp: datetime
    transaction_id: str

    model_config = ConfigDict(from_attributes=True)

class SellerRatingSummary(BaseModel):
    seller_id: str
    average: float
    count: int
