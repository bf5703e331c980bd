from typing import List, Optional

from pydantic import BaseModel

class CheckoutItemResult(BaseModel):
    listing_id: str
    status: str  # 'success' or 'failed'
    order_id: Optional[str] = None
    transaction_id: Optional[str] = None
    total_amount: Optional[float] = None
    shipping_label_url: Optional[str] = None
    error: Optional[str] = None

class CheckoutResponse(BaseModel):
    session_id: str
    items: List[CheckoutItemResult]
