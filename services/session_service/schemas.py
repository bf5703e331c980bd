from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import List, Optional

class SessionItemCreate(BaseModel):
    listing_id: str

class SessionItemResponse(BaseModel):
    listing_id: str
    added_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class SessionResponse(BaseModel):
    session_id: str
    user_id: str
    is_active: bool
    items: List[SessionItemResponse] = []

    model_config = ConfigDict(from_attributes=True)
