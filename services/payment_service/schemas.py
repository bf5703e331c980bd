from pydantic import BaseModel, ConfigDict, Field

class PaymentCreate(BaseModel):
    order_id: str
    amount: float = Field(..., ge=0)

class PaymentResponse(BaseModel):
    id: str
    order_id: str
    amount: float
    status: str
    transaction_id: str | None

    model_config = ConfigDict(from_attributes=True)
