from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.result import unwrap
from shared.security import get_caller_id, limiter
from shared.security.rate_limiter import WRITE_RATE_LIMIT
from services.order_service.shipping_label import ShippingLabelGenerator, get_label_generator
from .schemas import CheckoutResponse
from .service import CheckoutService, get_checkout_service

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "checkout", "status": "running"}

@router.post("/{session_id}", response_model=CheckoutResponse)
@limiter.limit(WRITE_RATE_LIMIT)  # Rate limit per user/IP
async def checkout(
    request: Request,                               # REQUIRED: slowapi needs this to check IP/Headers
    session_id: str,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    generator: ShippingLabelGenerator = Depends(get_label_generator),
    service: CheckoutService = Depends(get_checkout_service),
):
    return unwrap(await service.checkout(db, caller_id, session_id, generator))
