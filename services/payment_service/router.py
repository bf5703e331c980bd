"""
Payment endpoints require X-Internal-API-Key. Buyers pay through checkout;
nothing public can create payment records.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.result import unwrap
from shared.security.dependencies import verify_internal_api_key

from .schemas import PaymentCreate, PaymentResponse
from .service import PaymentService

# Router-level dependency protects all payment endpoints
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


@router.post("/", response_model=PaymentResponse)
async def process_payment(
    payment: PaymentCreate, db: AsyncSession = Depends(get_db)
):
    return unwrap(await PaymentService.process_payment(db, payment.order_id, payment.amount))

@router.get("/orders/{order_id}", response_model=list[PaymentResponse])
async def list_order_payments(order_id: str, db: AsyncSession = Depends(get_db)):
    return unwrap(await PaymentService.get_payments(db, order_id))
