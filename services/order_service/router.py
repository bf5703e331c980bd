from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.result import unwrap
from shared.security import get_caller_id, get_current_user, limiter
from shared.security.rate_limiter import WRITE_RATE_LIMIT
from .schemas import OrderCreate, OrderCreated, OrderResponse, OrderStatusUpdate
from .service import OrderService
from .shipping_label import ShippingLabelGenerator, get_label_generator

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}

@router.post("/", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_order(
    request: Request,                               # REQUIRED: slowapi reads the caller from it
    payload: OrderCreate,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    order_id = unwrap(await OrderService.create_order(db, caller_id, payload))
    return OrderCreated(id=order_id)

# Declared before /{order_id} so the literal paths win
@router.get("/purchases", response_model=list[OrderResponse])
async def list_purchases(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return unwrap(await OrderService.get_user_orders(db, user_id))

@router.get("/sales", response_model=list[OrderResponse])
async def list_sales(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return unwrap(await OrderService.get_user_sales(db, user_id))

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = unwrap(await OrderService.get_order(db, order_id))
    if user_id not in (order.buyer_id, order.seller_id):
        # Other people's orders look absent
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order

@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: str,
    payload: OrderStatusUpdate,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await OrderService.transition_order(db, caller_id, order_id, payload.status))

@router.post("/{order_id}/shipping-label")
async def generate_shipping_label(
    order_id: str,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    generator: ShippingLabelGenerator = Depends(get_label_generator),
):
    url = unwrap(await OrderService.generate_shipping_label(db, caller_id, order_id, generator))
    return {"order_id": order_id, "shipping_label_url": url}
