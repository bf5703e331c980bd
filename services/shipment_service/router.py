from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import AsyncSessionLocal, get_db
from shared.result import unwrap
from shared.security.dependencies import get_caller_id, verify_internal_api_key
from .courier import CourierClient, get_courier_client
from .reconciler import ShipmentReconciler
from .schemas import AwbRequest, AwbResponse, CourierOrderResponse, ReconcileResponse, TrackingResponse
from .service import ShipmentService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "shipment", "status": "running"}


def get_session_factory():
    """The reconciler opens its own database session; overridden in tests."""
    return AsyncSessionLocal


@router.post("/reconcile", response_model=ReconcileResponse, dependencies=[Depends(verify_internal_api_key)])
async def reconcile(
    courier: CourierClient = Depends(get_courier_client),
    session_factory=Depends(get_session_factory),
):
    """Trigger for an external scheduler; same work as one in-process tick."""
    reconciler = ShipmentReconciler(session_factory, courier)
    await reconciler.run()
    report = reconciler.last_report
    return ReconcileResponse(checked=report.checked, updated=report.updated, failed=report.failed)

@router.post("/{order_id}/courier-order", response_model=CourierOrderResponse)
async def create_courier_order(
    order_id: str,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    courier: CourierClient = Depends(get_courier_client),
):
    return unwrap(await ShipmentService.create_courier_order(db, caller_id, order_id, courier))

@router.post("/{order_id}/awb", response_model=AwbResponse)
async def assign_awb(
    order_id: str,
    payload: AwbRequest | None = None,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    courier: CourierClient = Depends(get_courier_client),
):
    courier_id = payload.courier_id if payload else None
    return unwrap(await ShipmentService.assign_awb(db, caller_id, order_id, courier, courier_id))

@router.get("/{order_id}/tracking", response_model=TrackingResponse)
async def track_shipment(
    order_id: str,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    courier: CourierClient = Depends(get_courier_client),
):
    return unwrap(await ShipmentService.track_shipment(db, caller_id, order_id, courier))
