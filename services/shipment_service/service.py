from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from shared.schemas import Address
from services.auth_service.repository import UserRepository
from services.order_service.models import Order, OrderStatus
from services.order_service.repository import OrderRepository
from .courier import CourierClient, CourierError
from .schemas import AwbResponse, CourierOrderResponse, TrackingResponse

logger = structlog.get_logger(__name__)

COURIER_ORDER_STATUSES = {OrderStatus.PAID, OrderStatus.LABEL_CREATED}


def build_courier_order_payload(order: Order, buyer_email: str, buyer_name: str, pickup_location: str) -> dict:
    """Adhoc order for a single prepaid book shipped in the default parcel."""
    buyer = Address.model_validate(order.buyer_address)
    return {
        "order_id": order.id,
        "order_date": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M"),
        "pickup_location": pickup_location or "Seller Location",
        "billing_customer_name": buyer.name or buyer_name,
        "billing_last_name": "",
        "billing_address": buyer.address_line1,
        "billing_address_2": buyer.address_line2,
        "billing_city": buyer.city,
        "billing_pincode": buyer.pincode,
        "billing_state": buyer.state,
        "billing_country": buyer.country,
        "billing_email": buyer_email,
        "billing_phone": buyer.phone,
        "shipping_is_billing": True,
        "order_items": [{
            "name": order.book_title,
            "sku": order.listing_id,
            "units": 1,
            "selling_price": order.book_price,
            "discount": 0,
            "tax": 0,
            "hsn": settings.BOOK_HSN_CODE,
        }],
        "payment_method": "Prepaid",
        "sub_total": order.book_price,
        "length": settings.PARCEL_LENGTH_CM,
        "breadth": settings.PARCEL_BREADTH_CM,
        "height": settings.PARCEL_HEIGHT_CM,
        "weight": settings.PARCEL_WEIGHT_KG,
    }


async def _load_for_party(db: AsyncSession, caller_id: str | None, order_id: str) -> Order | Failure:
    if caller_id is None:
        return Failure.not_authenticated()
    order = await OrderRepository.get_order(db, order_id)
    if not order:
        return Failure.not_found("Order")
    if caller_id not in (order.buyer_id, order.seller_id):
        return Failure(ErrorKind.PERMISSION_DENIED, "Access denied")
    return order


class ShipmentService:

    @staticmethod
    @captures_failures
    async def create_courier_order(
        db: AsyncSession, caller_id: str | None, order_id: str, courier: CourierClient
    ) -> Result[CourierOrderResponse]:
        order = await _load_for_party(db, caller_id, order_id)
        if isinstance(order, Failure):
            return order
        if OrderStatus(order.status) not in COURIER_ORDER_STATUSES:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Order must be paid before creating shipment")
        if order.courier_shipment_id:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Courier order already created")
        if order.buyer_address is None or order.seller_address is None:
            return Failure(ErrorKind.MISSING_ADDRESS, "Buyer and seller addresses are required")

        buyer = await UserRepository.get_by_id(db, order.buyer_id)
        seller = await UserRepository.get_by_id(db, order.seller_id)
        if not buyer or not seller:
            return Failure.not_found("Buyer or seller profile")

        payload = build_courier_order_payload(order, buyer.email, buyer.username, seller.username)
        try:
            async with courier.session() as session:
                courier_order_id, shipment_id = await session.create_order(payload)
        except CourierError as e:
            return Failure(ErrorKind.REMOTE_FAILURE, f"Failed to create courier order: {e}")

        await OrderRepository.update_fields(
            db,
            order_id,
            courier_order_id=courier_order_id,
            courier_shipment_id=shipment_id,
            status=OrderStatus.LABEL_CREATED.value,
            updated_at=datetime.now(timezone.utc),
        )
        logger.info("courier_order_created", order_id=order_id, shipment_id=shipment_id)
        return Success(CourierOrderResponse(
            order_id=order_id, courier_order_id=courier_order_id, courier_shipment_id=shipment_id
        ))

    @staticmethod
    @captures_failures
    async def assign_awb(
        db: AsyncSession,
        caller_id: str | None,
        order_id: str,
        courier: CourierClient,
        courier_id: int | None = None,
    ) -> Result[AwbResponse]:
        order = await _load_for_party(db, caller_id, order_id)
        if isinstance(order, Failure):
            return order
        if order.seller_id != caller_id:
            return Failure(ErrorKind.PERMISSION_DENIED, "Only the seller can assign an AWB")
        if not order.courier_shipment_id:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Courier order must be created first")
        if OrderStatus(order.status) in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            return Failure(ErrorKind.FAILED_PRECONDITION, f"Order is already {order.status}")

        try:
            async with courier.session() as session:
                if courier_id is None:
                    pickup = (order.seller_address or {}).get("pincode", "")
                    delivery = (order.buyer_address or {}).get("pincode", "")
                    courier_id = await session.cheapest_courier_id(pickup, delivery, settings.PARCEL_WEIGHT_KG)
                    if courier_id is None:
                        return Failure(ErrorKind.FAILED_PRECONDITION, "No courier service available for this route")
                awb_code, courier_name = await session.assign_awb(order.courier_shipment_id, courier_id)
        except CourierError as e:
            return Failure(ErrorKind.REMOTE_FAILURE, f"Failed to assign AWB: {e}")

        await OrderRepository.update_fields(
            db,
            order_id,
            tracking_number=awb_code,
            courier_name=courier_name,
            updated_at=datetime.now(timezone.utc),
        )
        logger.info("awb_assigned", order_id=order_id, awb_code=awb_code, courier_name=courier_name)
        return Success(AwbResponse(order_id=order_id, awb_code=awb_code, courier_name=courier_name))

    @staticmethod
    @captures_failures
    async def track_shipment(
        db: AsyncSession, caller_id: str | None, order_id: str, courier: CourierClient
    ) -> Result[TrackingResponse]:
        order = await _load_for_party(db, caller_id, order_id)
        if isinstance(order, Failure):
            return order
        if not order.courier_shipment_id:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Shipment not created yet")

        try:
            async with courier.session() as session:
                tracking = await session.track_shipment(order.courier_shipment_id)
        except CourierError as e:
            return Failure(ErrorKind.REMOTE_FAILURE, f"Failed to track shipment: {e}")

        return Success(TrackingResponse(
            order_id=order_id,
            tracking_data=tracking,
            awb_code=order.tracking_number,
            courier_name=order.courier_name,
        ))
