from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.observability import books_orders_created_total
from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from .models import ALLOWED_TRANSITIONS, Order, OrderStatus
from .repository import OrderRepository
from .schemas import OrderCreate, OrderResponse
from .shipping_label import ShippingLabelGenerator

logger = structlog.get_logger(__name__)

# Timestamp column stamped when an order enters the status
STATUS_TIMESTAMPS = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
}

LABELLABLE_STATUSES = {OrderStatus.PAID, OrderStatus.LABEL_CREATED}

# Reached only through order creation, payment or labelling
SYSTEM_SET_STATUSES = {OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.LABEL_CREATED}

# Who may set the remaining statuses by hand
MANUAL_STATUS_ROLES = {
    OrderStatus.SHIPPED: {"seller"},
    OrderStatus.DELIVERED: {"buyer"},
    OrderStatus.CANCELLED: {"buyer", "seller"},
}


def status_fields(status: OrderStatus, now: datetime | None = None) -> dict:
    """Column values for moving an order into ``status``."""
    now = now or datetime.now(timezone.utc)
    fields = {"status": OrderStatus(status).value, "updated_at": now}
    column = STATUS_TIMESTAMPS.get(OrderStatus(status))
    if column:
        fields[column] = now
    return fields


def _party_check(order: Order, caller_id: str) -> Failure | None:
    if caller_id not in (order.buyer_id, order.seller_id):
        return Failure(ErrorKind.PERMISSION_DENIED, "Only the buyer or seller can access this order")
    return None


class OrderService:
    @staticmethod
    @captures_failures
    async def create_order(db: AsyncSession, caller_id: str | None, data: OrderCreate) -> Result[str]:
        if caller_id is None:
            return Failure.not_authenticated()

        expected_total = round(data.book_price + data.shipping_cost, 2)
        total = expected_total if data.total_amount is None else data.total_amount
        if abs(total - expected_total) > settings.AMOUNT_TOLERANCE:
            return Failure(
                ErrorKind.INVALID_ARGUMENT,
                f"total_amount {total} must equal book_price + shipping_cost ({expected_total})",
            )

        order = Order(
            listing_id=data.listing_id,
            book_title=data.book_title,
            book_author=data.book_author,
            book_image_url=data.book_image_url,
            buyer_id=caller_id, # never trusted from the payload
            seller_id=data.seller_id,
            book_price=data.book_price,
            shipping_cost=data.shipping_cost,
            total_amount=total,
            buyer_address=data.buyer_address.model_dump() if data.buyer_address else None,
            seller_address=data.seller_address.model_dump() if data.seller_address else None,
            status=OrderStatus.PENDING.value,
            is_seller_rated=False,
        )
        order = await OrderRepository.create_order(db, order)
        books_orders_created_total.inc()
        logger.info("order_created", order_id=order.id, buyer_id=caller_id, seller_id=data.seller_id)
        return Success(order.id)

    @staticmethod
    @captures_failures
    async def get_order(db: AsyncSession, order_id: str) -> Result[OrderResponse]:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            return Failure.not_found("Order")
        return Success(OrderResponse.model_validate(order))

    @staticmethod
    @captures_failures
    async def get_user_orders(db: AsyncSession, user_id: str) -> Result[list[OrderResponse]]:
        """Purchases: orders where the user is the buyer, newest first."""
        orders = await OrderRepository.get_orders_by_buyer(db, user_id)
        return Success([OrderResponse.model_validate(o) for o in orders])

    @staticmethod
    @captures_failures
    async def get_user_sales(db: AsyncSession, user_id: str) -> Result[list[OrderResponse]]:
        """Sales: orders where the user is the seller, newest first."""
        orders = await OrderRepository.get_orders_by_seller(db, user_id)
        return Success([OrderResponse.model_validate(o) for o in orders])

    @staticmethod
    @captures_failures
    async def update_order_status(db: AsyncSession, order_id: str, status: OrderStatus) -> Result[None]:
        """Raw status write. Transition rules are the caller's job (see transition_order)."""
        updated = await OrderRepository.update_order_status(db, order_id, status)
        if not updated:
            return Failure.not_found("Order")
        return Success(None)

    @staticmethod
    @captures_failures
    async def transition_order(
        db: AsyncSession, caller_id: str | None, order_id: str, status: OrderStatus
    ) -> Result[OrderResponse]:
        """
        Manual status change by a party to the order. PAID and LABEL_CREATED
        are only reached through payment and labelling; the seller ships, the
        buyer confirms delivery and either side may cancel.
        """
        if caller_id is None:
            return Failure.not_authenticated()

        order = await OrderRepository.get_order(db, order_id)
        if not order:
            return Failure.not_found("Order")
        denied = _party_check(order, caller_id)
        if denied:
            return denied

        current, target = OrderStatus(order.status), OrderStatus(status)
        if target in SYSTEM_SET_STATUSES:
            return Failure(
                ErrorKind.FAILED_PRECONDITION,
                f"{target.value} is set by payment or labelling, not by hand",
            )
        role = "buyer" if caller_id == order.buyer_id else "seller"
        if role not in MANUAL_STATUS_ROLES[target]:
            return Failure(ErrorKind.PERMISSION_DENIED, f"The {role} cannot mark this order {target.value}")
        if target not in ALLOWED_TRANSITIONS[current]:
            return Failure(
                ErrorKind.FAILED_PRECONDITION,
                f"Cannot move order from {current.value} to {target.value}",
            )

        await OrderRepository.update_fields(db, order_id, **status_fields(target))
        await db.refresh(order)
        logger.info("order_status_changed", order_id=order_id, old=current.value, new=target.value)
        return Success(OrderResponse.model_validate(order))

    @staticmethod
    @captures_failures
    async def attach_shipping_label(db: AsyncSession, order_id: str, label_url: str) -> Result[None]:
        """Stores the label URL; a paid order moves on to LABEL_CREATED."""
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            return Failure.not_found("Order")

        fields = {"shipping_label_url": label_url, "updated_at": datetime.now(timezone.utc)}
        if OrderStatus(order.status) == OrderStatus.PAID:
            fields["status"] = OrderStatus.LABEL_CREATED.value
        await OrderRepository.update_fields(db, order_id, **fields)
        return Success(None)

    @staticmethod
    @captures_failures
    async def generate_shipping_label(
        db: AsyncSession, caller_id: str | None, order_id: str, generator: ShippingLabelGenerator
    ) -> Result[str]:
        """(Re)generates the label of a paid order. Same storage key each time."""
        if caller_id is None:
            return Failure.not_authenticated()

        order = await OrderRepository.get_order(db, order_id)
        if not order:
            return Failure.not_found("Order")
        denied = _party_check(order, caller_id)
        if denied:
            return denied
        if OrderStatus(order.status) not in LABELLABLE_STATUSES:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Order must be paid before a label can be generated")

        had_label = bool(order.shipping_label_url)
        label = await generator.generate(OrderResponse.model_validate(order))
        if isinstance(label, Failure):
            return label

        attached = await OrderService.attach_shipping_label(db, order_id, label.value)
        if isinstance(attached, Failure):
            # An order that already had a label still points at this key
            if not had_label:
                await generator.discard(order_id)
            return attached
        return Success(label.value)
