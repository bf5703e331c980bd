import time

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import books_checkout_duration_seconds, books_checkout_total
from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from services.order_service.service import OrderService
from services.order_service.shipping_label import ShippingLabelGenerator
from services.session_service.service import SessionService
from .checkout_saga import CheckoutStepError, build_checkout_saga
from .schemas import CheckoutItemResult, CheckoutResponse

logger = structlog.get_logger(__name__)


class CheckoutService:
    """
    Buys everything in a cart session. Each item runs through its own saga,
    so one unavailable book does not undo the others.
    """

    def __init__(self):
        # Sessions with a checkout in flight in this process
        self.active_checkouts: set[str] = set()

    @captures_failures
    async def checkout(
        self,
        db: AsyncSession,
        caller_id: str | None,
        session_id: str,
        label_generator: ShippingLabelGenerator,
    ) -> Result[CheckoutResponse]:
        session = await SessionService.get_session(db, caller_id, session_id)
        if isinstance(session, Failure):
            return session
        if not session.value.is_active:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Session has ended")
        if session_id in self.active_checkouts:
            return Failure(ErrorKind.FAILED_PRECONDITION, "A checkout is already in progress for this session")

        listing_ids = [item.listing_id for item in session.value.items]
        if not listing_ids:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Cart is empty")

        self.active_checkouts.add(session_id)
        try:
            results = [
                await self._checkout_item(db, caller_id, session_id, listing_id, label_generator)
                for listing_id in listing_ids
            ]
        finally:
            self.active_checkouts.discard(session_id)
        return Success(CheckoutResponse(session_id=session_id, items=results))

    async def _checkout_item(
        self,
        db: AsyncSession,
        caller_id: str,
        session_id: str,
        listing_id: str,
        label_generator: ShippingLabelGenerator,
    ) -> CheckoutItemResult:
        ctx = {"db": db, "buyer_id": caller_id, "session_id": session_id, "listing_id": listing_id}
        started = time.perf_counter()
        try:
            await build_checkout_saga().execute(ctx)
        except CheckoutStepError as e:
            books_checkout_total.labels(status="failed").inc()
            return CheckoutItemResult(listing_id=listing_id, status="failed", error=e.message)
        except Exception as e:
            # Saga already rolled back internally; just report the failure
            books_checkout_total.labels(status="failed").inc()
            logger.error("checkout_item_failed", listing_id=listing_id, error=str(e))
            return CheckoutItemResult(
                listing_id=listing_id, status="failed", error="Transaction aborted and rolled back"
            )
        finally:
            books_checkout_duration_seconds.observe(time.perf_counter() - started)

        books_checkout_total.labels(status="success").inc()
        logger.info("checkout_item_succeeded", listing_id=listing_id, order_id=ctx["order_id"])

        label = await OrderService.generate_shipping_label(db, caller_id, ctx["order_id"], label_generator)
        label_url = None
        if isinstance(label, Failure):
            # The paid order stands; the seller can regenerate the label later
            logger.warning("shipping_label_skipped", order_id=ctx["order_id"], error=label.message)
        else:
            label_url = label.value

        return CheckoutItemResult(
            listing_id=listing_id,
            status="success",
            order_id=ctx["order_id"],
            transaction_id=ctx["transaction_id"],
            total_amount=ctx["total_amount"],
            shipping_label_url=label_url,
        )


checkout_service = CheckoutService()

def get_checkout_service() -> CheckoutService:
    return checkout_service
