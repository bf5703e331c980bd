"""
Per-item checkout saga. Each cart item becomes one paid order:

    lock_cart_item -> fetch_listing -> reserve_listing -> create_order -> process_payment

Every step commits on its own; a failure runs the compensations of the steps
that already finished, newest first.
"""
import structlog

from shared.config import settings
from shared.result import ErrorKind, Failure
from shared.schemas import Address
from services.auth_service.repository import UserRepository
from services.listing_service.models import ListingStatus
from services.listing_service.repository import ListingRepository
from services.order_service.models import OrderStatus
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderService, status_fields
from services.payment_service.service import PaymentService
from services.session_service.models import SessionItem
from services.session_service.repository import SessionRepository
from .saga import SagaOrchestrator

logger = structlog.get_logger(__name__)


class CheckoutStepError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def from_failure(cls, failure: Failure) -> "CheckoutStepError":
        return cls(failure.kind, failure.message)


# --- ACTIONS ---

async def lock_cart_item(ctx: dict):
    removed = await SessionRepository.remove_item(ctx["db"], ctx["session_id"], ctx["listing_id"])
    if not removed:
        raise CheckoutStepError(ErrorKind.FAILED_PRECONDITION, "Item already processed or removed")

async def fetch_listing(ctx: dict):
    listing = await ListingRepository.get_listing(ctx["db"], ctx["listing_id"])
    if listing is None:
        raise CheckoutStepError(ErrorKind.NOT_FOUND, "Listing not found")
    if listing.seller_id == ctx["buyer_id"]:
        raise CheckoutStepError(ErrorKind.FAILED_PRECONDITION, "You cannot buy your own listing")
    if listing.status != ListingStatus.AVAILABLE.value:
        raise CheckoutStepError(ErrorKind.FAILED_PRECONDITION, f"'{listing.title}' is no longer available")
    ctx["seller_id"] = listing.seller_id
    ctx["book_title"] = listing.title
    ctx["book_author"] = listing.author
    ctx["book_image_url"] = listing.image_url
    ctx["book_price"] = listing.price

async def reserve_listing(ctx: dict):
    claimed = await ListingRepository.claim_available(ctx["db"], ctx["listing_id"], ListingStatus.SOLD)
    if not claimed:
        raise CheckoutStepError(ErrorKind.FAILED_PRECONDITION, "Listing was sold to someone else")

async def create_order(ctx: dict):
    db = ctx["db"]
    buyer = await UserRepository.get_by_id(db, ctx["buyer_id"])
    seller = await UserRepository.get_by_id(db, ctx["seller_id"])
    if buyer is None or seller is None:
        raise CheckoutStepError(ErrorKind.NOT_FOUND, "Buyer or seller profile not found")
    if not buyer.shipping_address or not seller.shipping_address:
        raise CheckoutStepError(ErrorKind.MISSING_ADDRESS, "Buyer and seller addresses are required")

    data = OrderCreate(
        listing_id=ctx["listing_id"],
        seller_id=ctx["seller_id"],
        book_title=ctx["book_title"],
        book_author=ctx["book_author"],
        book_image_url=ctx["book_image_url"],
        book_price=ctx["book_price"],
        shipping_cost=settings.FLAT_SHIPPING_COST,
        buyer_address=Address.model_validate(buyer.shipping_address),
        seller_address=Address.model_validate(seller.shipping_address),
    )
    result = await OrderService.create_order(db, ctx["buyer_id"], data)
    if isinstance(result, Failure):
        raise CheckoutStepError.from_failure(result)
    ctx["order_id"] = result.value
    ctx["total_amount"] = round(data.book_price + data.shipping_cost, 2)

async def process_payment(ctx: dict):
    result = await PaymentService.process_payment(ctx["db"], ctx["order_id"], ctx["total_amount"])
    if isinstance(result, Failure):
        raise CheckoutStepError.from_failure(result)
    ctx["transaction_id"] = result.value.transaction_id


# --- COMPENSATIONS (Rollbacks) ---

async def reset_db_session(ctx: dict):
    await ctx["db"].rollback()

async def rollback_cart_item(ctx: dict):
    await SessionRepository.add_item(
        ctx["db"], SessionItem(session_id=ctx["session_id"], listing_id=ctx["listing_id"])
    )

async def rollback_listing(ctx: dict):
    await ListingRepository.set_status(ctx["db"], ctx["listing_id"], ListingStatus.AVAILABLE)

async def rollback_order(ctx: dict):
    order_id = ctx.get("order_id")
    if order_id:
        await OrderRepository.update_fields(ctx["db"], order_id, **status_fields(OrderStatus.CANCELLED))

async def rollback_payment(ctx: dict):
    tx_id = ctx.get("transaction_id")
    if tx_id:
        # No real gateway behind the simulated payment; the refund is recorded as intent
        logger.info("refund_intent", transaction_id=tx_id, order_id=ctx.get("order_id"))


# --- BUILDER FACTORY ---

def build_checkout_saga() -> SagaOrchestrator:
    saga = SagaOrchestrator(before_rollback=reset_db_session)
    saga.add_step("lock_cart_item", lock_cart_item, rollback_cart_item)
    saga.add_step("fetch_listing", fetch_listing, None) # Read-only, no rollback needed
    saga.add_step("reserve_listing", reserve_listing, rollback_listing)
    saga.add_step("create_order", create_order, rollback_order)
    saga.add_step("process_payment", process_payment, rollback_payment)
    return saga
