import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from services.order_service.models import OrderStatus
from services.order_service.repository import OrderRepository
from services.order_service.service import status_fields
from .models import Payment
from .repository import PaymentRepository

logger = structlog.get_logger(__name__)

class PaymentService:
    @staticmethod
    @captures_failures
    async def process_payment(db: AsyncSession, order_id: str, amount: float) -> Result[Payment]:
        """
        Simulated gateway: the charge always succeeds. The payment row and the
        order's move to PAID are committed together.
        """
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            return Failure.not_found("Order")
        if OrderStatus(order.status) != OrderStatus.PENDING:
            return Failure(ErrorKind.FAILED_PRECONDITION, f"Order is already {order.status}")
        if abs(amount - order.total_amount) > settings.AMOUNT_TOLERANCE:
            return Failure(
                ErrorKind.INVALID_ARGUMENT,
                f"Payment of {amount} does not match order total {order.total_amount}",
            )

        payment = Payment(
            order_id=order_id,
            amount=amount,
            status="success",
            transaction_id=str(uuid.uuid4())
        )
        await PaymentRepository.add_payment(db, payment)
        await OrderRepository.update_fields(db, order_id, commit=False, **status_fields(OrderStatus.PAID))
        await db.commit()
        await db.refresh(payment)
        logger.info("payment_processed", order_id=order_id, transaction_id=payment.transaction_id)
        return Success(payment)

    @staticmethod
    @captures_failures
    async def get_payments(db: AsyncSession, order_id: str) -> Result[list[Payment]]:
        return Success(list(await PaymentRepository.get_payments_for_order(db, order_id)))
