from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Payment

class PaymentRepository:
    @staticmethod
    async def add_payment(db: AsyncSession, payment: Payment):
        """Staged only; committed together with the order status change."""
        db.add(payment)
        return payment

    @staticmethod
    async def get_payments_for_order(db: AsyncSession, order_id: str):
        result = await db.execute(select(Payment).where(Payment.order_id == order_id))
        return result.scalars().all()
