from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from .models import Order, OrderStatus

class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order):
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_orders_by_buyer(db: AsyncSession, buyer_id: str):
        result = await db.execute(
            select(Order).where(Order.buyer_id == buyer_id).order_by(Order.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_orders_by_seller(db: AsyncSession, seller_id: str):
        result = await db.execute(
            select(Order).where(Order.seller_id == seller_id).order_by(Order.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_orders_awaiting_delivery(db: AsyncSession):
        """Orders the courier still has to move: labelled or in transit, with a shipment id."""
        result = await db.execute(
            select(Order)
            .where(Order.status.in_([OrderStatus.LABEL_CREATED.value, OrderStatus.SHIPPED.value]))
            .where(Order.courier_shipment_id.is_not(None))
        )
        return result.scalars().all()

    @staticmethod
    async def update_fields(db: AsyncSession, order_id: str, commit: bool = True, **fields) -> bool:
        result = await db.execute(update(Order).where(Order.id == order_id).values(**fields))
        if commit:
            await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def update_order_status(db: AsyncSession, order_id: str, status: OrderStatus) -> bool:
        """Writes the status column only."""
        return await OrderRepository.update_fields(db, order_id, status=OrderStatus(status).value)
