from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from .models import Session, SessionItem

class SessionRepository:
    @staticmethod
    async def create_session(db: AsyncSession, session: Session):
        db.add(session)
        await db.commit()
        await db.refresh(session)
        return session

    @staticmethod
    async def get_session(db: AsyncSession, session_id: str):
        result = await db.execute(select(Session).where(Session.session_id == session_id))
        session = result.scalars().first()
        if session is not None:
            # items is loaded once per identity; pick up writes made since
            await db.refresh(session, attribute_names=["items"])
        return session

    @staticmethod
    async def add_item(db: AsyncSession, item: SessionItem):
        result = await db.execute(
            select(SessionItem)
            .where(SessionItem.session_id == item.session_id)
            .where(SessionItem.listing_id == item.listing_id)
        )
        if result.scalars().first() is None:
            db.add(item)
            await db.commit()
        return True

    @staticmethod
    async def remove_item(db: AsyncSession, session_id: str, listing_id: str) -> bool:
        stmt = delete(SessionItem).where(
            SessionItem.session_id == session_id,
            SessionItem.listing_id == listing_id
        )
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def clear_cart(db: AsyncSession, session_id: str):
        """Deletes all items for the session and forces a commit."""
        stmt = delete(SessionItem).where(SessionItem.session_id == session_id)
        await db.execute(stmt)
        await db.commit()

    @staticmethod
    async def deactivate(db: AsyncSession, session: Session):
        session.is_active = False
        await db.commit()
