from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    @staticmethod
    async def update_shipping_address(db: AsyncSession, user: User, address: dict) -> User:
        user.shipping_address = address
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def set_user_rating(db: AsyncSession, user_id: str, rating: float) -> None:
        """Staged only; the caller commits together with its other writes."""
        await db.execute(update(User).where(User.id == user_id).values(user_rating=rating))
