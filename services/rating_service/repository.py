from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Rating

class RatingRepository:
    @staticmethod
    async def add_rating(db: AsyncSession, rating: Rating):
        db.add(rating)
        await db.commit()
        await db.refresh(rating)
        return rating

    @staticmethod
    async def get_ratings_by_seller(db: AsyncSession, seller_id: str):
        result = await db.execute(
            select(Rating).where(Rating.seller_id == seller_id).order_by(Rating.timestamp.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_seller_stats(db: AsyncSession, seller_id: str) -> tuple[float | None, int]:
        """(mean, count) over every rating of the seller; mean is None without ratings."""
        result = await db.execute(
            select(func.avg(Rating.rating), func.count(Rating.id)).where(Rating.seller_id == seller_id)
        )
        average, count = result.one()
        return (float(average) if average is not None else None), int(count)
