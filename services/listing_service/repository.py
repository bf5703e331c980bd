from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from .models import Listing, ListingStatus

class ListingRepository:

    @staticmethod
    async def create_listing(db: AsyncSession, listing: Listing):
        db.add(listing)
        await db.commit()
        await db.refresh(listing)
        return listing

    @staticmethod
    async def get_available_listings(db: AsyncSession):
        result = await db.execute(
            select(Listing)
            .where(Listing.status == ListingStatus.AVAILABLE.value)
            .order_by(Listing.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_listing(db: AsyncSession, listing_id: str):
        result = await db.execute(select(Listing).where(Listing.id == listing_id))
        return result.scalars().first()

    @staticmethod
    async def get_listings_by_seller(db: AsyncSession, seller_id: str):
        result = await db.execute(
            select(Listing).where(Listing.seller_id == seller_id).order_by(Listing.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def set_status(db: AsyncSession, listing_id: str, status: ListingStatus) -> bool:
        result = await db.execute(
            update(Listing).where(Listing.id == listing_id).values(status=ListingStatus(status).value)
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def claim_available(db: AsyncSession, listing_id: str, status: ListingStatus) -> bool:
        """Moves an AVAILABLE listing to ``status``; False if someone got there first."""
        result = await db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.status == ListingStatus.AVAILABLE.value)
            .values(status=ListingStatus(status).value)
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def apply_seller_rating(db: AsyncSession, seller_id: str, average: float, count: int) -> int:
        """Staged only; the caller commits. Returns the number of listings touched."""
        result = await db.execute(
            update(Listing)
            .where(Listing.seller_id == seller_id)
            .values(seller_rating=average, seller_rating_count=count)
        )
        return result.rowcount
