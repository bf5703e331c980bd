import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from services.auth_service.repository import UserRepository
from .models import Listing, ListingStatus
from .repository import ListingRepository
from .schemas import ListingCreate

logger = structlog.get_logger(__name__)

class ListingService:

    @staticmethod
    @captures_failures
    async def create_listing(db: AsyncSession, caller_id: str | None, data: ListingCreate) -> Result[Listing]:
        if caller_id is None:
            return Failure.not_authenticated()
        seller = await UserRepository.get_by_id(db, caller_id)
        if not seller:
            return Failure.not_found("User")

        listing = Listing(
            seller_id=caller_id,
            seller_username=seller.username,
            title=data.title,
            author=data.author,
            isbn=data.isbn,
            description=data.description,
            image_url=data.image_url,
            price=data.price,
            status=ListingStatus.AVAILABLE.value,
            seller_rating=seller.user_rating,
        )
        listing = await ListingRepository.create_listing(db, listing)
        logger.info("listing_created", listing_id=listing.id, seller_id=caller_id)
        return Success(listing)

    @staticmethod
    @captures_failures
    async def list_available(db: AsyncSession) -> Result[list[Listing]]:
        return Success(list(await ListingRepository.get_available_listings(db)))

    @staticmethod
    @captures_failures
    async def get_listing(db: AsyncSession, listing_id: str) -> Result[Listing]:
        listing = await ListingRepository.get_listing(db, listing_id)
        if not listing:
            return Failure.not_found("Listing")
        return Success(listing)

    @staticmethod
    @captures_failures
    async def get_seller_listings(db: AsyncSession, seller_id: str) -> Result[list[Listing]]:
        return Success(list(await ListingRepository.get_listings_by_seller(db, seller_id)))

    @staticmethod
    @captures_failures
    async def update_listing_status(
        db: AsyncSession, caller_id: str | None, listing_id: str, status: ListingStatus
    ) -> Result[Listing]:
        """Seller-side status change, e.g. withdrawing a book by marking it SOLD."""
        if caller_id is None:
            return Failure.not_authenticated()
        listing = await ListingRepository.get_listing(db, listing_id)
        if not listing:
            return Failure.not_found("Listing")
        if listing.seller_id != caller_id:
            return Failure(ErrorKind.PERMISSION_DENIED, "Only the seller can change this listing")

        await ListingRepository.set_status(db, listing_id, status)
        await db.refresh(listing)
        return Success(listing)
