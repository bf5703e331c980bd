"""
Seller reputation. Ratings are stored as individual rows; the seller's mean
is denormalised onto every listing the seller owns and onto the seller's
user row so listing pages can show it without a join.
"""
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.observability import books_ratings_submitted_total
from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from services.auth_service.repository import UserRepository
from services.listing_service.repository import ListingRepository
from services.order_service.repository import OrderRepository
from .models import Rating
from .repository import RatingRepository
from .schemas import RatingCreate, SellerRatingSummary

logger = structlog.get_logger(__name__)


class RatingService:

    @staticmethod
    @captures_failures
    async def submit_rating(db: AsyncSession, caller_id: str | None, data: RatingCreate) -> Result[str]:
        if caller_id is None:
            return Failure.not_authenticated()
        if not settings.MIN_RATING <= data.rating <= settings.MAX_RATING:
            return Failure(
                ErrorKind.INVALID_ARGUMENT,
                f"Rating must be between {settings.MIN_RATING:g} and {settings.MAX_RATING:g}",
            )

        if data.transaction_id:
            order = await OrderRepository.get_order(db, data.transaction_id)
            if order is not None:
                if order.buyer_id != caller_id:
                    return Failure(ErrorKind.PERMISSION_DENIED, "Only the buyer can rate this order")
                if order.seller_id != data.seller_id:
                    return Failure(ErrorKind.INVALID_ARGUMENT, "Seller does not match the order")
                if order.is_seller_rated:
                    return Failure(ErrorKind.FAILED_PRECONDITION, "Seller already rated for this order")
                await OrderRepository.update_fields(db, order.id, commit=False, is_seller_rated=True)

        rating = Rating(
            seller_id=data.seller_id,
            buyer_id=caller_id,
            rating=data.rating,
            comment=data.comment,
            timestamp=datetime.now(timezone.utc),
            transaction_id=data.transaction_id,
        )
        rating = await RatingRepository.add_rating(db, rating)
        books_ratings_submitted_total.inc()
        logger.info("rating_submitted", rating_id=rating.id, seller_id=data.seller_id, buyer_id=caller_id)

        recomputed = await RatingService.update_seller_average_rating(db, data.seller_id)
        if isinstance(recomputed, Failure):
            # The rating stands; the next submission or a manual recompute repairs the aggregate
            logger.warning("seller_rating_recompute_failed", seller_id=data.seller_id, error=recomputed.message)

        return Success(rating.id)

    @staticmethod
    @captures_failures
    async def get_seller_ratings(db: AsyncSession, seller_id: str) -> Result[list[Rating]]:
        return Success(list(await RatingRepository.get_ratings_by_seller(db, seller_id)))

    @staticmethod
    @captures_failures
    async def update_seller_average_rating(db: AsyncSession, seller_id: str) -> Result[SellerRatingSummary | None]:
        """
        Recomputes the mean over all of the seller's ratings and writes it to
        every listing of the seller and to the seller's profile in a single
        commit. A seller without ratings is left untouched.
        """
        average, count = await RatingRepository.get_seller_stats(db, seller_id)
        if count == 0:
            return Success(None)

        listings = await ListingRepository.apply_seller_rating(db, seller_id, average, count)
        await UserRepository.set_user_rating(db, seller_id, average)
        await db.commit()

        logger.info("seller_rating_updated", seller_id=seller_id, average=average, count=count, listings=listings)
        return Success(SellerRatingSummary(seller_id=seller_id, average=average, count=count))
