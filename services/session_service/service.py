import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import books_active_carts
from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from services.listing_service.models import ListingStatus
from services.listing_service.repository import ListingRepository
from .models import Session, SessionItem
from .repository import SessionRepository

logger = structlog.get_logger(__name__)


async def _owned_session(db: AsyncSession, caller_id: str | None, session_id: str) -> Session | Failure:
    if caller_id is None:
        return Failure.not_authenticated()
    session = await SessionRepository.get_session(db, session_id)
    if not session:
        return Failure.not_found("Session")
    if session.user_id != caller_id:
        return Failure(ErrorKind.PERMISSION_DENIED, "Session belongs to another user")
    return session


class SessionService:
    """
    The cart is owned by a session row opened at login and closed at logout.
    Nothing outside the database holds cart state.
    """

    @staticmethod
    async def start_session(db: AsyncSession, user_id: str) -> Session:
        session = Session(session_id=str(uuid.uuid4()), user_id=user_id, is_active=True)
        session = await SessionRepository.create_session(db, session)
        books_active_carts.inc()
        logger.info("cart_session_started", session_id=session.session_id, user_id=user_id)
        return session

    @staticmethod
    @captures_failures
    async def get_session(db: AsyncSession, caller_id: str | None, session_id: str) -> Result[Session]:
        session = await _owned_session(db, caller_id, session_id)
        if isinstance(session, Failure):
            return session
        return Success(session)

    @staticmethod
    @captures_failures
    async def add_item_to_session(
        db: AsyncSession, caller_id: str | None, session_id: str, listing_id: str
    ) -> Result[Session]:
        session = await _owned_session(db, caller_id, session_id)
        if isinstance(session, Failure):
            return session
        if not session.is_active:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Session has ended")

        listing = await ListingRepository.get_listing(db, listing_id)
        if not listing:
            return Failure.not_found("Listing")
        if listing.seller_id == caller_id:
            return Failure(ErrorKind.FAILED_PRECONDITION, "You cannot buy your own listing")
        if listing.status != ListingStatus.AVAILABLE.value:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Listing is no longer available")

        await SessionRepository.add_item(db, SessionItem(session_id=session_id, listing_id=listing_id))
        return Success(await SessionRepository.get_session(db, session_id))

    @staticmethod
    @captures_failures
    async def remove_item_from_session(
        db: AsyncSession, caller_id: str | None, session_id: str, listing_id: str
    ) -> Result[Session]:
        session = await _owned_session(db, caller_id, session_id)
        if isinstance(session, Failure):
            return session
        removed = await SessionRepository.remove_item(db, session_id, listing_id)
        if not removed:
            return Failure.not_found("Cart item")
        return Success(await SessionRepository.get_session(db, session_id))

    @staticmethod
    @captures_failures
    async def clear_session_cart(db: AsyncSession, caller_id: str | None, session_id: str) -> Result[None]:
        session = await _owned_session(db, caller_id, session_id)
        if isinstance(session, Failure):
            return session
        await SessionRepository.clear_cart(db, session_id)
        return Success(None)

    @staticmethod
    @captures_failures
    async def end_session(db: AsyncSession, caller_id: str | None, session_id: str) -> Result[None]:
        session = await _owned_session(db, caller_id, session_id)
        if isinstance(session, Failure):
            return session
        if session.is_active:
            await SessionRepository.clear_cart(db, session_id)
            await SessionRepository.deactivate(db, session)
            books_active_carts.dec()
            logger.info("cart_session_ended", session_id=session_id, user_id=caller_id)
        return Success(None)
