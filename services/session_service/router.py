"""
Cart endpoints. Every route acts for the bearer of the JWT and only on
sessions that user opened at login.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.result import unwrap
from shared.security.dependencies import get_caller_id

from .schemas import SessionItemCreate, SessionResponse
from .service import SessionService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "session", "status": "running"}


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str, caller_id: str | None = Depends(get_caller_id), db: AsyncSession = Depends(get_db)
):
    return unwrap(await SessionService.get_session(db, caller_id, session_id))


@router.post("/{session_id}/items", response_model=SessionResponse)
async def add_item(
    session_id: str,
    item: SessionItemCreate,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await SessionService.add_item_to_session(db, caller_id, session_id, item.listing_id))


@router.delete("/{session_id}/items/{listing_id}", response_model=SessionResponse)
async def remove_item(
    session_id: str,
    listing_id: str,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await SessionService.remove_item_from_session(db, caller_id, session_id, listing_id))


@router.delete("/{session_id}/items", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    session_id: str, caller_id: str | None = Depends(get_caller_id), db: AsyncSession = Depends(get_db)
):
    """Deletes all items in the session cart."""
    unwrap(await SessionService.clear_session_cart(db, caller_id, session_id))
