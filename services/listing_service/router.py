from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.result import unwrap
from shared.security import get_caller_id, limiter
from shared.security.rate_limiter import WRITE_RATE_LIMIT
from .schemas import ListingCreate, ListingResponse, ListingStatusUpdate
from .service import ListingService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "listing", "status": "running"}


@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_listing(
    request: Request,                               # REQUIRED: slowapi reads the caller from it
    payload: ListingCreate,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await ListingService.create_listing(db, caller_id, payload))

@router.get("/", response_model=list[ListingResponse])
async def list_listings(db: AsyncSession = Depends(get_db)):
    return unwrap(await ListingService.list_available(db))

@router.get("/sellers/{seller_id}", response_model=list[ListingResponse])
async def list_seller_listings(seller_id: str, db: AsyncSession = Depends(get_db)):
    return unwrap(await ListingService.get_seller_listings(db, seller_id))

@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(listing_id: str, db: AsyncSession = Depends(get_db)):
    return unwrap(await ListingService.get_listing(db, listing_id))

@router.patch("/{listing_id}/status", response_model=ListingResponse)
async def update_listing_status(
    listing_id: str,
    payload: ListingStatusUpdate,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await ListingService.update_listing_status(db, caller_id, listing_id, payload.status))
