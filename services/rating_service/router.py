from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.result import unwrap
from shared.security import get_caller_id, limiter
from shared.security.dependencies import verify_internal_api_key
from shared.security.rate_limiter import WRITE_RATE_LIMIT
from .schemas import RatingCreate, RatingCreated, RatingResponse, SellerRatingSummary
from .service import RatingService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "rating", "status": "running"}


@router.post("/", response_model=RatingCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_RATE_LIMIT)
async def submit_rating(
    request: Request,                               # REQUIRED: slowapi reads the caller from it
    payload: RatingCreate,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return RatingCreated(id=unwrap(await RatingService.submit_rating(db, caller_id, payload)))

@router.get("/sellers/{seller_id}", response_model=list[RatingResponse])
async def list_seller_ratings(seller_id: str, db: AsyncSession = Depends(get_db)):
    return unwrap(await RatingService.get_seller_ratings(db, seller_id))

@router.post(
    "/sellers/{seller_id}/recompute",
    response_model=SellerRatingSummary | None,
    dependencies=[Depends(verify_internal_api_key)],
)
async def recompute_seller_rating(seller_id: str, db: AsyncSession = Depends(get_db)):
    return unwrap(await RatingService.update_seller_average_rating(db, seller_id))
