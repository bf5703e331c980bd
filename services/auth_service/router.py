from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.result import unwrap
from shared.schemas import Address
from shared.security.dependencies import get_caller_id, get_current_user

from .schemas import LogoutRequest, TokenResponse, UserCreate, UserLogin, UserResponse
from .service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "auth", "status": "running"}


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return unwrap(await AuthService.register(db, payload))


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate, receive a JWT and open a cart session",
)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return unwrap(await AuthService.login(db, payload))


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="End the cart session opened at login",
)
async def logout(
    payload: LogoutRequest,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    unwrap(await AuthService.logout(db, caller_id, payload.session_id))


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await AuthService.get_user_by_id(db, user_id))


@router.put(
    "/me/address",
    response_model=UserResponse,
    summary="Set the shipping address used for orders and labels",
)
async def update_address(
    address: Address,
    caller_id: str | None = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await AuthService.update_shipping_address(db, caller_id, address))
