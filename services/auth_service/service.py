import structlog
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from shared.result import ErrorKind, Failure, Result, Success, captures_failures
from shared.schemas import Address
from shared.security.jwt_handler import create_access_token
from services.session_service.service import SessionService

from .models import User
from .repository import UserRepository
from .schemas import TokenResponse, UserCreate, UserLogin

logger = structlog.get_logger(__name__)

# pbkdf2 keeps hashing pure-python; no native bcrypt backend to pin
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    @captures_failures
    async def register(db: AsyncSession, data: UserCreate) -> Result[User]:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            return Failure(ErrorKind.FAILED_PRECONDITION, "Email already registered")
        user = User(
            email=data.email,
            hashed_password=AuthService._hash_password(data.password),
            username=data.username or data.email.split("@")[0],
            phone_number=data.phone_number,
        )
        user = await UserRepository.create(db, user)
        logger.info("user_registered", user_id=user.id)
        return Success(user)

    @staticmethod
    @captures_failures
    async def login(db: AsyncSession, data: UserLogin) -> Result[TokenResponse]:
        user = await UserRepository.get_by_email(db, data.email)
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            return Failure(ErrorKind.NOT_AUTHENTICATED, "Incorrect email or password")
        if not user.is_active:
            return Failure(ErrorKind.PERMISSION_DENIED, "Account is disabled")

        session = await SessionService.start_session(db, user.id)
        token = create_access_token(data={"sub": user.id})
        return Success(TokenResponse(access_token=token, session_id=session.session_id))

    @staticmethod
    @captures_failures
    async def logout(db: AsyncSession, caller_id: str | None, session_id: str) -> Result[None]:
        if caller_id is None:
            return Failure.not_authenticated()
        return await SessionService.end_session(db, caller_id, session_id)

    @staticmethod
    @captures_failures
    async def get_user_by_id(db: AsyncSession, user_id: str) -> Result[User]:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            return Failure.not_found("User")
        return Success(user)

    @staticmethod
    @captures_failures
    async def update_shipping_address(db: AsyncSession, caller_id: str | None, address: Address) -> Result[User]:
        if caller_id is None:
            return Failure.not_authenticated()
        if not address.is_valid():
            return Failure(
                ErrorKind.INVALID_ARGUMENT,
                "Address needs phone, address line 1, city, state and a pincode of at least 4 characters",
            )
        user = await UserRepository.get_by_id(db, caller_id)
        if not user:
            return Failure.not_found("User")
        user = await UserRepository.update_shipping_address(db, user, address.model_dump())
        return Success(user)
