from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer, APIKeyHeader
from .jwt_handler import verify_access_token
from .api_key import verify_api_key

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/auth/login", auto_error=False)

# Defines the expected internal service header
api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)

async def get_caller_id(request: Request, token: str = Depends(oauth2_scheme)) -> str | None:
    """
    Resolves the caller identity from the bearer JWT.

    Returns None when the token is absent or invalid; write paths turn that
    into a NOT_AUTHENTICATED result instead of failing here.
    """
    if not token:
        return None

    payload = verify_access_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    # Store in request state for downstream use (like rate limiting)
    request.state.user_id = user_id
    return user_id

async def get_current_user(caller_id: str | None = Depends(get_caller_id)) -> str:
    """Dependency for endpoints that are meaningless without a caller."""
    if caller_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller_id

async def verify_internal_api_key(api_key: str = Depends(api_key_header)) -> bool:
    """Dependency to validate scheduler and service-to-service requests."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
