from .jwt_handler import create_access_token, verify_access_token
from .api_key import verify_api_key
from .dependencies import get_caller_id, get_current_user, verify_internal_api_key
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "verify_api_key",
    "get_caller_id",
    "get_current_user",
    "verify_internal_api_key",
    "limiter",
    "user_id_or_ip"
]
