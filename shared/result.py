"""
Tagged result type returned by every service operation.

Services catch faults at their boundary and hand back either ``Success`` or
``Failure``; routers turn a ``Failure`` into an HTTP error with ``unwrap``.
"""
import functools
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

import structlog
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_FOUND = "not_found"
    MISSING_ADDRESS = "missing_address"
    REMOTE_FAILURE = "remote_failure"
    INVALID_ARGUMENT = "invalid_argument"
    PERMISSION_DENIED = "permission_denied"
    FAILED_PRECONDITION = "failed_precondition"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T = None


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str

    @classmethod
    def not_authenticated(cls) -> "Failure":
        return cls(ErrorKind.NOT_AUTHENTICATED, "User not logged in")

    @classmethod
    def not_found(cls, what: str) -> "Failure":
        return cls(ErrorKind.NOT_FOUND, f"{what} not found")


Result = Union[Success[T], Failure]


HTTP_STATUS_BY_KIND = {
    ErrorKind.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.MISSING_ADDRESS: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.REMOTE_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.FAILED_PRECONDITION: status.HTTP_409_CONFLICT,
}


def unwrap(result: Result):
    """Returns the success value or raises the matching HTTPException."""
    match result:
        case Success(value=value):
            return value
        case Failure(kind=kind, message=message):
            headers = {"WWW-Authenticate": "Bearer"} if kind is ErrorKind.NOT_AUTHENTICATED else None
            raise HTTPException(status_code=HTTP_STATUS_BY_KIND[kind], detail=message, headers=headers)
        case _:
            raise TypeError(f"Not a Result: {result!r}")


def captures_failures(func):
    """
    Turns any exception escaping an async service operation into a
    REMOTE_FAILURE result. Pending work on an AsyncSession argument is
    rolled back so a failed batch leaves nothing half-written.
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            for arg in (*args, *kwargs.values()):
                if isinstance(arg, AsyncSession):
                    try:
                        await arg.rollback()
                    except Exception as rollback_error:
                        logger.error(
                            "rollback_failed", operation=func.__qualname__, error=str(rollback_error)
                        )
            logger.error("operation_failed", operation=func.__qualname__, error=str(e))
            return Failure(ErrorKind.REMOTE_FAILURE, str(e) or f"{func.__name__} failed")
    return wrapper
