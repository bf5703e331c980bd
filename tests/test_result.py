from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException

from shared.result import ErrorKind, Failure, Success, captures_failures, unwrap


def test_unwrap_returns_success_value():
    assert unwrap(Success("order-1")) == "order-1"


@pytest.mark.parametrize("kind,status_code", [
    (ErrorKind.NOT_AUTHENTICATED, 401),
    (ErrorKind.NOT_FOUND, 404),
    (ErrorKind.MISSING_ADDRESS, 422),
    (ErrorKind.REMOTE_FAILURE, 502),
    (ErrorKind.INVALID_ARGUMENT, 422),
    (ErrorKind.PERMISSION_DENIED, 403),
    (ErrorKind.FAILED_PRECONDITION, 409),
])
def test_unwrap_maps_failure_to_http_error(kind, status_code):
    with pytest.raises(HTTPException) as exc:
        unwrap(Failure(kind, "nope"))
    assert exc.value.status_code == status_code
    assert exc.value.detail == "nope"


def test_not_authenticated_message():
    assert Failure.not_authenticated().message == "User not logged in"


async def test_captures_failures_turns_exceptions_into_remote_failure():
    @captures_failures
    async def explode():
        raise ConnectionError("store unreachable")

    result = await explode()
    assert result == Failure(ErrorKind.REMOTE_FAILURE, "store unreachable")


async def test_captures_failures_rolls_back_session(db, monkeypatch):
    rollback = AsyncMock()
    monkeypatch.setattr(db, "rollback", rollback)

    @captures_failures
    async def write(session):
        raise RuntimeError("constraint violated")

    result = await write(db)
    assert result.kind is ErrorKind.REMOTE_FAILURE
    rollback.assert_awaited_once()


async def test_captures_failures_survives_a_failing_rollback(db, monkeypatch):
    monkeypatch.setattr(db, "rollback", AsyncMock(side_effect=ConnectionError("connection reset")))

    @captures_failures
    async def write(session):
        raise RuntimeError("constraint violated")

    result = await write(db)
    assert result == Failure(ErrorKind.REMOTE_FAILURE, "constraint violated")
