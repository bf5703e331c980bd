"""
Async client for the courier's external REST API (Shiprocket v1).

A ``CourierSession`` is one authenticated conversation: ``CourierClient.session()``
logs in once and every call made through the session reuses that bearer
token. Tokens are not cached between sessions.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx
import structlog

from shared.config import settings
from shared.observability import books_courier_failures_total

logger = structlog.get_logger(__name__)


class CourierError(Exception):
    """Any failure talking to the courier: transport, HTTP status or malformed body."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class CourierSession:
    def __init__(self, client: httpx.AsyncClient, token: str):
        self.client = client
        self.token = token

    async def _call(self, operation: str, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            resp = await self.client.request(
                method, path, headers={"Authorization": f"Bearer {self.token}"}, **kwargs
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            books_courier_failures_total.labels(operation=operation).inc()
            raise CourierError(operation, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            books_courier_failures_total.labels(operation=operation).inc()
            raise CourierError(operation, str(e) or type(e).__name__) from e

    async def track_shipment(self, shipment_id: str) -> dict[str, Any]:
        """Returns the raw ``tracking_data`` object of the shipment."""
        body = await self._call("track", "GET", f"/courier/track/shipment/{shipment_id}")
        tracking = body.get("tracking_data") if isinstance(body, dict) else None
        if not isinstance(tracking, dict):
            books_courier_failures_total.labels(operation="track").inc()
            raise CourierError("track", "response has no tracking_data")
        return tracking

    async def shipment_status_code(self, shipment_id: str) -> int:
        tracking = await self.track_shipment(shipment_id)
        code = tracking.get("shipment_status_id")
        # bool is an int subclass; true/false is not a status code
        if not isinstance(code, int) or isinstance(code, bool):
            books_courier_failures_total.labels(operation="track").inc()
            raise CourierError("track", f"malformed shipment_status_id {code!r}")
        return code

    async def create_order(self, payload: dict[str, Any]) -> tuple[str, str]:
        """Registers an adhoc order; returns (courier order id, shipment id)."""
        body = await self._call("create_order", "POST", "/orders/create/adhoc", json=payload)
        order_id, shipment_id = body.get("order_id"), body.get("shipment_id")
        if order_id is None or shipment_id is None:
            books_courier_failures_total.labels(operation="create_order").inc()
            raise CourierError("create_order", "response lacks order_id or shipment_id")
        return str(order_id), str(shipment_id)

    async def cheapest_courier_id(self, pickup_postcode: str, delivery_postcode: str, weight: float) -> int | None:
        """Cheapest serviceable courier for the route, or None when nobody serves it."""
        body = await self._call(
            "serviceability",
            "GET",
            "/courier/serviceability",
            params={
                "pickup_postcode": pickup_postcode,
                "delivery_postcode": delivery_postcode,
                "weight": weight,
                "cod": 0,
            },
        )
        couriers = (body.get("data") or {}).get("available_courier_companies") or []
        if not couriers:
            return None
        best = min(couriers, key=lambda c: float(c.get("rate", float("inf"))))
        return best["courier_company_id"]

    async def assign_awb(self, shipment_id: str, courier_id: int) -> tuple[str, str]:
        """Returns (awb code, courier name)."""
        body = await self._call(
            "assign_awb",
            "POST",
            "/courier/assign/awb",
            json={"shipment_id": shipment_id, "courier_id": courier_id},
        )
        data = (body.get("response") or {}).get("data") or {}
        if not data.get("awb_code"):
            books_courier_failures_total.labels(operation="assign_awb").inc()
            raise CourierError("assign_awb", "no AWB code in response")
        return str(data["awb_code"]), str(data.get("courier_name", ""))


class CourierClient:
    def __init__(
        self,
        base_url: str,
        email: str,
        password: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout
        self.transport = transport

    async def _login(self, client: httpx.AsyncClient) -> str:
        if not self.email or not self.password:
            raise CourierError("login", "courier credentials are not configured")
        try:
            resp = await client.post("/auth/login", json={"email": self.email, "password": self.password})
            resp.raise_for_status()
            token = resp.json().get("token")
        except (httpx.HTTPError, ValueError) as e:
            books_courier_failures_total.labels(operation="login").inc()
            raise CourierError("login", str(e) or type(e).__name__) from e
        if not token:
            books_courier_failures_total.labels(operation="login").inc()
            raise CourierError("login", "no token in response")
        return token

    @asynccontextmanager
    async def session(self) -> AsyncIterator[CourierSession]:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            token = await self._login(client)
            logger.debug("courier_authenticated")
            yield CourierSession(client, token)


def get_courier_client() -> CourierClient:
    """FastAPI dependency; overridden in tests with a mock transport."""
    return CourierClient(
        settings.COURIER_BASE_URL,
        settings.COURIER_EMAIL,
        settings.COURIER_PASSWORD,
        settings.COURIER_TIMEOUT_SECONDS,
    )
