import os
import tempfile

# Settings are read at import time; configure the environment first
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["INTERNAL_API_KEY"] = "test-internal-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RECONCILER_ENABLED"] = "false"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="bookmarket-media-")
os.environ["COURIER_EMAIL"] = "courier@example.com"
os.environ["COURIER_PASSWORD"] = "courier-password"

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shared.config.database import Base
from shared.schemas import Address
from shared.storage import ObjectStore
from services.auth_service.models import User
from services.listing_service.models import Listing, ListingStatus
from services.order_service.models import Order, OrderStatus
from services.payment_service.models import Payment  # noqa: F401
from services.rating_service.models import Rating  # noqa: F401
from services.session_service.models import Session, SessionItem  # noqa: F401
from services.shipment_service.courier import CourierClient

COURIER_BASE_URL = "https://courier.test/v1/external"


class RecordingObjectStore(ObjectStore):
    """In-memory blob store that remembers what was uploaded and from where."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.blobs: dict[str, bytes] = {}
        self.local_paths: list[str] = []
        self.deleted: list[str] = []

    async def upload_file(self, local_path: str, key: str, content_type: str) -> str:
        self.local_paths.append(local_path)
        if self.fail:
            raise RuntimeError("bucket unavailable")
        with open(local_path, "rb") as f:
            self.blobs[key] = f.read()
        return f"https://storage.test/{key}"

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.blobs.pop(key, None)


class FakeCourier:
    """
    Scripted courier API behind an httpx.MockTransport.

    ``statuses`` maps shipment id to a shipment_status_id, to "error" for an
    HTTP 500, or to "malformed" for a body without a status code.
    """

    def __init__(self, statuses: dict | None = None, login_ok: bool = True):
        self.statuses = statuses or {}
        self.login_ok = login_ok
        self.requests: list[httpx.Request] = []
        self.couriers = [
            {"courier_company_id": 10, "courier_name": "Blue Dart", "rate": 90.0},
            {"courier_company_id": 11, "courier_name": "DTDC", "rate": 45.5},
        ]

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def calls_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/auth/login"):
            if not self.login_ok:
                return httpx.Response(401, json={"message": "Invalid credentials"})
            return httpx.Response(200, json={"token": "courier-token"})

        if request.headers.get("Authorization") != "Bearer courier-token":
            return httpx.Response(401, json={"message": "Unauthenticated"})

        if "/courier/track/shipment/" in path:
            shipment_id = path.rsplit("/", 1)[1]
            value = self.statuses.get(shipment_id, "error")
            if value == "error":
                return httpx.Response(500, json={"message": "upstream failure"})
            if value == "malformed":
                return httpx.Response(200, json={"tracking_data": {"track_status": 0}})
            return httpx.Response(200, json={"tracking_data": {"shipment_status_id": value, "awb_code": "AWB1"}})

        if path.endswith("/orders/create/adhoc"):
            return httpx.Response(200, json={"order_id": 987654, "shipment_id": 123456, "status": "NEW"})

        if path.endswith("/courier/serviceability"):
            return httpx.Response(200, json={"data": {"available_courier_companies": self.couriers}})

        if path.endswith("/courier/assign/awb"):
            return httpx.Response(
                200, json={"awb_assign_status": 1, "response": {"data": {"awb_code": "AWB123", "courier_name": "DTDC"}}}
            )

        return httpx.Response(404, json={"message": "unknown endpoint"})

    def client(self) -> CourierClient:
        return CourierClient(
            COURIER_BASE_URL,
            "courier@example.com",
            "courier-password",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def object_store():
    return RecordingObjectStore()


@pytest.fixture
def address():
    return Address(
        name="Asha Rao",
        phone="9876543210",
        unit_number="Flat 4B",
        address_line1="12 MG Road",
        landmark="Metro station",
        city="Bengaluru",
        state="Karnataka",
        pincode="560001",
    )


@pytest.fixture
def seller_address():
    return Address(
        name="Ravi Kumar",
        phone="9123456780",
        address_line1="7 Park Street",
        city="Kolkata",
        state="West Bengal",
        pincode="700016",
    )


async def make_user(db, email: str, address: Address | None = None, username: str = "") -> User:
    user = User(
        email=email,
        hashed_password="not-a-real-hash",
        username=username or email.split("@")[0],
        shipping_address=address.model_dump() if address else None,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_listing(db, seller: User, title: str = "The Guide", price: float = 300.0, **fields) -> Listing:
    listing = Listing(
        seller_id=seller.id,
        seller_username=seller.username,
        title=title,
        author=fields.pop("author", "R. K. Narayan"),
        price=price,
        status=fields.pop("status", ListingStatus.AVAILABLE.value),
        **fields,
    )
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    return listing


async def make_order(db, buyer_id: str, seller_id: str, status: OrderStatus = OrderStatus.PENDING, **fields) -> Order:
    order = Order(
        listing_id=fields.pop("listing_id", "listing-1"),
        book_title=fields.pop("book_title", "The Guide"),
        book_author=fields.pop("book_author", "R. K. Narayan"),
        buyer_id=buyer_id,
        seller_id=seller_id,
        book_price=fields.pop("book_price", 300.0),
        shipping_cost=fields.pop("shipping_cost", 40.0),
        total_amount=fields.pop("total_amount", 340.0),
        status=OrderStatus(status).value,
        **fields,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


def days_ago(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)
