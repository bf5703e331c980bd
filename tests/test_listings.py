from conftest import make_user
from shared.result import ErrorKind, Success
from services.listing_service.models import ListingStatus
from services.listing_service.schemas import ListingCreate
from services.listing_service.service import ListingService


async def test_create_listing_stamps_seller(db):
    seller = await make_user(db, "ravi@example.com", username="ravi-books")
    result = await ListingService.create_listing(
        db, seller.id, ListingCreate(title="Train to Pakistan", author="Khushwant Singh", price=199)
    )

    assert isinstance(result, Success)
    listing = result.value
    assert (listing.seller_id, listing.seller_username) == (seller.id, "ravi-books")
    assert listing.status == ListingStatus.AVAILABLE.value
    assert (await ListingService.get_listing(db, listing.id)).value.title == "Train to Pakistan"


async def test_create_listing_requires_caller(db):
    result = await ListingService.create_listing(db, None, ListingCreate(title="Kanthapura", price=150))
    assert result.kind is ErrorKind.NOT_AUTHENTICATED


async def test_seller_listings_and_status_changes(db):
    seller = await make_user(db, "ravi@example.com")
    created = (await ListingService.create_listing(db, seller.id, ListingCreate(title="Godan", price=120))).value

    listings = (await ListingService.get_seller_listings(db, seller.id)).value
    assert [item.id for item in listings] == [created.id]

    denied = await ListingService.update_listing_status(db, "someone-else", created.id, ListingStatus.SOLD)
    assert denied.kind is ErrorKind.PERMISSION_DENIED

    updated = await ListingService.update_listing_status(db, seller.id, created.id, ListingStatus.SOLD)
    assert updated.value.status == ListingStatus.SOLD.value
    assert (await ListingService.list_available(db)).value == []
