from datetime import datetime

from sqlalchemy import func, select

from conftest import make_listing, make_order, make_user
from shared.result import ErrorKind, Success
from services.order_service.models import OrderStatus
from services.rating_service.models import Rating
from services.rating_service.schemas import RatingCreate
from services.rating_service.service import RatingService


async def rate(db, caller_id, seller_id, value, **fields):
    return await RatingService.submit_rating(
        db, caller_id, RatingCreate(seller_id=seller_id, rating=value, **fields)
    )


async def test_average_is_written_to_every_listing_of_the_seller(db):
    seller = await make_user(db, "seller@example.com")
    other = await make_user(db, "other@example.com")
    first = await make_listing(db, seller, "Swami and Friends")
    second = await make_listing(db, seller, "The English Teacher")
    untouched = await make_listing(db, other, "Godan")

    for value in (3, 4, 5):
        assert isinstance(await rate(db, "buyer-1", seller.id, value), Success)

    for listing in (first, second, untouched):
        await db.refresh(listing)
    await db.refresh(seller)

    assert (first.seller_rating, first.seller_rating_count) == (4.0, 3)
    assert (second.seller_rating, second.seller_rating_count) == (4.0, 3)
    assert (untouched.seller_rating, untouched.seller_rating_count) == (0.0, 0)
    assert seller.user_rating == 4.0


async def test_recompute_without_ratings_is_a_noop(db):
    seller = await make_user(db, "seller@example.com")
    listing = await make_listing(db, seller)

    result = await RatingService.update_seller_average_rating(db, seller.id)

    assert result == Success(None)
    await db.refresh(listing)
    assert listing.seller_rating_count == 0


async def test_recompute_returns_summary(db):
    seller = await make_user(db, "seller@example.com")
    await rate(db, "buyer-1", seller.id, 2)
    await rate(db, "buyer-2", seller.id, 5)

    result = await RatingService.update_seller_average_rating(db, seller.id)

    assert result.value.average == 3.5
    assert result.value.count == 2


async def test_out_of_range_ratings_are_rejected(db):
    for value in (0.5, 5.5, -1):
        result = await rate(db, "buyer-1", "seller-1", value)
        assert result.kind is ErrorKind.INVALID_ARGUMENT

    stored = (await db.execute(select(func.count(Rating.id)))).scalar_one()
    assert stored == 0


async def test_bounds_are_inclusive(db):
    assert isinstance(await rate(db, "buyer-1", "seller-1", 1), Success)
    assert isinstance(await rate(db, "buyer-1", "seller-1", 5), Success)


async def test_buyer_and_timestamp_come_from_the_server(db):
    result = await rate(
        db, "buyer-1", "seller-1", 4,
        buyer_id="someone-else",
        timestamp=datetime(2001, 1, 1),
        comment="Well packed",
    )

    ratings = (await RatingService.get_seller_ratings(db, "seller-1")).value
    assert [r.id for r in ratings] == [result.value]
    assert ratings[0].buyer_id == "buyer-1"
    assert ratings[0].timestamp.year > 2001
    assert ratings[0].comment == "Well packed"


async def test_rating_requires_caller(db):
    result = await rate(db, None, "seller-1", 4)
    assert result.kind is ErrorKind.NOT_AUTHENTICATED


async def test_rating_an_order_flips_is_seller_rated_once(db):
    order = await make_order(db, "buyer-1", "seller-1", status=OrderStatus.DELIVERED)

    first = await rate(db, "buyer-1", "seller-1", 5, transaction_id=order.id)
    second = await rate(db, "buyer-1", "seller-1", 1, transaction_id=order.id)

    assert isinstance(first, Success)
    assert second.kind is ErrorKind.FAILED_PRECONDITION
    await db.refresh(order)
    assert order.is_seller_rated is True


async def test_only_the_buyer_rates_an_order(db):
    order = await make_order(db, "buyer-1", "seller-1", status=OrderStatus.DELIVERED)
    result = await rate(db, "eve", "seller-1", 5, transaction_id=order.id)
    assert result.kind is ErrorKind.PERMISSION_DENIED


async def test_order_seller_must_match(db):
    order = await make_order(db, "buyer-1", "seller-1", status=OrderStatus.DELIVERED)
    result = await rate(db, "buyer-1", "seller-2", 5, transaction_id=order.id)
    assert result.kind is ErrorKind.INVALID_ARGUMENT
