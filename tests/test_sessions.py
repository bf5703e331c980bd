from conftest import make_listing, make_user
from shared.result import ErrorKind, Success
from services.auth_service.schemas import UserCreate, UserLogin
from services.auth_service.service import AuthService
from services.session_service.service import SessionService


async def register_and_login(db, email):
    user = (await AuthService.register(db, UserCreate(email=email, password="correct-horse"))).value
    token = (await AuthService.login(db, UserLogin(email=email, password="correct-horse"))).value
    return user, token.session_id


async def test_login_opens_an_empty_cart(db):
    user, session_id = await register_and_login(db, "reader@example.com")

    session = (await SessionService.get_session(db, user.id, session_id)).value
    assert session.user_id == user.id
    assert session.is_active
    assert session.items == []


async def test_wrong_password_opens_nothing(db):
    await AuthService.register(db, UserCreate(email="reader@example.com", password="correct-horse"))
    result = await AuthService.login(db, UserLogin(email="reader@example.com", password="wrong-horse"))
    assert result.kind is ErrorKind.NOT_AUTHENTICATED


async def test_adding_twice_keeps_one_item(db):
    seller = await make_user(db, "seller@example.com")
    listing = await make_listing(db, seller)
    user, session_id = await register_and_login(db, "reader@example.com")

    await SessionService.add_item_to_session(db, user.id, session_id, listing.id)
    result = await SessionService.add_item_to_session(db, user.id, session_id, listing.id)

    assert [i.listing_id for i in result.value.items] == [listing.id]


async def test_cannot_cart_own_listing(db):
    user, session_id = await register_and_login(db, "seller@example.com")
    listing = await make_listing(db, user)

    result = await SessionService.add_item_to_session(db, user.id, session_id, listing.id)
    assert result.kind is ErrorKind.FAILED_PRECONDITION


async def test_sessions_are_private(db):
    owner, session_id = await register_and_login(db, "owner@example.com")
    intruder, _ = await register_and_login(db, "intruder@example.com")

    result = await SessionService.get_session(db, intruder.id, session_id)
    assert result.kind is ErrorKind.PERMISSION_DENIED
    assert (await SessionService.get_session(db, None, session_id)).kind is ErrorKind.NOT_AUTHENTICATED


async def test_logout_clears_the_cart(db):
    seller = await make_user(db, "seller@example.com")
    listing = await make_listing(db, seller)
    user, session_id = await register_and_login(db, "reader@example.com")
    await SessionService.add_item_to_session(db, user.id, session_id, listing.id)

    assert await AuthService.logout(db, user.id, session_id) == Success(None)

    session = (await SessionService.get_session(db, user.id, session_id)).value
    assert session.items == []
    assert not session.is_active
    blocked = await SessionService.add_item_to_session(db, user.id, session_id, listing.id)
    assert blocked.kind is ErrorKind.FAILED_PRECONDITION


async def test_remove_missing_item(db):
    user, session_id = await register_and_login(db, "reader@example.com")
    result = await SessionService.remove_item_from_session(db, user.id, session_id, "nope")
    assert result.kind is ErrorKind.NOT_FOUND
