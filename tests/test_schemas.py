import pytest

from services.auth_service.schemas import UserResponse
from services.listing_service.schemas import ListingResponse
from services.order_service.schemas import OrderResponse
from services.payment_service.schemas import PaymentResponse
from services.rating_service.schemas import RatingResponse
from services.session_service.schemas import SessionItemResponse, SessionResponse


@pytest.mark.parametrize("schema", [
    UserResponse,
    ListingResponse,
    OrderResponse,
    PaymentResponse,
    RatingResponse,
    SessionItemResponse,
    SessionResponse,
])
def test_response_schemas_read_orm_rows(schema):
    assert schema.model_config["from_attributes"] is True
    assert "Config" not in vars(schema)

