# Import testing tools
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Import models to query the stored rows
from app import models

# Import JWT library and settings to create test tokens
from jose import jwt
from app.config import settings as booking_settings


# --- Helper function to create test JWT ---
def create_test_token(user_id: int = 1) -> str:
    """Creates a simple JWT for testing."""
    payload = {"sub": str(user_id)}
    token = jwt.encode(payload, booking_settings.SECRET_KEY, algorithm=booking_settings.ALGORITHM)
    return f"Bearer {token}"


# --- Fixture to provide auth headers ---
@pytest.fixture
def auth_headers():
    """Provides authorization headers with a default test token (user_id=1)."""
    return {"Authorization": create_test_token()}


@pytest.fixture
def booking_data(hotel, room):
    return {
        "check_in": "2025-01-01",
        "check_out": "2025-01-03",
        "status": "Confirmed",
        "hotel_id": hotel.id,
        "room_id": room.id,
    }


# --- Test Cases ---

def test_create_booking_success(client: TestClient, auth_headers, booking_data, db_session: Session):
    response = client.post("/bookings/", json=booking_data, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == 1  # User ID from the test token
    assert data["room_id"] == booking_data["room_id"]
    assert float(data["total_price"]) == 200.0
    assert data["status"] == "Confirmed"
    assert "id" in data

    assert db_session.query(models.Booking).count() == 1


def test_create_booking_with_discount(client: TestClient, auth_headers, booking_data, make_discount,
                                      redis_mock, db_session: Session):
    discount = make_discount(percentage=20, max_use=10, used_count=0)
    discount_id = discount.id
    booking_data["discount_id"] = discount_id

    response = client.post("/bookings/", json=booking_data, headers=auth_headers)

    assert response.status_code == 201
    assert float(response.json()["total_price"]) == 160.0

    db_session.expire_all()
    assert db_session.get(models.Discount, discount_id).used_count == 1
    # The consumed discount is dropped from the cache
    redis_mock.delete.assert_called()
    assert f"discount_{discount_id}" in redis_mock.delete.call_args.args


def test_create_booking_missing_status(client: TestClient, auth_headers, booking_data):
    booking_data.pop("status")

    response = client.post("/bookings/", json=booking_data, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"detail": "Status is required", "code": "missing_field"}


def test_create_booking_invalid_dates(client: TestClient, auth_headers, booking_data):
    """Test creating a booking where check_out is not after check_in."""
    booking_data["check_out"] = booking_data["check_in"]

    response = client.post("/bookings/", json=booking_data, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_range"
    assert "must be greater than check-in date" in response.json()["detail"]


def test_create_booking_inactive_discount(client: TestClient, auth_headers, booking_data, make_discount,
                                          db_session: Session):
    discount = make_discount(status=models.DiscountStatus.INACTIVE)
    booking_data["discount_id"] = discount.id

    response = client.post("/bookings/", json=booking_data, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "discount_inactive"
    assert db_session.query(models.Booking).count() == 0


def test_create_booking_no_auth(client: TestClient, booking_data):
    """Test creating a booking without providing an auth token."""
    response = client.post("/bookings/", json=booking_data)
    assert response.status_code in (401, 403)


def test_create_booking_bad_token(client: TestClient, booking_data):
    response = client.post("/bookings/", json=booking_data, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_quote_price(client: TestClient, room):
    response = client.get(
        "/bookings/quote",
        params={"room_id": room.id, "check_in": "2025-01-01", "check_out": "2025-01-03"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["nights"] == 2
    assert float(data["total_price"]) == 200.0


def test_quote_price_unknown_room(client: TestClient):
    response = client.get(
        "/bookings/quote",
        params={"room_id": 999, "check_in": "2025-01-01", "check_out": "2025-01-03"},
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid room", "code": "invalid_room"}


def test_update_booking_status_only(client: TestClient, auth_headers, booking_data):
    created = client.post("/bookings/", json=booking_data, headers=auth_headers).json()

    response = client.put(f"/bookings/{created['id']}", json={"status": "Cancelled"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "Cancelled"
    assert float(data["total_price"]) == 200.0


def test_update_booking_dates(client: TestClient, auth_headers, booking_data):
    created = client.post("/bookings/", json=booking_data, headers=auth_headers).json()

    response = client.put(
        f"/bookings/{created['id']}",
        json={"check_in": "2025-01-08", "check_out": "2025-01-09"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert float(response.json()["total_price"]) == 100.0


def test_update_booking_empty_payload(client: TestClient, auth_headers, booking_data):
    created = client.post("/bookings/", json=booking_data, headers=auth_headers).json()

    response = client.put(f"/bookings/{created['id']}", json={}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Please provide fields to update."


def test_update_booking_not_found(client: TestClient, auth_headers):
    response = client.put("/bookings/123", json={"check_in": "2025-01-08"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "No booking found with this ID: 123"


def test_update_booking_of_another_user(client: TestClient, auth_headers, booking_data):
    created = client.post("/bookings/", json=booking_data, headers=auth_headers).json()

    response = client.put(
        f"/bookings/{created['id']}",
        json={"status": "Cancelled"},
        headers={"Authorization": create_test_token(user_id=2)},
    )

    assert response.status_code == 404


def test_read_user_bookings(client: TestClient, auth_headers, hotel, room, db_session: Session):
    """Test retrieving bookings only for the authenticated user."""
    import datetime

    def add_booking(user_id, day):
        db_session.add(models.Booking(
            user_id=user_id, hotel_id=hotel.id, room_id=room.id,
            check_in=datetime.datetime(2025, 1, day), check_out=datetime.datetime(2025, 1, day + 2),
            total_price=200, status=models.BookingStatus.CONFIRMED,
        ))

    add_booking(1, 1)
    add_booking(1, 10)
    add_booking(2, 20)
    db_session.commit()

    response = client.get("/bookings/", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert isinstance(data, list)
    assert len(data) == 2
    assert all(b["user_id"] == 1 for b in data)


def test_read_and_delete_booking(client: TestClient, auth_headers, booking_data, db_session: Session):
    created = client.post("/bookings/", json=booking_data, headers=auth_headers).json()

    response = client.get(f"/bookings/{created['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]

    response = client.delete(f"/bookings/{created['id']}", headers=auth_headers)
    assert response.status_code == 204
    assert db_session.query(models.Booking).count() == 0

    response = client.get(f"/bookings/{created['id']}", headers=auth_headers)
    assert response.status_code == 404


def test_rate_limit_identifier_prefers_token_subject():
    import asyncio
    from unittest.mock import MagicMock

    from app.auth import rate_limit_identifier

    def request_with(authorization):
        request = MagicMock()
        request.headers = {"Authorization": authorization} if authorization else {}
        request.client.host = "10.0.0.5"
        return request

    assert asyncio.run(rate_limit_identifier(request_with(create_test_token(user_id=7)))) == "7"
    assert asyncio.run(rate_limit_identifier(request_with("Bearer not-a-jwt"))) == "10.0.0.5"
    assert asyncio.run(rate_limit_identifier(request_with(None))) == "10.0.0.5"
