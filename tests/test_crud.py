# Import necessary modules
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.orm import Session

# Import the functions to test and the model
from app import crud, models, schemas


# --- Helper function to create a mock Discount object ---
def create_mock_discount(used_count: int = 0, max_use: int = 10):
    return models.Discount(
        id=1,
        code="SAVE10",
        percentage=Decimal("10"),
        status=models.DiscountStatus.ACTIVE,
        used_count=used_count,
        max_use=max_use,
    )


def test_update_discount_writes_fields_without_commit():
    mock_db = MagicMock(spec=Session)
    discount = create_mock_discount()

    crud.update_discount(mock_db, discount, {"code": "SAVE15", "percentage": Decimal("15")})

    assert discount.code == "SAVE15"
    assert discount.percentage == Decimal("15")
    assert discount.updated_at is not None
    # Committing is the caller's job
    mock_db.commit.assert_not_called()


def test_create_discount_always_starts_unused():
    mock_db = MagicMock(spec=Session)
    payload = schemas.DiscountCreate(
        code="NEW",
        percentage=Decimal("20"),
        start_date="2025-01-01T00:00:00",
        end_date="2025-02-01T00:00:00",
        max_use=3,
    )

    db_discount = crud.create_discount(mock_db, payload)

    assert db_discount.used_count == 0
    assert db_discount.status == models.DiscountStatus.ACTIVE
    mock_db.add.assert_called_once_with(db_discount)
    mock_db.commit.assert_called_once()


def test_delete_booking_missing():
    mock_db = MagicMock(spec=Session)
    mock_db.query.return_value.filter.return_value.first.return_value = None

    assert crud.delete_booking(mock_db, 42) is False
    mock_db.delete.assert_not_called()


def test_delete_booking_existing():
    mock_db = MagicMock(spec=Session)
    booking = models.Booking(id=42, user_id=1, hotel_id=1, room_id=1)
    mock_db.query.return_value.filter.return_value.first.return_value = booking

    assert crud.delete_booking(mock_db, 42) is True
    mock_db.delete.assert_called_once_with(booking)
    mock_db.commit.assert_called_once()


def test_get_bookings_by_user_filters_and_paginates():
    mock_db = MagicMock(spec=Session)
    chain = mock_db.query.return_value.filter.return_value.order_by.return_value
    chain.offset.return_value.limit.return_value.all.return_value = []

    assert crud.get_bookings_by_user(mock_db, user_id=1, skip=10, limit=5) == []
    chain.offset.assert_called_once_with(10)
    chain.offset.return_value.limit.assert_called_once_with(5)
