"""
Booking price computation.

Nights are counted with ceiling rounding: any started day of stay is billed
as a full night, so 2025-01-01T14:00 -> 2025-01-02T11:00 is one night and
2025-01-01T10:00 -> 2025-01-02T12:00 is two.
"""
import datetime
import math
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from . import models
from .exceptions import InvalidRoomError, InvalidDateError, InvalidRangeError, InvalidDiscountValueError

CENTS = Decimal("0.01")
SECONDS_PER_NIGHT = 24 * 60 * 60


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary float expansion
    return Decimal(str(value))


def parse_stay_date(value) -> datetime.datetime:
    """
    Parses a check-in/check-out value into a naive UTC datetime.

    Accepts datetime, date or an ISO-8601 string. Date-only values map to
    midnight. Raises InvalidDateError for anything else.
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, datetime.date):
        parsed = datetime.datetime.combine(value, datetime.time.min)
    elif isinstance(value, str):
        try:
            parsed = datetime.datetime.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateError(value)
    else:
        raise InvalidDateError(value)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def calculate_nights(check_in, check_out) -> int:
    """Number of billable nights between two dates, ceiling-rounded."""
    start = parse_stay_date(check_in)
    end = parse_stay_date(check_out)
    if end <= start:
        raise InvalidRangeError()
    return math.ceil((end - start).total_seconds() / SECONDS_PER_NIGHT)


def get_room_price(db: Session, room_id) -> Decimal:
    """Nightly rate of a room. Raises InvalidRoomError if the room does not exist."""
    if room_id is None:
        raise InvalidRoomError(room_id)
    room = db.get(models.Room, room_id)
    if room is None:
        raise InvalidRoomError(room_id)
    return _to_decimal(room.price)


def compute_price(db: Session, room_id, check_in, check_out) -> Decimal:
    """
    Total price of a stay: nightly rate * nights.

    Checks run in the order room, dates, range, and failures propagate
    unchanged to the caller.
    """
    nightly_price = get_room_price(db, room_id)
    nights = calculate_nights(check_in, check_out)
    return (nightly_price * nights).quantize(CENTS, rounding=ROUND_HALF_UP)


def apply_discount(price, percentage) -> Decimal:
    """Applies a percentage-off discount, e.g. 20 takes 20% off."""
    if percentage is None:
        raise InvalidDiscountValueError(percentage)
    pct = _to_decimal(percentage)
    if not (0 < pct <= 100):
        raise InvalidDiscountValueError(percentage)
    discounted = _to_decimal(price) * (1 - pct / 100)
    return discounted.quantize(CENTS, rounding=ROUND_HALF_UP)
