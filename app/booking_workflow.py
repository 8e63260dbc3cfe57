"""
Booking creation and update.

total_price is always computed here and never taken from the client. A
booking and the discount use it consumes are written in one transaction:
if pricing, the discount checks or the insert fail, nothing is persisted.
"""
import logging
from collections.abc import Mapping

from sqlalchemy.orm import Session

from . import discount_lifecycle, models, pricing
from .exceptions import MissingFieldError, NoUpdatableFieldsError, BookingNotFoundError, InvalidStatusError

logger = logging.getLogger("booking_service")

# Checked in this order, the first missing one is reported
REQUIRED_FIELDS = (
    ("check_in", "Check-in date"),
    ("check_out", "Check-out date"),
    ("status", "Status"),
    ("user_id", "User"),
    ("hotel_id", "Hotel"),
    ("room_id", "Room"),
)

UPDATABLE_FIELDS = ("check_in", "check_out", "status", "hotel_id", "room_id", "discount_id")
PRICING_FIELDS = ("check_in", "check_out", "room_id")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_booking_status(value) -> models.BookingStatus:
    if isinstance(value, models.BookingStatus):
        return value
    try:
        return models.BookingStatus(value)
    except ValueError:
        raise InvalidStatusError(value)


def _consume_discount(db: Session, discount_id, price):
    """Consumes one use of an already guarded discount and applies it to the price."""
    discount = discount_lifecycle.increment_usage(db, discount_id, commit=False)
    return pricing.apply_discount(price, discount.percentage)


def create_booking(db: Session, fields: Mapping) -> models.Booking:
    """
    Creates a booking from a mapping of fields.

    Required: check_in, check_out, status, user_id, hotel_id, room_id.
    Optional: discount_id, which must be Active and not exhausted.
    """
    for name, label in REQUIRED_FIELDS:
        if _is_blank(fields.get(name)):
            raise MissingFieldError(name, label)

    booking_status = _as_booking_status(fields["status"])
    discount_id = fields.get("discount_id")

    try:
        if discount_id is not None:
            # Fail fast on an unusable discount before doing any pricing work
            discount_lifecycle.check_active_or_inactive(db, discount_id)

        total_price = pricing.compute_price(db, fields["room_id"], fields["check_in"], fields["check_out"])
        check_in = pricing.parse_stay_date(fields["check_in"])
        check_out = pricing.parse_stay_date(fields["check_out"])

        if discount_id is not None:
            total_price = _consume_discount(db, discount_id, total_price)

        db_booking = models.Booking(
            user_id=fields["user_id"],
            hotel_id=fields["hotel_id"],
            room_id=fields["room_id"],
            discount_id=discount_id,
            check_in=check_in,
            check_out=check_out,
            total_price=total_price,
            status=booking_status,
        )
        db.add(db_booking)

        # Booking and discount usage land together
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_booking)
    logger.info(
        f"Booking {db_booking.id} created for room {db_booking.room_id}: "
        f"total_price={db_booking.total_price}, discount={discount_id}"
    )
    return db_booking


def update_booking(db: Session, booking_id, fields: Mapping) -> models.Booking:
    """
    Applies a partial update to a booking.

    The price is recomputed only when room_id, check_in or check_out is
    part of the update, falling back to the persisted values for whichever
    of them was not supplied. A discount already attached to the booking is
    re-applied to the new price without being consumed again; a different
    discount goes through the same guard and usage increment as on create.
    """
    updates = {
        name: fields.get(name)
        for name in UPDATABLE_FIELDS
        if not _is_blank(fields.get(name))
    }
    if not updates:
        raise NoUpdatableFieldsError()
    if "status" in updates:
        updates["status"] = _as_booking_status(updates["status"])

    db_booking = db.get(models.Booking, booking_id)
    if db_booking is None:
        raise BookingNotFoundError(booking_id)

    new_discount_id = updates.get("discount_id")
    discount_changed = new_discount_id is not None and new_discount_id != db_booking.discount_id
    pricing_changed = any(name in updates for name in PRICING_FIELDS)

    try:
        if discount_changed:
            discount_lifecycle.check_active_or_inactive(db, new_discount_id)

        if pricing_changed or discount_changed:
            room_id = updates.get("room_id", db_booking.room_id)
            raw_check_in = updates.get("check_in", db_booking.check_in)
            raw_check_out = updates.get("check_out", db_booking.check_out)
            total_price = pricing.compute_price(db, room_id, raw_check_in, raw_check_out)
            check_in = pricing.parse_stay_date(raw_check_in)
            check_out = pricing.parse_stay_date(raw_check_out)

            if discount_changed:
                total_price = _consume_discount(db, new_discount_id, total_price)
                db_booking.discount_id = new_discount_id
            elif db_booking.discount is not None:
                total_price = pricing.apply_discount(total_price, db_booking.discount.percentage)

            db_booking.room_id = room_id
            db_booking.check_in = check_in
            db_booking.check_out = check_out
            db_booking.total_price = total_price

        if "status" in updates:
            db_booking.status = updates["status"]
        if "hotel_id" in updates:
            db_booking.hotel_id = updates["hotel_id"]

        db_booking.updated_at = models.utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_booking)
    logger.info(f"Booking {db_booking.id} updated: fields={sorted(updates)}")
    return db_booking
