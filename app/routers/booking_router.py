from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from redis import Redis
from typing import List

from .. import schemas, crud, pricing, booking_workflow, cache
from ..auth import CurrentUserId, rate_limit
from ..database import get_db, get_redis_client

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _get_owned_booking(db: Session, booking_id: int, user_id: int):
    db_booking = crud.get_booking(db, booking_id=booking_id)
    if db_booking is None or db_booking.user_id != user_id:
        raise HTTPException(status_code=404, detail=f"No booking found with this ID: {booking_id}")
    return db_booking


@router.get("/quote", response_model=schemas.PriceQuote)
def quote_price(
        room_id: int,
        check_in: str,
        check_out: str,
        db: Session = Depends(get_db),
):
    """
    Price preview for a stay, without creating a booking.
    """
    total_price = pricing.compute_price(db, room_id, check_in, check_out)
    return schemas.PriceQuote(
        room_id=room_id,
        check_in=pricing.parse_stay_date(check_in),
        check_out=pricing.parse_stay_date(check_out),
        nights=pricing.calculate_nights(check_in, check_out),
        total_price=total_price,
    )


@router.post("/", response_model=schemas.BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
        booking: schemas.BookingCreate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
        limit: None = Depends(rate_limit(times=30, minutes=1)),
):
    """
    Create a new booking for the authenticated user.
    """
    fields = booking.model_dump()
    fields["user_id"] = user_id
    db_booking = booking_workflow.create_booking(db, fields)

    if db_booking.discount_id is not None:
        cache.invalidate_discount(redis_client, db_booking.discount_id)
    return db_booking


@router.get("/", response_model=List[schemas.BookingRead])
def read_user_bookings(
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        skip: int = 0,
        limit: int = 100,
        limit2: None = Depends(rate_limit(times=5, minutes=1)),
):
    """
    Get all bookings for the authenticated user.
    """
    return crud.get_bookings_by_user(db=db, user_id=user_id, skip=skip, limit=limit)


@router.get("/{booking_id}", response_model=schemas.BookingRead)
def read_booking(
        booking_id: int,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
):
    return _get_owned_booking(db, booking_id, user_id)


@router.put("/{booking_id}", response_model=schemas.BookingRead)
def update_booking(
        booking_id: int,
        booking: schemas.BookingUpdate,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
        redis_client: Redis = Depends(get_redis_client),
        limit: None = Depends(rate_limit(times=30, minutes=1)),
):
    """
    Partially update a booking. The price is recomputed when the room or
    the dates change.
    """
    db_booking = crud.get_booking(db, booking_id=booking_id)
    if db_booking is not None and db_booking.user_id != user_id:
        raise HTTPException(status_code=404, detail=f"No booking found with this ID: {booking_id}")

    previous_discount_id = db_booking.discount_id if db_booking is not None else None
    db_booking = booking_workflow.update_booking(db, booking_id, booking.model_dump())

    if db_booking.discount_id is not None and db_booking.discount_id != previous_discount_id:
        cache.invalidate_discount(redis_client, db_booking.discount_id)
    return db_booking


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
        booking_id: int,
        user_id: CurrentUserId,
        db: Session = Depends(get_db),
):
    _get_owned_booking(db, booking_id, user_id)
    crud.delete_booking(db=db, booking_id=booking_id)
