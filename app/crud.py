from sqlalchemy.orm import Session
from . import models, schemas


# --- Hotels ---

def create_hotel(db: Session, hotel: schemas.HotelCreate):
    db_hotel = models.Hotel(**hotel.model_dump())
    db.add(db_hotel)
    db.commit()
    db.refresh(db_hotel)
    return db_hotel


def get_hotels(db: Session, skip: int = 0, limit: int = 100):
    return db.query(models.Hotel).order_by(models.Hotel.id).offset(skip).limit(limit).all()


def get_hotel(db: Session, hotel_id: int):
    return db.query(models.Hotel).filter(models.Hotel.id == hotel_id).first()


# --- Rooms ---

def create_room(db: Session, room: schemas.RoomCreate):
    db_room = models.Room(**room.model_dump())
    db.add(db_room)
    db.commit()
    db.refresh(db_room)
    return db_room


def get_rooms(db: Session, skip: int = 0, limit: int = 100):
    return db.query(models.Room).order_by(models.Room.id).offset(skip).limit(limit).all()


def get_room(db: Session, room_id: int):
    return db.query(models.Room).filter(models.Room.id == room_id).first()


def update_room(db: Session, room_id: int, room: schemas.RoomUpdate):
    db_room = get_room(db, room_id)
    if db_room is None:
        return None
    for field, value in room.model_dump(exclude_none=True).items():
        setattr(db_room, field, value)
    db.commit()
    db.refresh(db_room)
    return db_room


def delete_room(db: Session, room_id: int) -> bool:
    db_room = get_room(db, room_id)
    if db_room:
        db.delete(db_room)
        db.commit()
        return True
    return False


# --- Discounts ---
# Only the descriptive fields are written here. status and used_count
# transitions go through app.discount_lifecycle.

def create_discount(db: Session, discount: schemas.DiscountCreate):
    db_discount = models.Discount(**discount.model_dump(), used_count=0)
    db.add(db_discount)
    db.commit()
    db.refresh(db_discount)
    return db_discount


def get_active_discounts(db: Session, skip: int = 0, limit: int = 100):
    return (
        db.query(models.Discount)
        .filter(models.Discount.status == models.DiscountStatus.ACTIVE)
        .order_by(models.Discount.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_discount(db: Session, discount_id: int):
    return db.query(models.Discount).filter(models.Discount.id == discount_id).first()


def get_discount_by_code(db: Session, code: str):
    return db.query(models.Discount).filter(models.Discount.code == code).first()


def update_discount(db: Session, db_discount: models.Discount, fields: dict):
    """
    Writes descriptive fields onto a discount. Does NOT commit, so the
    caller can combine it with a lifecycle transition.
    """
    for field, value in fields.items():
        setattr(db_discount, field, value)
    db_discount.updated_at = models.utcnow()
    return db_discount


def delete_discount(db: Session, discount_id: int) -> bool:
    db_discount = get_discount(db, discount_id)
    if db_discount:
        db.delete(db_discount)
        db.commit()
        return True
    return False


# --- Bookings ---

def get_bookings_by_user(db: Session, user_id: int, skip: int = 0, limit: int = 100):
    return (
        db.query(models.Booking)
        .filter(models.Booking.user_id == user_id)
        .order_by(models.Booking.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_booking(db: Session, booking_id: int):
    return db.query(models.Booking).filter(models.Booking.id == booking_id).first()


def delete_booking(db: Session, booking_id: int) -> bool:
    db_booking = get_booking(db, booking_id)
    if db_booking:
        db.delete(db_booking)
        db.commit()
        return True
    return False
