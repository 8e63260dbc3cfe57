from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import datetime

from .models import BookingStatus, DiscountStatus


def _to_naive_utc(value):
    # Timestamps are stored as naive UTC
    if isinstance(value, datetime.datetime) and value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


# --- Hotels ---

class HotelBase(BaseModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    description: Optional[str] = None


class HotelCreate(HotelBase):
    pass


class HotelRead(HotelBase):
    id: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


# --- Rooms ---

class RoomBase(BaseModel):
    hotel_id: int
    room_type: str = Field(min_length=1)
    room_number: str = Field(min_length=1)
    price: Decimal = Field(gt=0)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    room_type: Optional[str] = Field(default=None, min_length=1)
    room_number: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Decimal] = Field(default=None, gt=0)


class RoomRead(RoomBase):
    id: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


# --- Discounts ---

class DiscountCreate(BaseModel):
    code: str = Field(min_length=1)
    percentage: Decimal = Field(gt=0, le=100)
    start_date: datetime.datetime
    end_date: datetime.datetime
    max_use: int = Field(gt=0)
    status: DiscountStatus = DiscountStatus.ACTIVE

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_utc_dates(cls, value):
        return _to_naive_utc(value)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("Discount end date must be after start date.")
        return self


class DiscountUpdate(BaseModel):
    # status and used_count are owned by the discount lifecycle
    code: Optional[str] = Field(default=None, min_length=1)
    percentage: Optional[Decimal] = Field(default=None, gt=0, le=100)
    start_date: Optional[datetime.datetime] = None
    end_date: Optional[datetime.datetime] = None
    max_use: Optional[int] = Field(default=None, gt=0)

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_utc_dates(cls, value):
        return _to_naive_utc(value)


class DiscountRead(BaseModel):
    id: int
    code: str
    percentage: Decimal
    start_date: datetime.datetime
    end_date: datetime.datetime
    status: DiscountStatus
    max_use: int
    used_count: int
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class DiscountValidation(BaseModel):
    id: int
    usable: bool = True


class DiscountSweepResult(BaseModel):
    deactivated: int


# --- Bookings ---

class BookingCreate(BaseModel):
    """
    Every field is optional here so the booking workflow can report the
    first missing one by name. Dates stay strings until the workflow
    parses them.
    """
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    status: Optional[BookingStatus] = None
    hotel_id: Optional[int] = None
    room_id: Optional[int] = None
    discount_id: Optional[int] = None


class BookingUpdate(BookingCreate):
    pass


class BookingRead(BaseModel):
    id: int
    user_id: int
    hotel_id: int
    room_id: int
    discount_id: Optional[int] = None
    check_in: datetime.datetime
    check_out: datetime.datetime
    total_price: Decimal
    status: BookingStatus
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class PriceQuote(BaseModel):
    room_id: int
    check_in: datetime.datetime
    check_out: datetime.datetime
    nights: int
    total_price: Decimal
