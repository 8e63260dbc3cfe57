import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("booking_service")


class BookingServiceError(Exception):
    """
    Base class for domain failures.

    Each subclass carries a stable machine-readable ``code`` and the HTTP
    status the API layer should answer with, so the domain code never
    touches the transport.
    """
    code = "booking_service_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# --- Validation errors: the caller must fix its input ---

class MissingFieldError(BookingServiceError):
    code = "missing_field"

    def __init__(self, field: str, label: str | None = None):
        self.field = field
        super().__init__(f"{label or field} is required")


class InvalidRoomError(BookingServiceError):
    code = "invalid_room"

    def __init__(self, room_id=None):
        self.room_id = room_id
        super().__init__("Invalid room")


class InvalidDateError(BookingServiceError):
    code = "invalid_date"

    def __init__(self, value=None):
        self.value = value
        super().__init__("Invalid check-in or check-out date")


class InvalidRangeError(BookingServiceError):
    code = "invalid_range"

    def __init__(self):
        super().__init__("Check-out date must be greater than check-in date")


class InvalidDiscountValueError(BookingServiceError):
    code = "invalid_discount_value"

    def __init__(self, percentage=None):
        self.percentage = percentage
        super().__init__("Discount percentage must be greater than 0 and at most 100")


class InvalidStatusError(BookingServiceError):
    code = "invalid_status"

    def __init__(self, value=None):
        self.value = value
        super().__init__(f"Invalid booking status: {value}")


class NoUpdatableFieldsError(BookingServiceError):
    code = "no_updatable_fields"

    def __init__(self):
        super().__init__("Please provide fields to update.")


# --- Domain state errors: surfaced to the end user ---

class DiscountNotFoundError(BookingServiceError):
    code = "discount_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, discount_id=None):
        self.discount_id = discount_id
        super().__init__("Discount not found")


class DiscountInactiveError(BookingServiceError):
    code = "discount_inactive"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, discount_id=None):
        self.discount_id = discount_id
        super().__init__("Discount is expired and cannot be used")


class DiscountExhaustedError(BookingServiceError):
    code = "discount_exhausted"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, discount_id=None):
        self.discount_id = discount_id
        super().__init__("Discount has reached its maximum usage")


class BookingNotFoundError(BookingServiceError):
    code = "booking_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, booking_id=None):
        self.booking_id = booking_id
        super().__init__(f"No booking found with this ID: {booking_id}")


async def booking_service_error_handler(_request: Request, exc: BookingServiceError) -> JSONResponse:
    logger.info(f"Request rejected ({exc.code}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )
