"""Domain errors raised by the scheduling, ticketing, booking and promotion services.

Every error carries a machine-readable code and a user-safe message. The
five base kinds decide how the API surfaces an error; concrete errors only
add context.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_ROOM = "INVALID_ROOM"
    INVALID_CODE = "INVALID_CODE"

    SHOWTIME_OVERLAP = "SHOWTIME_OVERLAP"
    SEAT_TAKEN = "SEAT_TAKEN"
    SHOWTIME_SOLD_OUT = "SHOWTIME_SOLD_OUT"
    PROMOTION_ALREADY_SENT = "PROMOTION_ALREADY_SENT"
    WRITE_CONFLICT = "WRITE_CONFLICT"

    SHOWTIME_NOT_FOUND = "SHOWTIME_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    PROMOTION_NOT_FOUND = "PROMOTION_NOT_FOUND"
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"

    INVALID_STATE = "INVALID_STATE"
    NO_SUBSCRIBERS = "NO_SUBSCRIBERS"

    IDENTITY_UNAVAILABLE = "IDENTITY_UNAVAILABLE"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class ValidationError(DomainError):
    """Malformed input, rejected before any storage access."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_FAILED) -> None:
        super().__init__(code=code, message=message)


class ConflictError(DomainError):
    """An invariant check failed; nothing was written."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.WRITE_CONFLICT) -> None:
        super().__init__(code=code, message=message)


class NotFoundError(DomainError):
    """The referenced record does not exist."""


class StateError(DomainError):
    """The record exists but its lifecycle state does not allow the operation."""


class DependencyError(DomainError):
    """An external collaborator or the storage layer could not be reached."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class InvalidRoomError(ValidationError):
    """Raised when a showtime references a missing room or one without seats."""

    def __init__(self, room_id: int) -> None:
        super().__init__(
            message=f"Room {room_id} does not exist or has no seats",
            code=ErrorCode.INVALID_ROOM,
        )
        self.room_id = room_id


class InvalidCodeError(ValidationError):
    """Raised when a promotion code is unknown or has not been sent yet."""

    def __init__(self, code: str) -> None:
        super().__init__(
            message="Invalid or unavailable promotion code",
            code=ErrorCode.INVALID_CODE,
        )
        self.promo_code = code


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class OverlapError(ConflictError):
    """Raised when a showtime would share its room with another one."""

    def __init__(self, room_id: int, show_date, start_time, conflict: str) -> None:
        super().__init__(
            message=(
                f"Room {room_id} is already occupied on {show_date} "
                f"around {start_time:%H:%M} ({conflict})"
            ),
            code=ErrorCode.SHOWTIME_OVERLAP,
        )
        self.room_id = room_id
        self.show_date = show_date
        self.start_time = start_time


class SeatTakenError(ConflictError):
    def __init__(self, showtime_id: int, seat_number: str) -> None:
        super().__init__(
            message=f"Seat {seat_number} is already taken for showtime {showtime_id}",
            code=ErrorCode.SEAT_TAKEN,
        )
        self.showtime_id = showtime_id
        self.seat_number = seat_number


class ShowtimeSoldOutError(ConflictError):
    def __init__(self, showtime_id: int) -> None:
        super().__init__(
            message=f"Showtime {showtime_id} is sold out",
            code=ErrorCode.SHOWTIME_SOLD_OUT,
        )
        self.showtime_id = showtime_id


class AlreadySentError(ConflictError):
    def __init__(self, promotion_id: int) -> None:
        super().__init__(
            message=f"Promotion {promotion_id} has already been sent",
            code=ErrorCode.PROMOTION_ALREADY_SENT,
        )
        self.promotion_id = promotion_id


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class ShowtimeNotFoundError(NotFoundError):
    def __init__(self, showtime_id: int) -> None:
        super().__init__(code=ErrorCode.SHOWTIME_NOT_FOUND, message="Showtime not found")
        self.showtime_id = showtime_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: int) -> None:
        super().__init__(code=ErrorCode.BOOKING_NOT_FOUND, message="Booking not found")
        self.booking_id = booking_id


class TicketNotFoundError(NotFoundError):
    def __init__(self, ticket_id: int) -> None:
        super().__init__(code=ErrorCode.TICKET_NOT_FOUND, message="Ticket not found")
        self.ticket_id = ticket_id


class PromotionNotFoundError(NotFoundError):
    def __init__(self, promotion_id: int) -> None:
        super().__init__(code=ErrorCode.PROMOTION_NOT_FOUND, message="Promotion not found")
        self.promotion_id = promotion_id


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: int) -> None:
        super().__init__(code=ErrorCode.CUSTOMER_NOT_FOUND, message="Customer not found")
        self.customer_id = customer_id


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class InvalidStateError(StateError):
    """Raised when a lifecycle transition is not allowed from the current status."""

    def __init__(self, message: str, current_status: str | None = None) -> None:
        super().__init__(code=ErrorCode.INVALID_STATE, message=message)
        self.current_status = current_status


class NoSubscribersError(StateError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NO_SUBSCRIBERS,
            message="No customers are subscribed to promotions",
        )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


class IdentityUnavailableError(DependencyError):
    def __init__(self, detail: str = "Identity service is unavailable") -> None:
        super().__init__(code=ErrorCode.IDENTITY_UNAVAILABLE, message=detail)


class StorageError(DependencyError):
    def __init__(self, detail: str = "Storage is unavailable") -> None:
        super().__init__(code=ErrorCode.STORAGE_UNAVAILABLE, message=detail)
