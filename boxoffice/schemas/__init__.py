from boxoffice.schemas.common import ErrorResponse, DeletedResponse
from boxoffice.schemas.showtime import (
    ShowtimeCreate, Showtime, SeatAvailabilityResponse, RoomScheduleResponse,
)
from boxoffice.schemas.booking import (
    BookingCreate, BookingSummary, Booking, TicketCreate, Ticket,
)
from boxoffice.schemas.promotion import (
    PromotionCreate, Promotion, PromotionSendResponse, PromotionValidationResponse,
)
