from typing import Optional, List
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime

from boxoffice.models.booking import BookingStatus, TicketType


# Booking - Create (POST /bookings)
class BookingCreate(BaseModel):
    customer_id: int = Field(gt=0)


# Ticket - Create (POST /bookings/{id}/tickets)
class TicketCreate(BaseModel):
    showtime_id: int
    seat_number: str = Field(min_length=1, max_length=10)
    ticket_type: TicketType = TicketType.ADULT


class Ticket(BaseModel):
    id: int
    booking_id: int
    showtime_id: int
    seat_number: str
    ticket_type: TicketType
    price: Decimal

    class Config:
        from_attributes = True


class BookingSummary(BaseModel):
    id: int
    customer_id: int
    status: BookingStatus
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Booking - Full response (GET /bookings/{id}, confirm, cancel)
class Booking(BookingSummary):
    tickets: List[Ticket] = []
    total_amount: Decimal = Decimal("0.00")
