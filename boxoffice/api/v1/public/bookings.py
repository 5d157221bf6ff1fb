from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from boxoffice.api.deps import get_db, get_identity, get_notifications
from boxoffice.core.errors import BookingNotFoundError
from boxoffice.integrations.identity import IdentityDirectory
from boxoffice.integrations.notifications import NotificationDispatcher
from boxoffice.schemas.booking import (
    BookingCreate,
    Booking as BookingSchema,
    BookingSummary,
    Ticket as TicketSchema,
)
from boxoffice.services import bookings, tickets

router = APIRouter(prefix="/bookings", tags=["Bookings"])
customer_router = APIRouter(prefix="/customers", tags=["Bookings"])


# ---------------------------------------------------------------------------
# POST /bookings
# ---------------------------------------------------------------------------


@router.post("", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    identity: IdentityDirectory = Depends(get_identity),
):
    """
    Start a booking for a customer. The booking stays `pending` while tickets
    are added and is cancelled automatically if it is not confirmed in time.
    """
    booking = bookings.create_booking_shell(db, data.customer_id, identity)
    return BookingSchema.model_validate(bookings.get_booking(db, booking.id))


# ---------------------------------------------------------------------------
# GET /bookings/{id}
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    booking = bookings.get_booking(db, booking_id)
    if not booking:
        raise BookingNotFoundError(booking_id)
    return BookingSchema.model_validate(booking)


# ---------------------------------------------------------------------------
# POST /bookings/{id}/confirm and /cancel
# ---------------------------------------------------------------------------


@router.post("/{booking_id}/confirm", response_model=BookingSchema)
def confirm_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    identity: IdentityDirectory = Depends(get_identity),
    notifications: NotificationDispatcher = Depends(get_notifications),
):
    """
    Confirm a pending booking.
    - Fails with 409 if the booking is already confirmed or cancelled.
    - The confirmation e-mail is sent in the background.
    """
    booking = bookings.confirm_booking(db, booking_id, identity, notifications)
    return BookingSchema.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(booking_id: int, db: Session = Depends(get_db)):
    """Cancel a pending booking and release its seats."""
    booking = bookings.cancel_booking(db, booking_id)
    return BookingSchema.model_validate(booking)


# ---------------------------------------------------------------------------
# Customer views
# ---------------------------------------------------------------------------


@customer_router.get("/{customer_id}/bookings", response_model=List[BookingSummary])
def list_customer_bookings(customer_id: int, db: Session = Depends(get_db)):
    """Return the customer's bookings, newest first."""
    return bookings.get_bookings_for_customer(db, customer_id)


@customer_router.get("/{customer_id}/tickets", response_model=List[TicketSchema])
def list_customer_tickets(customer_id: int, db: Session = Depends(get_db)):
    return tickets.list_tickets_for_customer(db, customer_id)
