import logging
from decimal import Decimal
from typing import Callable, List, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from boxoffice.core.errors import (
    BookingNotFoundError,
    InvalidStateError,
    SeatTakenError,
    ShowtimeNotFoundError,
    ShowtimeSoldOutError,
    TicketNotFoundError,
    ValidationError,
)
from boxoffice.db.transaction import atomic, storage_errors
from boxoffice.models.booking import Booking, BookingStatus, Ticket, TicketType
from boxoffice.models.showtime import Showtime

logger = logging.getLogger(__name__)

PricingStrategy = Callable[[Showtime, TicketType], Decimal]


def flat_pricing(showtime: Showtime, ticket_type: TicketType) -> Decimal:
    """Every ticket type pays the showtime's current price."""
    return showtime.price


def active_tickets(db: Session, showtime_id: int) -> Query:
    """Tickets for a showtime whose booking is still pending or confirmed."""
    return (
        db.query(Ticket)
        .join(Booking, Booking.id == Ticket.booking_id)
        .filter(
            Ticket.showtime_id == showtime_id,
            Booking.status != BookingStatus.CANCELLED,
        )
    )


def normalize_seat_number(seat_number: str) -> str:
    seat = (seat_number or "").strip().upper()
    if not seat:
        raise ValidationError("seat_number is required")
    if len(seat) > 10:
        raise ValidationError("seat_number is too long")
    return seat


def _parse_ticket_type(ticket_type) -> TicketType:
    try:
        return TicketType(ticket_type)
    except ValueError:
        allowed = ", ".join(t.value for t in TicketType)
        raise ValidationError(f"ticket_type must be one of: {allowed}") from None


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def issue_ticket(
    db: Session,
    booking_id: int,
    showtime_id: int,
    seat_number: str,
    ticket_type,
    pricing: PricingStrategy = flat_pricing,
) -> Ticket:
    """
    Claim one seat of a showtime for a pending booking.

    The showtime row is locked for the duration of the check so two buyers
    racing for the same seat serialize; the (showtime_id, seat_number) unique
    constraint catches anything that slips past.
    """
    seat = normalize_seat_number(seat_number)
    kind = _parse_ticket_type(ticket_type)

    with atomic(db):
        showtime = (
            db.query(Showtime)
            .filter(Showtime.id == showtime_id)
            .with_for_update()
            .first()
        )
        if not showtime:
            raise ShowtimeNotFoundError(showtime_id)

        booking = (
            db.query(Booking)
            .filter(Booking.id == booking_id)
            .with_for_update()
            .first()
        )
        if not booking:
            raise BookingNotFoundError(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidStateError(
                f"Tickets can only be added to pending bookings (current status: '{booking.status.value}')",
                current_status=booking.status.value,
            )

        held = active_tickets(db, showtime_id)
        if held.filter(Ticket.seat_number == seat).first():
            logger.info("Seat %s already taken for showtime %s", seat, showtime_id)
            raise SeatTakenError(showtime_id, seat)
        if held.count() >= showtime.total_seats:
            raise ShowtimeSoldOutError(showtime_id)

        price = pricing(showtime, kind)
        if price is None or Decimal(price) < 0:
            raise ValidationError("Pricing produced an invalid price")

        ticket = Ticket(
            booking_id=booking.id,
            showtime_id=showtime.id,
            seat_number=seat,
            ticket_type=kind,
            price=price,
        )
        db.add(ticket)
        try:
            db.flush()
        except IntegrityError:
            logger.info("Seat %s for showtime %s lost to a concurrent booking", seat, showtime_id)
            raise SeatTakenError(showtime_id, seat) from None

    logger.info(
        "Issued ticket %s (booking %s, showtime %s, seat %s)",
        ticket.id, booking_id, showtime_id, seat,
    )
    return ticket


def delete_ticket(db: Session, ticket_id: int) -> None:
    """Remove a ticket from a booking that is still being assembled."""
    with atomic(db):
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
        if not ticket:
            raise TicketNotFoundError(ticket_id)
        booking = (
            db.query(Booking)
            .filter(Booking.id == ticket.booking_id)
            .with_for_update()
            .first()
        )
        if booking.status != BookingStatus.PENDING:
            raise InvalidStateError(
                f"Tickets can only be removed from pending bookings (current status: '{booking.status.value}')",
                current_status=booking.status.value,
            )
        db.delete(ticket)
    logger.info("Deleted ticket %s", ticket_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_seat_numbers_for_showtime(db: Session, showtime_id: int) -> Set[str]:
    """Seats currently held by pending or confirmed bookings."""
    with storage_errors():
        if not db.query(Showtime.id).filter(Showtime.id == showtime_id).first():
            raise ShowtimeNotFoundError(showtime_id)
        rows = active_tickets(db, showtime_id).with_entities(Ticket.seat_number).all()
    return {r.seat_number for r in rows}


def get_ticket(db: Session, ticket_id: int) -> Ticket:
    with storage_errors():
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise TicketNotFoundError(ticket_id)
    return ticket


def list_tickets_for_booking(db: Session, booking_id: int) -> List[Ticket]:
    with storage_errors():
        if not db.query(Booking.id).filter(Booking.id == booking_id).first():
            raise BookingNotFoundError(booking_id)
        return (
            db.query(Ticket)
            .filter(Ticket.booking_id == booking_id)
            .order_by(Ticket.id)
            .all()
        )


def list_tickets_for_customer(db: Session, customer_id: int) -> List[Ticket]:
    """All tickets across the customer's bookings, oldest booking first."""
    with storage_errors():
        return (
            db.query(Ticket)
            .join(Booking, Booking.id == Ticket.booking_id)
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.created_at, Ticket.id)
            .all()
        )
