"""Booking lifecycle: pending -> confirmed | cancelled.

Both terminal states are final. Every transition is a single conditional
UPDATE guarded by `status = 'pending'`, so a confirm racing a cancel (or the
expiry sweep) has exactly one winner.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from boxoffice.core.errors import (
    BookingNotFoundError,
    CustomerNotFoundError,
    DependencyError,
    IdentityUnavailableError,
    InvalidStateError,
    ValidationError,
)
from boxoffice.db.transaction import atomic, storage_errors
from boxoffice.integrations.identity import IdentityDirectory
from boxoffice.integrations.notifications import NotificationDispatcher, TicketLine
from boxoffice.models.booking import Booking, BookingStatus, Ticket

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_MINUTES = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _cancel_if_pending(db: Session, booking_id: int, now: datetime) -> int:
    """
    Move one pending booking to cancelled and drop its tickets so the seats
    can be sold again. Returns 1 if the booking was cancelled, 0 otherwise.
    """
    updated = (
        db.query(Booking)
        .filter(Booking.id == booking_id, Booking.status == BookingStatus.PENDING)
        .update(
            {"status": BookingStatus.CANCELLED, "cancelled_at": now},
            synchronize_session=False,
        )
    )
    if updated:
        db.query(Ticket).filter(Ticket.booking_id == booking_id).delete(synchronize_session=False)
    return updated


def _raise_for_missing_or_terminal(db: Session, booking_id: int, action: str) -> None:
    status = db.query(Booking.status).filter(Booking.id == booking_id).scalar()
    if status is None:
        raise BookingNotFoundError(booking_id)
    raise InvalidStateError(
        f"Only pending bookings can be {action} (current status: '{status.value}')",
        current_status=status.value,
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_booking_shell(
    db: Session,
    customer_id: int,
    identity: IdentityDirectory,
    now: Optional[datetime] = None,
) -> Booking:
    """Open an empty pending booking for a customer known to the identity store."""
    if customer_id is None or customer_id <= 0:
        raise ValidationError("customer_id must be a positive integer")

    try:
        exists = identity.customer_exists(customer_id)
    except DependencyError:
        raise
    except Exception as exc:
        logger.exception("Identity lookup for customer %s failed.", customer_id)
        raise IdentityUnavailableError() from exc
    if not exists:
        raise CustomerNotFoundError(customer_id)

    with atomic(db):
        booking = Booking(
            customer_id=customer_id,
            status=BookingStatus.PENDING,
            created_at=now or _utcnow(),
        )
        db.add(booking)
        db.flush()

    logger.info("Opened booking %s for customer %s", booking.id, customer_id)
    return booking


def confirm_booking(
    db: Session,
    booking_id: int,
    identity: IdentityDirectory,
    notifications: NotificationDispatcher,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Confirm a pending booking, then send the order confirmation.

    The status change is committed before anything is handed to the
    notification dispatcher; a failed e-mail leaves the booking confirmed.
    """
    with atomic(db):
        updated = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == BookingStatus.PENDING)
            .update(
                {"status": BookingStatus.CONFIRMED, "confirmed_at": now or _utcnow()},
                synchronize_session=False,
            )
        )
        if not updated:
            _raise_for_missing_or_terminal(db, booking_id, "confirmed")

    booking = get_booking(db, booking_id)
    logger.info("Confirmed booking %s", booking_id)
    _send_confirmation(booking, identity, notifications)
    return booking


def _send_confirmation(
    booking: Booking,
    identity: IdentityDirectory,
    notifications: NotificationDispatcher,
) -> None:
    try:
        lines = [
            TicketLine(
                ticket_id=t.id,
                movie_id=t.showtime.movie_id,
                show_date=t.showtime.show_date,
                start_time=t.showtime.start_time,
                seat_number=t.seat_number,
                ticket_type=t.ticket_type.value,
                price=t.price,
            )
            for t in booking.tickets
        ]
        notifications.booking_confirmed(
            identity, booking.customer_id, booking.id, lines, booking.total_amount
        )
    except Exception:
        logger.exception("Could not dispatch confirmation for booking %s", booking.id)


def cancel_booking(db: Session, booking_id: int, now: Optional[datetime] = None) -> Booking:
    """
    Cancel a pending booking; its seats are released in the same transaction.

    Cancelling an already cancelled booking returns it unchanged. Confirmed
    bookings stay confirmed and raise InvalidStateError.
    """
    with atomic(db):
        cancelled = _cancel_if_pending(db, booking_id, now or _utcnow())
        if not cancelled:
            status = db.query(Booking.status).filter(Booking.id == booking_id).scalar()
            if status != BookingStatus.CANCELLED:
                _raise_for_missing_or_terminal(db, booking_id, "cancelled")

    if cancelled:
        logger.info("Cancelled booking %s", booking_id)
    return get_booking(db, booking_id)


def expire_stale_pending_bookings(
    db: Session,
    threshold_minutes: int = DEFAULT_EXPIRY_MINUTES,
    now: Optional[datetime] = None,
) -> int:
    """
    Cancel every pending booking created at least `threshold_minutes` ago.

    Candidates are collected first and each one is cancelled in its own short
    transaction, so a long sweep never holds locks across the whole scan.
    Re-running is harmless: bookings already moved out of pending are skipped.
    Returns the number of bookings cancelled by this call.
    """
    if threshold_minutes < 0:
        raise ValidationError("threshold_minutes cannot be negative")

    now = now or _utcnow()
    cutoff = now - timedelta(minutes=threshold_minutes)

    with storage_errors():
        stale_ids = [
            row.id
            for row in db.query(Booking.id)
            .filter(Booking.status == BookingStatus.PENDING, Booking.created_at <= cutoff)
            .order_by(Booking.id)
            .all()
        ]

    expired = 0
    for booking_id in stale_ids:
        with atomic(db):
            expired += _cancel_if_pending(db, booking_id, now)

    if expired:
        logger.info("Expired %d pending booking(s) older than %d minutes", expired, threshold_minutes)
    return expired


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    with storage_errors():
        return (
            db.query(Booking)
            .options(joinedload(Booking.tickets).joinedload(Ticket.showtime))
            .filter(Booking.id == booking_id)
            .first()
        )


def get_bookings_for_customer(db: Session, customer_id: int) -> List[Booking]:
    """Customer's bookings, newest first."""
    with storage_errors():
        return (
            db.query(Booking)
            .options(joinedload(Booking.tickets))
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )
