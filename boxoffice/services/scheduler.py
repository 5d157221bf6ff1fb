"""Showtime scheduling.

A room can only screen one showtime at a time. Showtimes are compared as
half-open minute intervals [start, start + duration), so a show that ends at
16:00 and one that starts at 16:00 do not collide.
"""

import logging
from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from boxoffice.core.errors import (
    InvalidRoomError,
    InvalidStateError,
    OverlapError,
    ShowtimeNotFoundError,
    ValidationError,
)
from boxoffice.db.transaction import atomic, storage_errors
from boxoffice.models.room import Room
from boxoffice.models.showtime import Showtime
from boxoffice.services.tickets import active_tickets

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class ShowtimeRequest:
    movie_id: int
    room_id: int
    show_date: date
    start_time: time
    duration_minutes: int
    price: Decimal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def end_time_of(start_time: time, duration_minutes: int) -> time:
    """Wall-clock end of a show (wraps past midnight)."""
    minutes = (start_time.hour * 60 + start_time.minute + duration_minutes) % MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def _interval(show_date: date, start_time: time, duration_minutes: int, anchor: date) -> Tuple[int, int]:
    """Minute interval of a show on an axis where `anchor` midnight is 0."""
    start = (show_date - anchor).days * MINUTES_PER_DAY + start_time.hour * 60 + start_time.minute
    return start, start + duration_minutes


def intervals_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def _validate(request: ShowtimeRequest) -> None:
    if request.duration_minutes is None or request.duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")
    if request.duration_minutes > MINUTES_PER_DAY:
        raise ValidationError("duration_minutes cannot exceed one day")
    if request.price is None or Decimal(request.price) < 0:
        raise ValidationError("price cannot be negative")
    if request.show_date is None or request.start_time is None:
        raise ValidationError("show_date and start_time are required")


def _check_room_overlap(db: Session, request: ShowtimeRequest, admitted: Sequence[Showtime]) -> None:
    """
    Raise OverlapError if the request collides with a stored showtime or with
    one admitted earlier in the same batch.

    The neighbouring days are included so late shows that run past midnight
    are compared against the next morning's schedule.
    """
    window = [request.show_date + timedelta(days=d) for d in (-1, 0, 1)]
    new = _interval(request.show_date, request.start_time, request.duration_minutes, request.show_date)

    stored = (
        db.query(Showtime)
        .filter(Showtime.room_id == request.room_id, Showtime.show_date.in_(window))
        .all()
    )
    in_batch = [s for s in admitted if s.room_id == request.room_id and s.show_date in window]

    for other in [*stored, *in_batch]:
        existing = _interval(other.show_date, other.start_time, other.duration_minutes, request.show_date)
        if intervals_overlap(new, existing):
            conflict = (
                f"{other.show_date} {other.start_time:%H:%M}-"
                f"{end_time_of(other.start_time, other.duration_minutes):%H:%M}"
            )
            logger.info(
                "Overlap in room %s: new %s %s+%dmin conflicts with %s",
                request.room_id,
                request.show_date,
                request.start_time,
                request.duration_minutes,
                conflict,
            )
            raise OverlapError(request.room_id, request.show_date, request.start_time, conflict)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def schedule_showtimes(db: Session, requests: Iterable[ShowtimeRequest]) -> List[Showtime]:
    """
    Admit a batch of showtimes, all or nothing.

    Every affected room row is locked before any overlap check so two
    concurrent batches for the same room serialize. Seat capacity is copied
    from the room at creation time.
    """
    requests = list(requests)
    if not requests:
        raise ValidationError("At least one showtime is required")
    for request in requests:
        _validate(request)

    admitted: List[Showtime] = []
    with atomic(db):
        room_ids = sorted({r.room_id for r in requests})
        rooms = {
            room.id: room
            for room in db.query(Room)
            .filter(Room.id.in_(room_ids))
            .order_by(Room.id)
            .with_for_update()
            .all()
        }

        for request in requests:
            room = rooms.get(request.room_id)
            if room is None or not room.seat_count or room.seat_count <= 0:
                raise InvalidRoomError(request.room_id)

            _check_room_overlap(db, request, admitted)

            showtime = Showtime(
                movie_id=request.movie_id,
                room_id=request.room_id,
                show_date=request.show_date,
                start_time=request.start_time,
                duration_minutes=request.duration_minutes,
                total_seats=room.seat_count,
                price=request.price,
            )
            db.add(showtime)
            admitted.append(showtime)

        db.flush()

    logger.info("Scheduled %d showtime(s): %s", len(admitted), [s.id for s in admitted])
    return admitted


def schedule_showtime(
    db: Session,
    movie_id: int,
    room_id: int,
    show_date: date,
    start_time: time,
    duration_minutes: int,
    price: Decimal,
) -> Showtime:
    request = ShowtimeRequest(
        movie_id=movie_id,
        room_id=room_id,
        show_date=show_date,
        start_time=start_time,
        duration_minutes=duration_minutes,
        price=price,
    )
    return schedule_showtimes(db, [request])[0]


def delete_showtime(db: Session, showtime_id: int) -> None:
    """Remove a showtime that has not sold any seats."""
    with atomic(db):
        showtime = (
            db.query(Showtime)
            .filter(Showtime.id == showtime_id)
            .with_for_update()
            .first()
        )
        if not showtime:
            raise ShowtimeNotFoundError(showtime_id)
        if active_tickets(db, showtime_id).count():
            raise InvalidStateError("Showtime has tickets and cannot be deleted")
        db.delete(showtime)
    logger.info("Deleted showtime %s", showtime_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_showtime(db: Session, showtime_id: int) -> Showtime:
    with storage_errors():
        showtime = db.query(Showtime).filter(Showtime.id == showtime_id).first()
    if not showtime:
        raise ShowtimeNotFoundError(showtime_id)
    return showtime


def list_showtimes_for_movie(db: Session, movie_id: int) -> List[Showtime]:
    with storage_errors():
        return (
            db.query(Showtime)
            .filter(Showtime.movie_id == movie_id)
            .order_by(Showtime.show_date, Showtime.start_time)
            .all()
        )


def list_room_schedule(db: Session, room_id: int, show_date: Optional[date] = None) -> Tuple[Room, List[Showtime]]:
    """Room and its showtimes, for one date or all of them."""
    with storage_errors():
        room = db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise InvalidRoomError(room_id)

        query = db.query(Showtime).filter(Showtime.room_id == room_id)
        if show_date:
            query = query.filter(Showtime.show_date == show_date)
        return room, query.order_by(Showtime.show_date, Showtime.start_time).all()
