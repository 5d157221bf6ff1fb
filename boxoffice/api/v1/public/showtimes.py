from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boxoffice.api.deps import get_db
from boxoffice.schemas.showtime import Showtime as ShowtimeSchema, SeatAvailabilityResponse
from boxoffice.services import scheduler, tickets

showtime_router = APIRouter(prefix="/showtimes", tags=["Showtimes"])
movie_showtimes_router = APIRouter(prefix="/movies", tags=["Showtimes"])


@showtime_router.get("/{showtime_id}", response_model=ShowtimeSchema)
def get_showtime(showtime_id: int, db: Session = Depends(get_db)):
    return scheduler.get_showtime(db, showtime_id)


@showtime_router.get("/{showtime_id}/seats", response_model=SeatAvailabilityResponse)
def get_taken_seats(showtime_id: int, db: Session = Depends(get_db)):
    """
    Seats already held by pending or confirmed bookings.
    Used by the seat-selection screen to grey out unavailable seats.
    """
    showtime = scheduler.get_showtime(db, showtime_id)
    taken = tickets.get_seat_numbers_for_showtime(db, showtime_id)
    return SeatAvailabilityResponse(
        showtime_id=showtime.id,
        total_seats=showtime.total_seats,
        taken_seats=sorted(taken),
        available_count=max(0, showtime.total_seats - len(taken)),
    )


@movie_showtimes_router.get("/{movie_id}/showtimes", response_model=List[ShowtimeSchema])
def list_movie_showtimes(movie_id: int, db: Session = Depends(get_db)):
    return scheduler.list_showtimes_for_movie(db, movie_id)
