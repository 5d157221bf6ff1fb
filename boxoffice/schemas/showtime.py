from typing import Annotated, List, Optional
from pydantic import BaseModel, Field, computed_field
from decimal import Decimal
from datetime import date, time

from boxoffice.services.scheduler import end_time_of


# Showtime - Create (each item in the array)
class ShowtimeCreate(BaseModel):
    movie_id: int
    room_id: int
    show_date: date
    start_time: time
    duration_minutes: Annotated[int, Field(gt=0, le=24 * 60)]
    price: Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class Showtime(BaseModel):
    id: int
    movie_id: int
    room_id: int
    show_date: date
    start_time: time
    duration_minutes: int
    total_seats: int
    price: Decimal

    @computed_field
    @property
    def end_time(self) -> time:
        return end_time_of(self.start_time, self.duration_minutes)

    class Config:
        from_attributes = True


class SeatAvailabilityResponse(BaseModel):
    showtime_id: int
    total_seats: int
    taken_seats: List[str]
    available_count: int


# Room schedule (GET /admin/rooms/{id}/schedule)
class RoomScheduleResponse(BaseModel):
    room_id: int
    room_name: str
    seat_count: int
    show_date: Optional[date] = None
    showtimes: List[Showtime]
