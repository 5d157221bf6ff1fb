from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from boxoffice.api.deps import get_db
from boxoffice.schemas.common import DeletedResponse
from boxoffice.schemas.showtime import (
    ShowtimeCreate,
    Showtime as ShowtimeSchema,
    RoomScheduleResponse,
)
from boxoffice.services import scheduler

router = APIRouter(prefix="/admin/showtimes", tags=["Admin - Showtimes"])
room_schedule_router = APIRouter(prefix="/admin/rooms", tags=["Admin - Room Schedule"])


@router.post(
    "",
    response_model=List[ShowtimeSchema],
    status_code=status.HTTP_201_CREATED,
)
def create_showtimes(
    data: List[ShowtimeCreate],
    db: Session = Depends(get_db),
):
    """
    Schedule one or more showtimes.
    - Each showtime is checked against the room's existing schedule and
      against earlier entries of the same request.
    - If any entry overlaps, nothing is created (409).
    """
    requests = [scheduler.ShowtimeRequest(**item.model_dump()) for item in data]
    return scheduler.schedule_showtimes(db, requests)


@router.delete("/{showtime_id}", response_model=DeletedResponse)
def delete_showtime(showtime_id: int, db: Session = Depends(get_db)):
    """Delete a showtime that has no tickets."""
    scheduler.delete_showtime(db, showtime_id)
    return DeletedResponse(id=showtime_id)


@room_schedule_router.get("/{room_id}/schedule", response_model=RoomScheduleResponse)
def get_room_schedule(
    room_id: int,
    date: Optional[date] = Query(None, description="Filter by date (omit to see every showtime)"),
    db: Session = Depends(get_db),
):
    """Show what is scheduled in a room, so admins can see which time windows are free."""
    room, showtimes = scheduler.list_room_schedule(db, room_id, date)
    return RoomScheduleResponse(
        room_id=room.id,
        room_name=room.name,
        seat_count=room.seat_count,
        show_date=date,
        showtimes=[ShowtimeSchema.model_validate(s) for s in showtimes],
    )
