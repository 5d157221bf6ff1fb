from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from boxoffice.api.deps import get_db
from boxoffice.schemas.booking import TicketCreate, Ticket as TicketSchema
from boxoffice.schemas.common import DeletedResponse
from boxoffice.services import tickets

router = APIRouter(prefix="/tickets", tags=["Tickets"])
booking_tickets_router = APIRouter(prefix="/bookings", tags=["Tickets"])


@booking_tickets_router.post(
    "/{booking_id}/tickets",
    response_model=TicketSchema,
    status_code=status.HTTP_201_CREATED,
)
def add_ticket(booking_id: int, data: TicketCreate, db: Session = Depends(get_db)):
    """
    Claim a seat for a pending booking.
    - 409 if the seat is already held by another pending or confirmed booking.
    - The ticket price is the showtime's price at the moment of issue.
    """
    return tickets.issue_ticket(
        db,
        booking_id=booking_id,
        showtime_id=data.showtime_id,
        seat_number=data.seat_number,
        ticket_type=data.ticket_type,
    )


@booking_tickets_router.get("/{booking_id}/tickets", response_model=List[TicketSchema])
def list_booking_tickets(booking_id: int, db: Session = Depends(get_db)):
    return tickets.list_tickets_for_booking(db, booking_id)


@router.get("/{ticket_id}", response_model=TicketSchema)
def get_ticket(ticket_id: int, db: Session = Depends(get_db)):
    return tickets.get_ticket(db, ticket_id)


@router.delete("/{ticket_id}", response_model=DeletedResponse)
def delete_ticket(ticket_id: int, db: Session = Depends(get_db)):
    """Remove a ticket from a pending booking, freeing its seat."""
    tickets.delete_ticket(db, ticket_id)
    return DeletedResponse(id=ticket_id)
