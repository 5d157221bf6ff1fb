import enum
from decimal import Decimal
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class TicketType(str, enum.Enum):
    ADULT = "adult"
    SENIOR = "senior"
    CHILD = "child"

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, nullable=False, index=True)  # identity store reference
    status = Column(
        SAEnum(BookingStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tickets = relationship(
        "Ticket",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Ticket.id",
    )

    @property
    def total_amount(self) -> Decimal:
        """Order total: sum of the prices captured on each ticket."""
        return sum((t.price for t in self.tickets), Decimal("0.00"))

class Ticket(Base):
    __tablename__ = "tickets"
    # Cancelled bookings lose their tickets, so this only ever sees active seats
    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_number", name="uq_ticket_showtime_seat"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    seat_number = Column(String(10), nullable=False)
    ticket_type = Column(
        SAEnum(TicketType, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    price = Column(DECIMAL(10, 2), nullable=False)

    booking = relationship("Booking", back_populates="tickets")
    showtime = relationship("Showtime", back_populates="tickets")
