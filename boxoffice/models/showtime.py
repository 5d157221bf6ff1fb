from sqlalchemy import Column, Date, Time, Integer, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class Showtime(Base):
    __tablename__ = "showtimes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_id = Column(Integer, nullable=False, index=True)  # catalog reference
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    show_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    total_seats = Column(Integer, nullable=False)  # copied from room.seat_count at creation
    price = Column(DECIMAL(10, 2), nullable=False)

    # Relationships
    room = relationship("Room", back_populates="showtimes")
    tickets = relationship("Ticket", back_populates="showtime")
