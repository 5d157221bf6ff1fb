from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import relationship
from boxoffice.db.session import Base

class Room(Base):
    """Screening room. Reference data owned by catalog management; read-only here."""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    seat_count = Column(Integer, nullable=False)

    # Relationships
    showtimes = relationship("Showtime", back_populates="room")
