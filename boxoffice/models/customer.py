from sqlalchemy import Column, String, Boolean, Integer
from boxoffice.db.session import Base

class Customer(Base):
    """
    Read-only mirror of the identity store's customer records.
    Only the SQL-backed identity directory reads this table; bookings keep a
    plain customer_id without a foreign key.
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    promotion_subscription = Column(Boolean, default=False, nullable=False, index=True)
