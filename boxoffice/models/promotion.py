from sqlalchemy import Column, String, Boolean, DateTime, func, DECIMAL, Integer, Text
from boxoffice.db.session import Base

class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), unique=True, nullable=False, index=True)
    discount_percentage = Column(DECIMAL(5, 2), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    is_sent = Column(Boolean, default=False, nullable=False)  # flips to True exactly once
