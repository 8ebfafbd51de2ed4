"""
Location model for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from carwash.core.dates import utcnow
from carwash.database import Base


class Location(Base):
    """A car wash branch."""

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String, nullable=False)
    lga = Column(String, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)
