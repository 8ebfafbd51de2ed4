"""
Wash service model for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Enum as SQLEnum
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class ServiceCategory(str, enum.Enum):
    """Service category enumeration."""
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    ENGINE = "engine"
    VACUUM = "vacuum"
    COMPLEMENTARY = "complementary"


class Service(Base):
    """Service database model."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=True)
    base_price = Column(Float, nullable=False, default=0.0)
    category = Column(SQLEnum(ServiceCategory), nullable=False)
    estimated_duration = Column(Integer, nullable=False)
    washer_commission_percentage = Column(Float, nullable=False, default=40.0)
    company_commission_percentage = Column(Float, nullable=False, default=60.0)
    max_washers_per_service = Column(Integer, nullable=False, default=2)
    commission_notes = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)
