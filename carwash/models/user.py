"""
User and staff profile models for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    CAR_WASHER = "car_washer"


class User(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), default=UserRole.CAR_WASHER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    # Relationships
    admin_profile = relationship(
        "AdminProfile", back_populates="user", uselist=False,
        cascade="all, delete-orphan", lazy="selectin",
    )
    washer_profile = relationship(
        "WasherProfile", back_populates="user", uselist=False,
        cascade="all, delete-orphan", lazy="selectin",
        foreign_keys="WasherProfile.user_id",
    )


class AdminProfile(Base):
    """Admin profile: ties an admin to a location."""

    __tablename__ = "admin_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)

    user = relationship("User", back_populates="admin_profile")


class WasherProfile(Base):
    """Car washer profile holding the running earnings balance."""

    __tablename__ = "car_washer_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    assigned_admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    hourly_rate = Column(Float, nullable=True)
    total_earnings = Column(Float, default=0.0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    user = relationship("User", back_populates="washer_profile", foreign_keys=[user_id])
