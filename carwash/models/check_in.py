"""
Car check-in models for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class CheckInStatus(str, enum.Enum):
    """Check-in status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    POS = "pos"


class WashType(str, enum.Enum):
    """Instant washes are collected on the spot; delayed ones need a passcode."""
    INSTANT = "instant"
    DELAYED = "delayed"


class CheckIn(Base):
    """Check-in database model."""

    __tablename__ = "car_check_ins"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    license_plate = Column(String, nullable=False, index=True)
    vehicle_type = Column(String, nullable=False)
    vehicle_model = Column(String, nullable=True)
    vehicle_color = Column(String, nullable=True)
    wash_type = Column(SQLEnum(WashType), nullable=False, default=WashType.INSTANT)
    status = Column(SQLEnum(CheckInStatus), nullable=False, default=CheckInStatus.PENDING, index=True)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=True)
    assigned_washer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    passcode = Column(String, nullable=True)
    user_code = Column(String, nullable=True, index=True)
    remarks = Column(String, nullable=True)
    valuable_items = Column(String, nullable=True)
    reason = Column(String, nullable=True)
    washer_completion_status = Column(Boolean, default=False, nullable=False)
    estimated_duration = Column(Integer, nullable=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    washer_income = Column(Float, nullable=True)
    company_income = Column(Float, nullable=True)
    earnings_credited = Column(Boolean, default=False, nullable=False)
    check_in_time = Column(DateTime, default=utcnow, nullable=False, index=True)
    actual_completion_time = Column(DateTime, nullable=True)
    paid_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    # Relationships
    customer = relationship("Customer", lazy="selectin")
    lines = relationship(
        "CheckInService", back_populates="check_in", cascade="all, delete-orphan",
        lazy="selectin", order_by="CheckInService.id",
    )
    assigned_washer = relationship("User", foreign_keys=[assigned_washer_id], lazy="selectin")
    assigned_admin = relationship("User", foreign_keys=[assigned_admin_id], lazy="selectin")


class CheckInService(Base):
    """A service line on a check-in, priced at check-in time."""

    __tablename__ = "check_in_services"

    id = Column(Integer, primary_key=True, index=True)
    check_in_id = Column(Integer, ForeignKey("car_check_ins.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    service_name = Column(String, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    duration = Column(Integer, nullable=False, default=0)

    check_in = relationship("CheckIn", back_populates="lines")
    service = relationship("Service", lazy="selectin")


class CheckInMaterial(Base):
    """Quantity of a washer-held material consumed on a check-in."""

    __tablename__ = "check_in_materials"

    id = Column(Integer, primary_key=True, index=True)
    check_in_id = Column(Integer, ForeignKey("car_check_ins.id", ondelete="CASCADE"), nullable=False, index=True)
    washer_material_id = Column(Integer, ForeignKey("washer_materials.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow)
