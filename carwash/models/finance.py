"""
Bonus, expense and payment request models for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class BonusType(str, enum.Enum):
    CUSTOMER = "customer"
    WASHER = "washer"


class BonusStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class ExpenseType(str, enum.Enum):
    """What an expense was spent on."""
    CHECKIN = "checkin"
    SALARY = "salary"
    EXPENSES = "expenses"
    FREE_WILL = "free_will"
    DEPOSIT_TO_BANK = "deposit_to_bank"
    OTHER = "other"


class PaymentRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class Bonus(Base):
    """Bonus awarded to a customer or a washer."""

    __tablename__ = "bonuses"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(SQLEnum(BonusType), nullable=False, index=True)
    recipient_id = Column(Integer, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    reason = Column(String, nullable=False)
    milestone = Column(String, nullable=True)
    status = Column(SQLEnum(BonusStatus), default=BonusStatus.PENDING, nullable=False, index=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)


class Expense(Base):
    """Money leaving the till."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    service_type = Column(SQLEnum(ExpenseType), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    reason = Column(String, nullable=False)
    description = Column(String, nullable=True)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    check_in_id = Column(Integer, ForeignKey("car_check_ins.id", ondelete="SET NULL"), nullable=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)
    expense_date = Column(DateTime, default=utcnow, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    admin = relationship("User", lazy="selectin")


class PaymentRequest(Base):
    """A washer's request to withdraw earnings."""

    __tablename__ = "payment_requests"

    id = Column(Integer, primary_key=True, index=True)
    washer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    # Washer earnings when the request was made
    total_earnings = Column(Float, nullable=False, default=0.0)
    material_deductions = Column(Float, nullable=False, default=0.0)
    tool_deductions = Column(Float, nullable=False, default=0.0)
    is_advance = Column(Boolean, default=False, nullable=False)
    status = Column(SQLEnum(PaymentRequestStatus), default=PaymentRequestStatus.PENDING, nullable=False, index=True)
    admin_notes = Column(String, nullable=True)
    approval_date = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    washer = relationship("User", foreign_keys=[washer_id], lazy="selectin")
