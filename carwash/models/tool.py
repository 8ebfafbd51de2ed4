"""
Worker tool, tool assignment and tool charge models for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class ToolCategory(str, enum.Enum):
    EQUIPMENT = "Equipment"
    TOOLS = "Tools"
    SUPPLIES = "Supplies"


class ToolChargeStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    WAIVED = "waived"


class WorkerTool(Base):
    """A tool the business lends to washers."""

    __tablename__ = "worker_tools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=True)
    category = Column(SQLEnum(ToolCategory), nullable=False)
    is_returnable = Column(Boolean, default=False, nullable=False)
    replacement_cost = Column(Float, nullable=False, default=0.0)
    total_quantity = Column(Integer, nullable=False, default=0)
    available_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)


class WasherTool(Base):
    """A quantity of a tool handed to a washer."""

    __tablename__ = "washer_tools"

    id = Column(Integer, primary_key=True, index=True)
    washer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tool_id = Column(Integer, ForeignKey("worker_tools.id", ondelete="SET NULL"), nullable=True)
    tool_name = Column(String, nullable=False)
    tool_type = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    # Per-unit replacement cost at assignment time
    amount = Column(Float, nullable=False, default=0.0)
    is_returned = Column(Boolean, default=False, nullable=False, index=True)
    assigned_date = Column(DateTime, default=utcnow, nullable=False)
    returned_date = Column(DateTime, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    washer = relationship("User", lazy="selectin")


class ToolCharge(Base):
    """A charge levied on a washer for a lost or damaged tool."""

    __tablename__ = "tool_charges"

    id = Column(Integer, primary_key=True, index=True)
    washer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tool_id = Column(Integer, ForeignKey("worker_tools.id", ondelete="SET NULL"), nullable=True)
    tool_name = Column(String, nullable=False)
    charge_amount = Column(Float, nullable=False)
    replacement_cost = Column(Float, nullable=False)
    reason = Column(String, nullable=False)
    status = Column(SQLEnum(ToolChargeStatus), default=ToolChargeStatus.PENDING, nullable=False)
    charged_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    washer = relationship("User", foreign_keys=[washer_id], lazy="selectin")
