"""
Customer milestone models for database.
"""
from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class MilestoneType(str, enum.Enum):
    VISITS = "visits"
    SPENDING = "spending"


class Milestone(Base):
    """A loyalty target, e.g. 10 visits or 50,000 spent."""

    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    type = Column(SQLEnum(MilestoneType), nullable=False)
    # {"operator": ">=", "value": 10}
    condition = Column(JSON, nullable=False)
    reward = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class MilestoneAchievement(Base):
    __tablename__ = "customer_milestone_achievements"
    __table_args__ = (UniqueConstraint("customer_id", "milestone_id", name="uq_customer_milestone"),)

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True)
    achieved_at = Column(DateTime, default=utcnow, nullable=False)
    achieved_value = Column(Float, nullable=False)
    reward_claimed = Column(Boolean, default=False, nullable=False)
    claimed_at = Column(DateTime, nullable=True)
    claimed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(String, nullable=True)

    customer = relationship("Customer", lazy="selectin")
    milestone = relationship("Milestone", lazy="selectin")
