"""
Stock, washer material and product sale models for database.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from carwash.core.dates import utcnow
from carwash.database import Base


class MovementType(str, enum.Enum):
    IN = "in"
    OUT = "out"


class SaleStatus(str, enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StockItem(Base):
    """A consumable or product held in stock."""

    __tablename__ = "stock_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=True)
    category = Column(String, nullable=False, index=True)
    unit = Column(String, nullable=False)
    current_stock = Column(Float, nullable=False, default=0.0)
    min_stock_level = Column(Float, nullable=False, default=0.0)
    max_stock_level = Column(Float, nullable=False)
    cost_per_unit = Column(Float, nullable=False)
    supplier = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class StockMovement(Base):
    """Ledger entry for every change to a stock balance."""

    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    stock_item_id = Column(Integer, ForeignKey("stock_items.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(MovementType), nullable=False)
    quantity = Column(Float, nullable=False)
    previous_balance = Column(Float, nullable=False)
    new_balance = Column(Float, nullable=False)
    reason = Column(String, nullable=False)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    remarks = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class WasherMaterial(Base):
    """Stock issued to a washer for use on check-ins."""

    __tablename__ = "washer_materials"

    id = Column(Integer, primary_key=True, index=True)
    washer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    stock_item_id = Column(Integer, ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True)
    material_name = Column(String, nullable=False)
    material_type = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    used_quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String, nullable=False)
    is_returned = Column(Boolean, default=False, nullable=False)
    assigned_date = Column(DateTime, default=utcnow, nullable=False)
    returned_date = Column(DateTime, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)


class SalesTransaction(Base):
    """A product sale over the counter."""

    __tablename__ = "sales_transactions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    payment_method = Column(String, nullable=False)
    status = Column(SQLEnum(SaleStatus), default=SaleStatus.COMPLETED, nullable=False)
    remarks = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan",
        lazy="selectin", order_by="SaleItem.id",
    )


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales_transactions.id", ondelete="CASCADE"), nullable=False)
    stock_item_id = Column(Integer, ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True)
    item_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    line_total = Column(Float, nullable=False)

    sale = relationship("SalesTransaction", back_populates="items")
