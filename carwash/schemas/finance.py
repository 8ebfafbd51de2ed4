"""
Pydantic schemas for bonuses, expenses, payment requests and payments.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Literal, Optional

from carwash.models.check_in import PaymentMethod
from carwash.models.finance import BonusStatus, BonusType, ExpenseType, PaymentRequestStatus


class BonusCreate(BaseModel):
    type: BonusType
    recipient_id: int
    amount: float = Field(gt=0)
    reason: str = Field(min_length=1)
    milestone: Optional[str] = None


class BonusAction(BaseModel):
    action: Literal["approve", "pay", "reject"]
    approved_by: Optional[int] = None


class Bonus(BaseModel):
    id: int
    type: BonusType
    recipient_id: int
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_phone: Optional[str] = None
    amount: float
    reason: str
    milestone: Optional[str] = None
    status: BonusStatus
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime


class ExpenseCreate(BaseModel):
    service_type: ExpenseType
    amount: float = Field(gt=0)
    reason: str = Field(min_length=1)
    description: Optional[str] = None
    check_in_id: Optional[int] = None
    location_id: Optional[int] = None
    expense_date: Optional[datetime] = None


class ExpenseUpdate(BaseModel):
    service_type: Optional[ExpenseType] = None
    amount: Optional[float] = Field(default=None, gt=0)
    reason: Optional[str] = None
    description: Optional[str] = None
    check_in_id: Optional[int] = None
    location_id: Optional[int] = None
    expense_date: Optional[datetime] = None


class Expense(BaseModel):
    id: int
    service_type: ExpenseType
    amount: float
    reason: str
    description: Optional[str] = None
    admin_id: Optional[int] = None
    admin_name: Optional[str] = None
    check_in_id: Optional[int] = None
    location_id: Optional[int] = None
    expense_date: datetime
    created_at: datetime


class PaymentRequestCreate(BaseModel):
    """Washers may omit ``washer_id``; it defaults to themselves."""
    washer_id: Optional[int] = None
    amount: float = Field(gt=0)
    material_deductions: float = Field(default=0.0, ge=0)
    tool_deductions: float = Field(default=0.0, ge=0)
    is_advance: bool = False
    admin_notes: Optional[str] = None


class PaymentRequestUpdate(BaseModel):
    status: PaymentRequestStatus
    admin_notes: Optional[str] = None


class PaymentRequest(BaseModel):
    id: int
    washer_id: int
    washer_name: Optional[str] = None
    washer_email: Optional[str] = None
    admin_id: Optional[int] = None
    amount: float
    total_earnings: float
    material_deductions: float
    tool_deductions: float
    is_advance: bool
    status: PaymentRequestStatus
    admin_notes: Optional[str] = None
    approval_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class Payment(BaseModel):
    """A paid check-in seen as a payment record."""
    id: int
    check_in_id: int
    customer_name: str
    license_plate: str
    amount: float
    payment_method: Optional[PaymentMethod] = None
    paid_time: Optional[datetime] = None
    washer_name: str

    model_config = ConfigDict(from_attributes=True)
