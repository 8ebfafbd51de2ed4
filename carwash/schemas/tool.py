"""
Pydantic schemas for worker tools, washer tool assignments and tool charges.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from carwash.models.tool import ToolCategory, ToolChargeStatus


class WorkerToolBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: ToolCategory
    is_returnable: bool = False
    replacement_cost: float = Field(default=0.0, ge=0)
    total_quantity: int = Field(default=0, ge=0)
    available_quantity: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True


class WorkerToolCreate(WorkerToolBase):
    """``available_quantity`` defaults to ``total_quantity``."""


class WorkerToolUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[ToolCategory] = None
    is_returnable: Optional[bool] = None
    replacement_cost: Optional[float] = Field(default=None, ge=0)
    total_quantity: Optional[int] = Field(default=None, ge=0)
    available_quantity: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class WorkerTool(WorkerToolBase):
    id: int
    available_quantity: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WasherToolCreate(BaseModel):
    washer_id: int
    tool_id: int
    quantity: int = Field(gt=0)
    tool_type: Optional[str] = None
    notes: Optional[str] = None


class WasherToolUpdate(BaseModel):
    is_returned: bool
    notes: Optional[str] = None


class WasherTool(BaseModel):
    id: int
    washer_id: int
    washer_name: Optional[str] = None
    tool_id: Optional[int] = None
    tool_name: str
    tool_type: str
    quantity: int
    amount: float
    is_returned: bool
    assigned_date: datetime
    returned_date: Optional[datetime] = None
    notes: Optional[str] = None


class DeductionItem(BaseModel):
    id: int
    tool_name: str
    tool_type: str
    quantity: int
    amount: float
    total_value: float
    assigned_date: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DeductionSummary(BaseModel):
    washer_id: int
    material_deductions: float
    tool_deductions: float
    total_deductions: float
    has_unreturned_tools: bool
    unreturned_tools: List[DeductionItem]


class ToolChargeCreate(BaseModel):
    washer_id: int
    tool_id: Optional[int] = None
    tool_name: Optional[str] = None
    charge_amount: float = Field(ge=0)
    replacement_cost: Optional[float] = Field(default=None, ge=0)
    reason: str = Field(min_length=1)


class ToolChargeUpdate(BaseModel):
    status: Optional[ToolChargeStatus] = None
    charge_amount: Optional[float] = Field(default=None, ge=0)
    reason: Optional[str] = None


class ToolCharge(BaseModel):
    id: int
    washer_id: int
    washer_name: Optional[str] = None
    tool_id: Optional[int] = None
    tool_name: str
    charge_amount: float
    replacement_cost: float
    reason: str
    status: ToolChargeStatus
    charged_by: Optional[int] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
