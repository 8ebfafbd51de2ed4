"""
Pydantic schemas for stock items, washer materials and product sales.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from carwash.models.inventory import MovementType, SaleStatus


class StockItemBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    current_stock: float = 0.0
    min_stock_level: float = 0.0
    max_stock_level: float
    cost_per_unit: float
    supplier: Optional[str] = None
    is_active: bool = True


class StockItemCreate(StockItemBase):
    pass


class StockItemUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    current_stock: Optional[float] = None
    min_stock_level: Optional[float] = None
    max_stock_level: Optional[float] = None
    cost_per_unit: Optional[float] = None
    supplier: Optional[str] = None
    is_active: Optional[bool] = None


class StockItem(StockItemBase):
    id: int
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class StockAdjustment(BaseModel):
    type: MovementType
    quantity: float = Field(gt=0)
    reason: str = Field(min_length=1)
    remarks: Optional[str] = None


class StockMovement(BaseModel):
    id: int
    stock_item_id: int
    type: MovementType
    quantity: float
    previous_balance: float
    new_balance: float
    reason: str
    admin_id: Optional[int] = None
    remarks: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockAdjustmentResult(BaseModel):
    item: StockItem
    movement: StockMovement


class WasherMaterialCreate(BaseModel):
    washer_id: int
    stock_item_id: int
    quantity: float = Field(gt=0)
    material_type: Optional[str] = None
    notes: Optional[str] = None


class WasherMaterialUpdate(BaseModel):
    is_returned: Optional[bool] = None
    notes: Optional[str] = None


class WasherMaterial(BaseModel):
    id: int
    washer_id: int
    stock_item_id: Optional[int] = None
    material_name: str
    material_type: str
    quantity: float
    used_quantity: float
    unit: str
    is_returned: bool
    assigned_date: datetime
    returned_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AvailableMaterial(BaseModel):
    washer_material_id: int
    material_name: str
    unit: str
    issued_quantity: float
    used_quantity: float
    available_quantity: float


class SaleLine(BaseModel):
    stock_item_id: int
    quantity: float = Field(gt=0)
    unit_price: Optional[float] = Field(default=None, ge=0)


class SaleCreate(BaseModel):
    customer_id: Optional[int] = None
    payment_method: str = Field(min_length=1)
    items: List[SaleLine] = Field(min_length=1)
    remarks: Optional[str] = None


class SaleItem(BaseModel):
    id: int
    stock_item_id: Optional[int] = None
    item_name: str
    quantity: float
    unit_price: float
    line_total: float

    model_config = ConfigDict(from_attributes=True)


class Sale(BaseModel):
    id: int
    customer_id: Optional[int] = None
    admin_id: Optional[int] = None
    total_amount: float
    payment_method: str
    status: SaleStatus
    remarks: Optional[str] = None
    items: List[SaleItem]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
