"""
Pydantic schemas for check-ins.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from carwash.core.dates import minutes_between
from carwash.core.earnings import estimated_duration
from carwash.models.check_in import CheckInStatus, PaymentMethod, PaymentStatus, WashType
from carwash.schemas.user import Washer


class CheckInLine(BaseModel):
    id: int
    service_id: Optional[int] = None
    service_name: str
    price: float
    duration: int

    model_config = ConfigDict(from_attributes=True)


class CheckInCreate(BaseModel):
    """Schema for checking a car in."""
    customer_id: Optional[int] = None
    license_plate: str = Field(min_length=1)
    vehicle_type: str = Field(min_length=1)
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    wash_type: WashType
    service_ids: List[int] = Field(min_length=1)
    assigned_washer_id: Optional[int] = None
    assigned_admin_id: Optional[int] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    passcode: Optional[str] = None
    user_code: Optional[str] = None
    remarks: Optional[str] = None
    valuable_items: Optional[str] = None
    reason: Optional[str] = None


class CheckInUpdate(BaseModel):
    """Status and payment changes; the check-in workflow endpoint."""
    status: Optional[CheckInStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    passcode: Optional[str] = None
    washer_completion_status: Optional[bool] = None
    assigned_washer_id: Optional[int] = None
    assigned_admin_id: Optional[int] = None
    remarks: Optional[str] = None
    valuable_items: Optional[str] = None
    reason: Optional[str] = None


class CheckInEdit(BaseModel):
    """Detail edits before payment. Supplying ``service_ids`` replaces the lines."""
    license_plate: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    wash_type: Optional[WashType] = None
    service_ids: Optional[List[int]] = None
    assigned_washer_id: Optional[int] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    user_code: Optional[str] = None
    remarks: Optional[str] = None
    valuable_items: Optional[str] = None
    reason: Optional[str] = None


class CheckInRow(BaseModel):
    """Flattened check-in as shown in the dashboard tables."""
    id: int
    customer_id: Optional[int] = None
    customer_name: str
    customer_phone: str
    license_plate: str
    vehicle_type: str
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    wash_type: WashType
    services: List[str]
    status: CheckInStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    check_in_time: datetime
    completed_time: Optional[datetime] = None
    paid_time: Optional[datetime] = None
    assigned_washer: str
    assigned_washer_id: Optional[int] = None
    assigned_admin: str
    assigned_admin_id: Optional[int] = None
    passcode: Optional[str] = None
    washer_completion_status: bool
    estimated_duration: int
    actual_duration: Optional[int] = None
    total_amount: float
    washer_income: Optional[float] = None
    company_income: Optional[float] = None
    special_instructions: Optional[str] = None
    user_code: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CheckInDetail(CheckInRow):
    customer_email: Optional[str] = None
    vehicle_make: Optional[str] = None
    remarks: Optional[str] = None
    valuable_items: Optional[str] = None
    lines: List[CheckInLine]


class MaterialUsage(BaseModel):
    washer_material_id: int
    quantity: float = Field(gt=0)


class AssignMaterialsRequest(BaseModel):
    materials: List[MaterialUsage] = Field(min_length=1)


class WasherDetails(BaseModel):
    washer: Washer
    total_check_ins: int
    completed_check_ins: int
    unreturned_tools: int
    recent_check_ins: List[CheckInRow]


def _primary_vehicle(customer):
    if customer is None or not customer.vehicles:
        return None
    for vehicle in customer.vehicles:
        if vehicle.is_primary:
            return vehicle
    return customer.vehicles[0]


def row_fields(check_in) -> dict:
    """Flatten a loaded CheckIn ORM object into CheckInRow fields."""
    customer = check_in.customer
    completed = check_in.actual_completion_time
    return {
        "id": check_in.id,
        "customer_id": check_in.customer_id,
        "customer_name": customer.name if customer else "Walk-in Customer",
        "customer_phone": customer.phone if customer else "",
        "license_plate": check_in.license_plate,
        "vehicle_type": check_in.vehicle_type,
        "vehicle_model": check_in.vehicle_model,
        "vehicle_color": check_in.vehicle_color,
        "wash_type": check_in.wash_type,
        "services": [line.service_name for line in check_in.lines],
        "status": check_in.status,
        "payment_status": check_in.payment_status,
        "payment_method": check_in.payment_method,
        "check_in_time": check_in.check_in_time,
        "completed_time": completed,
        "paid_time": check_in.paid_time,
        "assigned_washer": check_in.assigned_washer.name if check_in.assigned_washer else "Unassigned",
        "assigned_washer_id": check_in.assigned_washer_id,
        "assigned_admin": check_in.assigned_admin.name if check_in.assigned_admin else "Unassigned",
        "assigned_admin_id": check_in.assigned_admin_id,
        "passcode": check_in.passcode,
        "washer_completion_status": check_in.washer_completion_status,
        "estimated_duration": estimated_duration(check_in.lines, default=check_in.estimated_duration or 0),
        "actual_duration": minutes_between(check_in.check_in_time, completed) if completed else None,
        "total_amount": check_in.total_amount,
        "washer_income": check_in.washer_income,
        "company_income": check_in.company_income,
        "special_instructions": check_in.remarks,
        "user_code": check_in.user_code,
        "reason": check_in.reason,
        "created_at": check_in.created_at,
        "updated_at": check_in.updated_at,
    }


def to_row(check_in) -> CheckInRow:
    return CheckInRow(**row_fields(check_in))


def to_detail(check_in) -> CheckInDetail:
    vehicle = _primary_vehicle(check_in.customer)
    return CheckInDetail(
        **row_fields(check_in),
        customer_email=check_in.customer.email if check_in.customer else None,
        vehicle_make=vehicle.make if vehicle else None,
        remarks=check_in.remarks,
        valuable_items=check_in.valuable_items,
        lines=[CheckInLine.model_validate(line) for line in check_in.lines],
    )
