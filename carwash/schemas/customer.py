"""
Pydantic schemas for Customer and Vehicle.
"""
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional

from carwash.schemas.check_in import CheckInRow
from carwash.schemas.milestone import Achievement


class VehicleBase(BaseModel):
    """Base vehicle schema with common fields."""
    license_plate: str = Field(min_length=1)
    vehicle_type: str = Field(min_length=1)
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None


class VehicleCreate(VehicleBase):
    """Schema for adding a vehicle to an existing customer."""
    customer_id: int
    is_primary: bool = False


class Vehicle(VehicleBase):
    id: int
    customer_id: int
    is_primary: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerBase(BaseModel):
    """Base customer schema with common fields."""
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: str = Field(min_length=1)
    date_of_birth: Optional[date] = None
    is_registered: bool = True


class CustomerCreate(CustomerBase):
    """Schema for creating a customer, optionally with vehicles."""
    vehicles: List[VehicleBase] = []


class CustomerUpdate(BaseModel):
    """Schema for updating a customer."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_registered: Optional[bool] = None


class Customer(CustomerBase):
    """Schema for customer responses."""
    id: int
    email: Optional[str] = None
    total_visits: int
    total_spent: float
    vehicles: List[Vehicle] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Availability(BaseModel):
    available: bool
    message: str


class CustomerDetails(BaseModel):
    customer: Customer
    check_ins: List[CheckInRow]
    achievements: List[Achievement]
