"""
Pydantic schemas for Service.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from carwash.models.service import ServiceCategory


class ServiceBase(BaseModel):
    """Base service schema with common fields."""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    base_price: float = Field(default=0.0, ge=0)
    category: ServiceCategory
    estimated_duration: int = Field(gt=0)
    max_washers_per_service: int = Field(default=2, ge=1)
    commission_notes: Optional[str] = None
    is_active: bool = True


class ServiceCreate(ServiceBase):
    """Schema for creating a service. Commission defaults come from settings."""
    washer_commission_percentage: Optional[float] = None
    company_commission_percentage: Optional[float] = None


class ServiceUpdate(BaseModel):
    """Schema for updating a service."""
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[ServiceCategory] = None
    estimated_duration: Optional[int] = Field(default=None, gt=0)
    washer_commission_percentage: Optional[float] = None
    company_commission_percentage: Optional[float] = None
    max_washers_per_service: Optional[int] = Field(default=None, ge=1)
    commission_notes: Optional[str] = None
    is_active: Optional[bool] = None


class Service(ServiceBase):
    """Schema for service responses."""
    id: int
    washer_commission_percentage: float
    company_commission_percentage: float
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CommissionSetting(BaseModel):
    service_id: int
    washer_commission_percentage: float
    company_commission_percentage: float
    max_washers_per_service: Optional[int] = Field(default=None, ge=1)
    commission_notes: Optional[str] = None


class CommissionSettingsUpdate(BaseModel):
    settings: List[CommissionSetting]
