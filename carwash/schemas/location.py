"""
Pydantic schemas for Location.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class LocationBase(BaseModel):
    address: str = Field(min_length=1)
    lga: str = Field(min_length=1)
    is_active: bool = True


class LocationCreate(LocationBase):
    pass


class LocationUpdate(BaseModel):
    address: Optional[str] = None
    lga: Optional[str] = None
    is_active: Optional[bool] = None


class Location(LocationBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LocationStats(BaseModel):
    location_id: int
    address: str
    lga: str
    admin_count: int
    washer_count: int
    check_in_count: int
