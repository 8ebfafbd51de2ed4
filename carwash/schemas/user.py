"""
Pydantic schemas for users, staff profiles and authentication.
"""
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import Optional

from carwash.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema with common fields."""
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None


class WasherProfile(BaseModel):
    assigned_admin_id: Optional[int] = None
    hourly_rate: Optional[float] = None
    total_earnings: float = 0.0
    is_available: bool = True

    model_config = ConfigDict(from_attributes=True)


class AdminProfile(BaseModel):
    location_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class User(UserBase):
    """Schema for user responses."""
    id: int
    email: str
    role: UserRole
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AdminCreate(UserBase):
    """Schema for creating an admin."""
    password: str = Field(min_length=6)
    role: UserRole = UserRole.ADMIN
    location_id: Optional[int] = None


class AdminUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    location_id: Optional[int] = None


class Admin(User):
    admin_profile: Optional[AdminProfile] = None


class WasherCreate(UserBase):
    """Schema for creating a car washer."""
    password: str = Field(min_length=6)
    assigned_admin_id: Optional[int] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)


class WasherUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    is_available: Optional[bool] = None
    assigned_admin_id: Optional[int] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)


class Washer(User):
    washer_profile: Optional[WasherProfile] = None


class WasherRevenue(BaseModel):
    washer_id: int
    total_earnings: float
    paid_income: float
    paid_out: float


class Token(BaseModel):
    """Schema for authentication token."""
    access_token: str
    token_type: str = "bearer"
    user: User


class LoginRequest(BaseModel):
    """Schema for login request."""
    email: EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)

