"""
Pydantic schemas for request/response validation.
"""
from carwash.schemas.user import (
    UserBase, User, UserSummary, Admin, AdminCreate, AdminUpdate,
    Washer, WasherCreate, WasherUpdate, WasherRevenue, Token, LoginRequest, ChangePasswordRequest,
)
from carwash.schemas.location import Location, LocationCreate, LocationUpdate, LocationStats
from carwash.schemas.customer import Customer, CustomerCreate, CustomerUpdate, Vehicle, VehicleCreate, Availability
from carwash.schemas.service import Service, ServiceCreate, ServiceUpdate, CommissionSetting, CommissionSettingsUpdate
from carwash.schemas.check_in import (
    CheckInCreate, CheckInUpdate, CheckInEdit, CheckInRow, CheckInDetail, AssignMaterialsRequest, WasherDetails,
)

__all__ = [
    "UserBase", "User", "UserSummary", "Admin", "AdminCreate", "AdminUpdate",
    "Washer", "WasherCreate", "WasherUpdate", "WasherRevenue", "Token", "LoginRequest", "ChangePasswordRequest",
    "Location", "LocationCreate", "LocationUpdate", "LocationStats",
    "Customer", "CustomerCreate", "CustomerUpdate", "Vehicle", "VehicleCreate", "Availability",
    "Service", "ServiceCreate", "ServiceUpdate", "CommissionSetting", "CommissionSettingsUpdate",
    "CheckInCreate", "CheckInUpdate", "CheckInEdit", "CheckInRow", "CheckInDetail", "AssignMaterialsRequest",
    "WasherDetails",
]
