"""
SQLAlchemy database models.
"""
from carwash.models.user import User, UserRole, AdminProfile, WasherProfile
from carwash.models.location import Location
from carwash.models.customer import Customer, Vehicle
from carwash.models.service import Service, ServiceCategory
from carwash.models.check_in import (
    CheckIn, CheckInService, CheckInMaterial, CheckInStatus, PaymentStatus, PaymentMethod, WashType,
)
from carwash.models.tool import WorkerTool, WasherTool, ToolCharge, ToolCategory, ToolChargeStatus
from carwash.models.inventory import (
    StockItem, StockMovement, WasherMaterial, SalesTransaction, SaleItem, MovementType, SaleStatus,
)
from carwash.models.finance import (
    Bonus, BonusType, BonusStatus, Expense, ExpenseType, PaymentRequest, PaymentRequestStatus,
)
from carwash.models.milestone import Milestone, MilestoneAchievement, MilestoneType

__all__ = [
    "User", "UserRole", "AdminProfile", "WasherProfile",
    "Location",
    "Customer", "Vehicle",
    "Service", "ServiceCategory",
    "CheckIn", "CheckInService", "CheckInMaterial", "CheckInStatus", "PaymentStatus", "PaymentMethod", "WashType",
    "WorkerTool", "WasherTool", "ToolCharge", "ToolCategory", "ToolChargeStatus",
    "StockItem", "StockMovement", "WasherMaterial", "SalesTransaction", "SaleItem", "MovementType", "SaleStatus",
    "Bonus", "BonusType", "BonusStatus", "Expense", "ExpenseType", "PaymentRequest", "PaymentRequestStatus",
    "Milestone", "MilestoneAchievement", "MilestoneType",
]
