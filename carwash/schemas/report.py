"""
Pydantic schemas for dashboard and report responses.
"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Dict, List, Optional

from carwash.schemas.check_in import CheckInRow
from carwash.schemas.finance import PaymentRequest
from carwash.schemas.user import Washer


class PeriodFigures(BaseModel):
    daily: float
    weekly: float
    monthly: float

    model_config = ConfigDict(from_attributes=True)


class TopWasher(BaseModel):
    washer_id: int
    washer_name: str
    cars_washed: int
    revenue: float


class DashboardMetrics(BaseModel):
    income: PeriodFigures
    car_count: PeriodFigures
    active_washers: int
    pending_check_ins_today: int
    low_stock_items: int
    top_washers: List[TopWasher]


class FinancialRow(BaseModel):
    id: str
    period: str
    date: str
    car_wash_revenue: float
    product_sales_revenue: float
    total_revenue: float
    washer_salaries: float
    washer_bonuses: float
    customer_bonuses: float
    other_expenses: float
    total_expenses: float
    total_wages: float
    pending_wages: float
    net_profit: float
    customer_count: int
    transaction_count: int
    car_wash_count: int
    product_sale_count: int
    average_transaction: float
    profit_margin: float

    model_config = ConfigDict(from_attributes=True)


class PaymentReport(BaseModel):
    total_paid: float
    total_pending: float
    paid_count: int
    pending_count: int
    by_method: Dict[str, float]
    daily: List[Dict[str, object]]

    model_config = ConfigDict(from_attributes=True)


class WasherPerformance(BaseModel):
    washer_id: int
    washer_name: str
    cars_washed: int
    completed: int
    revenue: float
    washer_income: float
    average_duration: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class WasherDashboard(BaseModel):
    washer: Washer
    total_earnings: float
    pending_check_ins: int
    in_progress_check_ins: int
    completed_today: int
    earnings_today: float
    recent_check_ins: List[CheckInRow]


class EarningLine(BaseModel):
    check_in_id: int
    license_plate: str
    services: List[str]
    total_amount: float
    washer_income: float
    paid_time: Optional[datetime] = None


class WorkerEarnings(BaseModel):
    total_earnings: float
    lifetime_income: float
    total_paid_out: float
    pending_requests: float
    check_ins: List[EarningLine]


class IncomeHistoryEntry(BaseModel):
    kind: str
    reference_id: int
    amount: float
    description: str
    occurred_at: datetime


class IncomeHistory(BaseModel):
    entries: List[IncomeHistoryEntry]
    payment_requests: List[PaymentRequest]
