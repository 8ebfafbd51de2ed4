"""
Financial aggregation for the dashboard and report endpoints.

The functions take already-fetched rows so that the routers decide what
is in scope (date range, location) and this module only does the maths.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from carwash.core.dates import minutes_between, month_key, period_starts
from carwash.models.check_in import CheckInStatus, PaymentStatus
from carwash.models.finance import BonusStatus, BonusType, ExpenseType, PaymentRequestStatus
from carwash.models.inventory import SaleStatus

PAID_BONUS_STATUSES = (BonusStatus.APPROVED, BonusStatus.PAID)


@dataclass
class MonthlyFinancials:
    """One row of the financial report."""
    id: str
    period: str
    date: str
    car_wash_revenue: float = 0.0
    product_sales_revenue: float = 0.0
    washer_salaries: float = 0.0
    washer_bonuses: float = 0.0
    customer_bonuses: float = 0.0
    other_expenses: float = 0.0
    total_expenses: float = 0.0
    total_wages: float = 0.0
    pending_wages: float = 0.0
    customer_count: int = 0
    transaction_count: int = 0
    car_wash_count: int = 0
    product_sale_count: int = 0

    @property
    def total_revenue(self) -> float:
        return self.car_wash_revenue + self.product_sales_revenue

    @property
    def net_profit(self) -> float:
        return self.total_revenue - self.total_expenses

    @property
    def average_transaction(self) -> float:
        if not self.transaction_count:
            return 0.0
        return self.total_revenue / self.transaction_count

    @property
    def profit_margin(self) -> float:
        if self.total_revenue <= 0:
            return 0.0
        return self.net_profit / self.total_revenue * 100


def _month_row(months: Dict[str, MonthlyFinancials], moment: datetime) -> MonthlyFinancials:
    key = month_key(moment)
    row = months.get(key)
    if row is None:
        first = datetime(moment.year, moment.month, 1)
        row = MonthlyFinancials(id=key, period=first.strftime("%B %Y"), date=first.date().isoformat())
        months[key] = row
    return row


def monthly_financials(
    check_ins: Iterable,
    sales: Iterable,
    bonuses: Iterable,
    payment_requests: Iterable,
    expenses: Iterable,
) -> List[MonthlyFinancials]:
    """
    Group revenue, expenses and wages by calendar month, newest first.

    Car wash revenue is the company's share of paid check-ins. Only
    approved or paid bonuses count as expenses. Salary expense rows are
    reported both as washer salaries and in the expense total.
    """
    months: Dict[str, MonthlyFinancials] = {}
    customers_by_month: Dict[str, set] = defaultdict(set)

    for check_in in check_ins:
        row = _month_row(months, check_in.check_in_time)
        if check_in.payment_status == PaymentStatus.PAID:
            row.car_wash_revenue += check_in.company_income or 0.0
        row.transaction_count += 1
        row.car_wash_count += 1
        if check_in.customer_id:
            customers_by_month[row.id].add(check_in.customer_id)

    for sale in sales:
        row = _month_row(months, sale.created_at)
        if sale.status == SaleStatus.COMPLETED:
            row.product_sales_revenue += sale.total_amount or 0.0
        row.transaction_count += 1
        row.product_sale_count += 1

    for bonus in bonuses:
        row = _month_row(months, bonus.created_at)
        if bonus.status not in PAID_BONUS_STATUSES:
            continue
        if bonus.type == BonusType.WASHER:
            row.washer_bonuses += bonus.amount
        else:
            row.customer_bonuses += bonus.amount
        row.total_expenses += bonus.amount

    for request in payment_requests:
        row = _month_row(months, request.created_at)
        if request.status == PaymentRequestStatus.REJECTED:
            continue
        row.total_wages += request.amount or 0.0
        if request.status in (PaymentRequestStatus.PENDING, PaymentRequestStatus.APPROVED):
            row.pending_wages += request.amount or 0.0

    for expense in expenses:
        row = _month_row(months, expense.expense_date)
        row.total_expenses += expense.amount
        if expense.service_type == ExpenseType.SALARY:
            row.washer_salaries += expense.amount
        else:
            row.other_expenses += expense.amount

    for key, customer_ids in customers_by_month.items():
        months[key].customer_count = len(customer_ids)

    return sorted(months.values(), key=lambda r: r.id, reverse=True)


@dataclass
class PeriodFigures:
    daily: float = 0.0
    weekly: float = 0.0
    monthly: float = 0.0


@dataclass
class IncomeSummary:
    income: PeriodFigures = field(default_factory=PeriodFigures)
    car_count: PeriodFigures = field(default_factory=PeriodFigures)


def income_summary(paid_check_ins: Iterable, completed_sales: Iterable, now: datetime) -> IncomeSummary:
    """
    Company income and car counts for today, this week and this month.

    Rows older than the start of the month are ignored.
    """
    today, week_start, month_start = period_starts(now)
    summary = IncomeSummary()

    def add(moment: datetime, amount: float, count: int) -> None:
        if moment < month_start:
            return
        summary.income.monthly += amount
        summary.car_count.monthly += count
        if moment >= week_start:
            summary.income.weekly += amount
            summary.car_count.weekly += count
        if moment >= today:
            summary.income.daily += amount
            summary.car_count.daily += count

    for check_in in paid_check_ins:
        add(check_in.check_in_time, check_in.company_income or 0.0, 1)
    for sale in completed_sales:
        add(sale.created_at, sale.total_amount or 0.0, 0)
    return summary


@dataclass
class WasherPerformance:
    washer_id: int
    washer_name: str
    cars_washed: int = 0
    completed: int = 0
    revenue: float = 0.0
    washer_income: float = 0.0
    _durations: List[int] = field(default_factory=list, repr=False)

    @property
    def average_duration(self) -> Optional[float]:
        if not self._durations:
            return None
        return round(sum(self._durations) / len(self._durations), 1)


def washer_performance(check_ins: Iterable) -> List[WasherPerformance]:
    """Per-washer throughput, sorted by cars washed."""
    rows: Dict[int, WasherPerformance] = {}
    for check_in in check_ins:
        washer = check_in.assigned_washer
        if washer is None:
            continue
        row = rows.get(washer.id)
        if row is None:
            row = rows[washer.id] = WasherPerformance(washer_id=washer.id, washer_name=washer.name)
        if check_in.status == CheckInStatus.CANCELLED:
            continue
        row.cars_washed += 1
        if check_in.status in (CheckInStatus.COMPLETED, CheckInStatus.PAID):
            row.completed += 1
            row.revenue += check_in.total_amount or 0.0
            row.washer_income += check_in.washer_income or 0.0
            if check_in.actual_completion_time:
                row._durations.append(minutes_between(check_in.check_in_time, check_in.actual_completion_time))
    return sorted(rows.values(), key=lambda r: (-r.cars_washed, r.washer_name))


@dataclass
class PaymentReport:
    total_paid: float = 0.0
    total_pending: float = 0.0
    paid_count: int = 0
    pending_count: int = 0
    by_method: Dict[str, float] = field(default_factory=dict)
    daily: List[dict] = field(default_factory=list)


def payment_report(check_ins: Iterable) -> PaymentReport:
    """Paid vs pending amounts, totals per payment method and a daily series."""
    report = PaymentReport()
    days: Dict[str, dict] = {}
    for check_in in check_ins:
        if check_in.status == CheckInStatus.CANCELLED:
            continue
        amount = check_in.total_amount or 0.0
        if check_in.payment_status == PaymentStatus.PAID:
            report.total_paid += amount
            report.paid_count += 1
            method = check_in.payment_method.value if check_in.payment_method else "unknown"
            report.by_method[method] = report.by_method.get(method, 0.0) + amount
            day = (check_in.paid_time or check_in.check_in_time).date().isoformat()
            entry = days.setdefault(day, {"date": day, "amount": 0.0, "count": 0})
            entry["amount"] += amount
            entry["count"] += 1
        else:
            report.total_pending += amount
            report.pending_count += 1
    report.daily = [days[day] for day in sorted(days)]
    return report
