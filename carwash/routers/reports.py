"""
Dashboard and report routes.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff, require_washer
from carwash.core.dates import end_of_day, months_ago, period_starts, start_of_day, utcnow
from carwash.core.reports import income_summary, monthly_financials, payment_report, washer_performance
from carwash.core.stock import LOW_STOCK, OUT_OF_STOCK, stock_status
from carwash.database import get_db
from carwash.models.check_in import CheckIn, CheckInStatus, PaymentStatus
from carwash.models.finance import Bonus, Expense, PaymentRequest
from carwash.models.inventory import SaleStatus, SalesTransaction, StockItem
from carwash.models.user import User, UserRole, WasherProfile
from carwash.routers.locations import admin_ids_at
from carwash.schemas.check_in import to_row
from carwash.schemas.report import (
    DashboardMetrics, FinancialRow, PaymentReport, PeriodFigures, TopWasher, WasherDashboard,
    WasherPerformance,
)
from carwash.schemas.user import Washer as WasherSchema
from carwash.scoping import location_admin_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["reports"])


def scoped(query, column, admin_ids: Optional[List[int]]):
    if admin_ids is None:
        return query
    return query.where(column.in_(admin_ids))


async def check_ins_between(db: AsyncSession, start, end, admin_ids: Optional[List[int]]):
    query = select(CheckIn)
    if start is not None:
        query = query.where(CheckIn.check_in_time >= start)
    if end is not None:
        query = query.where(CheckIn.check_in_time <= end)
    result = await db.execute(scoped(query, CheckIn.assigned_admin_id, admin_ids))
    return result.scalars().all()


@router.get("/dashboard-metrics", response_model=DashboardMetrics)
async def dashboard_metrics(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Income and car counts for today, this week and this month, plus
    operational counters for the admin dashboard.
    """
    now = utcnow()
    today, _, month_start = period_starts(now)
    admin_ids = await location_admin_ids(db, current_user)

    month_check_ins = await check_ins_between(db, month_start, None, admin_ids)
    paid = [c for c in month_check_ins if c.payment_status == PaymentStatus.PAID]
    sales = (await db.execute(scoped(
        select(SalesTransaction).where(
            SalesTransaction.created_at >= month_start,
            SalesTransaction.status == SaleStatus.COMPLETED,
        ),
        SalesTransaction.admin_id,
        admin_ids,
    ))).scalars().all()
    summary = income_summary(paid, sales, now)

    washers = (await db.execute(scoped(
        select(User)
        .join(WasherProfile, WasherProfile.user_id == User.id)
        .where(
            User.role == UserRole.CAR_WASHER,
            User.is_active.is_(True),
            WasherProfile.is_available.is_(True),
        ),
        WasherProfile.assigned_admin_id,
        admin_ids,
    ))).scalars().all()

    pending_today = sum(
        1 for c in month_check_ins
        if c.check_in_time >= today and c.status in (CheckInStatus.PENDING, CheckInStatus.IN_PROGRESS)
    )

    items = (await db.execute(select(StockItem).where(StockItem.is_active.is_(True)))).scalars().all()
    low_stock = sum(
        1 for i in items
        if stock_status(i.current_stock, i.min_stock_level, i.max_stock_level) in (LOW_STOCK, OUT_OF_STOCK)
    )

    top = [
        TopWasher(washer_id=p.washer_id, washer_name=p.washer_name, cars_washed=p.cars_washed, revenue=p.revenue)
        for p in washer_performance(month_check_ins)[:5]
    ]

    return DashboardMetrics(
        income=PeriodFigures.model_validate(summary.income),
        car_count=PeriodFigures.model_validate(summary.car_count),
        active_washers=len(washers),
        pending_check_ins_today=pending_today,
        low_stock_items=low_stock,
        top_washers=top,
    )


@router.get("/financial-reports", response_model=List[FinancialRow])
async def financial_reports(
    period: int = Query(6, ge=1, le=36),
    location: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Monthly revenue, expenses and wages over the last ``period`` months,
    newest first.
    """
    _, _, month_start = period_starts(utcnow())
    start = months_ago(month_start, period - 1)
    if location is not None and current_user.role == UserRole.SUPER_ADMIN:
        admin_ids = await admin_ids_at(db, location)
    else:
        admin_ids = await location_admin_ids(db, current_user)

    check_ins = await check_ins_between(db, start, None, admin_ids)
    sales = (await db.execute(scoped(
        select(SalesTransaction).where(SalesTransaction.created_at >= start),
        SalesTransaction.admin_id,
        admin_ids,
    ))).scalars().all()
    bonuses = (await db.execute(select(Bonus).where(Bonus.created_at >= start))).scalars().all()
    requests = (await db.execute(scoped(
        select(PaymentRequest).where(PaymentRequest.created_at >= start),
        PaymentRequest.admin_id,
        admin_ids,
    ))).scalars().all()
    expenses = (await db.execute(scoped(
        select(Expense).where(Expense.expense_date >= start),
        Expense.admin_id,
        admin_ids,
    ))).scalars().all()

    rows = monthly_financials(check_ins, sales, bonuses, requests, expenses)
    logger.debug("Financial report over %d month(s): %d row(s)", period, len(rows))
    return [FinancialRow.model_validate(row) for row in rows]


@router.get("/payment-reports", response_model=PaymentReport)
async def payment_reports(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    admin_ids = await location_admin_ids(db, current_user)
    check_ins = await check_ins_between(
        db,
        start_of_day(start_date) if start_date else None,
        end_of_day(end_date) if end_date else None,
        admin_ids,
    )
    return PaymentReport.model_validate(payment_report(check_ins))


@router.get("/performance-reports", response_model=List[WasherPerformance])
async def performance_reports(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    admin_ids = await location_admin_ids(db, current_user)
    check_ins = await check_ins_between(
        db,
        start_of_day(start_date) if start_date else None,
        end_of_day(end_date) if end_date else None,
        admin_ids,
    )
    return [WasherPerformance.model_validate(row) for row in washer_performance(check_ins)]


@router.get("/carwasher-dashboard", response_model=WasherDashboard)
async def carwasher_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_washer),
):
    """
    The logged-in washer's queue and today's earnings.
    """
    today, _, _ = period_starts(utcnow())
    result = await db.execute(
        select(CheckIn)
        .where(CheckIn.assigned_washer_id == current_user.id)
        .order_by(CheckIn.check_in_time.desc())
    )
    check_ins = result.scalars().all()
    done_today = [
        c for c in check_ins
        if c.status in (CheckInStatus.COMPLETED, CheckInStatus.PAID)
        and c.actual_completion_time is not None
        and c.actual_completion_time >= today
    ]
    profile = current_user.washer_profile

    return WasherDashboard(
        washer=WasherSchema.model_validate(current_user),
        total_earnings=profile.total_earnings if profile else 0.0,
        pending_check_ins=sum(1 for c in check_ins if c.status == CheckInStatus.PENDING),
        in_progress_check_ins=sum(1 for c in check_ins if c.status == CheckInStatus.IN_PROGRESS),
        completed_today=len(done_today),
        earnings_today=round(sum(c.washer_income or 0.0 for c in done_today), 2),
        recent_check_ins=[to_row(c) for c in check_ins[:10]],
    )
