"""
Self-service routes for car washers.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_washer
from carwash.core.deductions import payout_total
from carwash.database import get_db
from carwash.models.check_in import CheckIn, CheckInStatus, PaymentStatus
from carwash.models.finance import BonusType, PaymentRequest, PaymentRequestStatus
from carwash.models.tool import ToolCharge, ToolChargeStatus
from carwash.models.user import User
from carwash.routers.bonuses import list_bonus_rows
from carwash.routers.payment_requests import payment_request_out
from carwash.schemas.finance import Bonus as BonusSchema
from carwash.schemas.report import EarningLine, IncomeHistory, IncomeHistoryEntry, WorkerEarnings
from carwash.schemas.user import Washer as WasherSchema

router = APIRouter(prefix="/worker", tags=["worker"])


async def own_payment_requests(db: AsyncSession, washer_id: int) -> List[PaymentRequest]:
    result = await db.execute(
        select(PaymentRequest)
        .where(PaymentRequest.washer_id == washer_id)
        .order_by(PaymentRequest.created_at.desc(), PaymentRequest.id.desc())
    )
    return result.scalars().all()


@router.get("/profile", response_model=WasherSchema)
async def get_profile(current_user: User = Depends(require_washer)):
    return current_user


@router.get("/earnings", response_model=WorkerEarnings)
async def get_earnings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_washer),
):
    """
    Current balance, lifetime income, payouts and the per-check-in
    breakdown.
    """
    result = await db.execute(
        select(CheckIn)
        .where(
            CheckIn.assigned_washer_id == current_user.id,
            CheckIn.status.in_((CheckInStatus.COMPLETED, CheckInStatus.PAID)),
        )
        .order_by(CheckIn.check_in_time.desc())
    )
    check_ins = result.scalars().all()
    requests = await own_payment_requests(db, current_user.id)
    profile = current_user.washer_profile

    return WorkerEarnings(
        total_earnings=profile.total_earnings if profile else 0.0,
        lifetime_income=round(sum(
            c.washer_income or 0.0 for c in check_ins if c.payment_status == PaymentStatus.PAID
        ), 2),
        total_paid_out=round(sum(
            payout_total(r) for r in requests if r.status == PaymentRequestStatus.PAID
        ), 2),
        pending_requests=round(sum(
            r.amount for r in requests
            if r.status in (PaymentRequestStatus.PENDING, PaymentRequestStatus.APPROVED)
        ), 2),
        check_ins=[
            EarningLine(
                check_in_id=c.id,
                license_plate=c.license_plate,
                services=[line.service_name for line in c.lines],
                total_amount=c.total_amount,
                washer_income=c.washer_income or 0.0,
                paid_time=c.paid_time,
            )
            for c in check_ins
        ],
    )


@router.get("/income-history", response_model=IncomeHistory)
async def get_income_history(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_washer),
):
    """
    Credits from paid check-ins and debits from payouts and tool charges,
    oldest first.
    """
    entries = []
    result = await db.execute(
        select(CheckIn).where(
            CheckIn.assigned_washer_id == current_user.id,
            CheckIn.payment_status == PaymentStatus.PAID,
        )
    )
    for c in result.scalars().all():
        entries.append(IncomeHistoryEntry(
            kind="check_in",
            reference_id=c.id,
            amount=c.washer_income or 0.0,
            description=f"Wash for {c.license_plate}",
            occurred_at=c.paid_time or c.check_in_time,
        ))

    requests = await own_payment_requests(db, current_user.id)
    for r in requests:
        if r.status == PaymentRequestStatus.PAID:
            entries.append(IncomeHistoryEntry(
                kind="advance" if r.is_advance else "payment",
                reference_id=r.id,
                amount=-payout_total(r),
                description=f"Payment request #{r.id}",
                occurred_at=r.paid_at or r.created_at,
            ))

    charges = await db.execute(
        select(ToolCharge).where(
            ToolCharge.washer_id == current_user.id,
            ToolCharge.status == ToolChargeStatus.PAID,
        )
    )
    for charge in charges.scalars().all():
        entries.append(IncomeHistoryEntry(
            kind="tool_charge",
            reference_id=charge.id,
            amount=-charge.charge_amount,
            description=f"Tool charge: {charge.tool_name}",
            occurred_at=charge.paid_at or charge.created_at,
        ))

    entries.sort(key=lambda e: e.occurred_at)
    return IncomeHistory(entries=entries, payment_requests=[payment_request_out(r) for r in requests])


@router.get("/bonuses", response_model=List[BonusSchema])
async def get_bonuses(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_washer),
):
    return await list_bonus_rows(db, BonusType.WASHER, recipient_id=current_user.id)
