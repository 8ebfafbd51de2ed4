"""
Washer payment request routes and the payments ledger.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import get_current_active_user, require_staff
from carwash.config import get_settings
from carwash.core.dates import end_of_day, start_of_day, utcnow
from carwash.core.deductions import payout_total, validate_payment_request
from carwash.core.search import matches_search, sort_records
from carwash.core.workflow import validate_payment_request_transition
from carwash.database import get_db
from carwash.models.check_in import CheckIn, PaymentMethod, PaymentStatus
from carwash.models.finance import PaymentRequest, PaymentRequestStatus
from carwash.models.user import User, UserRole
from carwash.routers.deps import get_or_404, lock_washer_profile, reload
from carwash.schemas.finance import (
    Payment, PaymentRequest as PaymentRequestSchema, PaymentRequestCreate, PaymentRequestUpdate,
)
from carwash.scoping import location_admin_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["payment-requests"])

SORT_FIELDS = {
    "created_at": lambda r: r.created_at,
    "amount": lambda r: r.amount,
    "status": lambda r: r.status.value,
    "washer_name": lambda r: (r.washer_name or "").lower(),
}


def payment_request_out(request: PaymentRequest) -> PaymentRequestSchema:
    washer = request.washer
    return PaymentRequestSchema(
        id=request.id,
        washer_id=request.washer_id,
        washer_name=washer.name if washer else None,
        washer_email=washer.email if washer else None,
        admin_id=request.admin_id,
        amount=request.amount,
        total_earnings=request.total_earnings,
        material_deductions=request.material_deductions,
        tool_deductions=request.tool_deductions,
        is_advance=request.is_advance,
        status=request.status,
        admin_notes=request.admin_notes,
        approval_date=request.approval_date,
        paid_at=request.paid_at,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


def in_scope(request: PaymentRequest, admin_ids: Optional[List[int]]) -> bool:
    """A request is visible when its reviewer or the washer's admin is at the location."""
    if admin_ids is None:
        return True
    if request.admin_id in admin_ids:
        return True
    profile = request.washer.washer_profile if request.washer else None
    return bool(profile and profile.assigned_admin_id in admin_ids)


async def get_visible_request(
    db: AsyncSession, request_id: int, user: User, for_update: bool = False,
) -> PaymentRequest:
    request = await get_or_404(db, PaymentRequest, request_id, "Payment request", for_update=for_update)
    if user.role == UserRole.CAR_WASHER:
        if request.washer_id != user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment request not found")
    elif not in_scope(request, await location_admin_ids(db, user)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment request not found")
    return request


@router.get("/payment-requests", response_model=List[PaymentRequestSchema])
async def list_payment_requests(
    washer_id: Optional[int] = None,
    admin_id: Optional[int] = None,
    status_filter: Optional[PaymentRequestStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    List payment requests. Washers see their own; admins see their
    location's. ``search`` matches washer name, washer email or request id.
    """
    query = select(PaymentRequest)
    if current_user.role == UserRole.CAR_WASHER:
        washer_id = current_user.id
    if washer_id is not None:
        query = query.where(PaymentRequest.washer_id == washer_id)
    if admin_id is not None:
        query = query.where(PaymentRequest.admin_id == admin_id)
    if status_filter:
        query = query.where(PaymentRequest.status == status_filter)

    admin_ids = None
    if current_user.role != UserRole.CAR_WASHER:
        admin_ids = await location_admin_ids(db, current_user)

    result = await db.execute(query)
    rows = [
        payment_request_out(r) for r in result.scalars().all()
        if in_scope(r, admin_ids)
        and matches_search(search, r.washer.name if r.washer else None, r.washer.email if r.washer else None, str(r.id))
    ]
    return sort_records(rows, SORT_FIELDS.get(sort_by, SORT_FIELDS["created_at"]), sort_order)


@router.post("/payment-requests", response_model=PaymentRequestSchema, status_code=status.HTTP_201_CREATED)
async def create_payment_request(
    payload: PaymentRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    Request a withdrawal of earnings.

    A washer may have one pending request at a time. Advances are only
    available while earnings are at or below the advance limit.
    """
    if current_user.role == UserRole.CAR_WASHER:
        washer_id = current_user.id
        admin_id = current_user.washer_profile.assigned_admin_id if current_user.washer_profile else None
    else:
        if payload.washer_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="washer_id is required")
        washer_id = payload.washer_id
        admin_id = current_user.id

    washer = await db.get(User, washer_id)
    if washer is None or washer.role != UserRole.CAR_WASHER or washer.washer_profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Washer not found")

    pending = await db.execute(
        select(PaymentRequest.id).where(
            PaymentRequest.washer_id == washer_id,
            PaymentRequest.status == PaymentRequestStatus.PENDING,
        )
    )
    if pending.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A pending payment request already exists for this washer",
        )

    current_earnings = washer.washer_profile.total_earnings or 0.0
    validate_payment_request(
        current_earnings,
        payload.amount,
        payload.material_deductions,
        payload.tool_deductions,
        payload.is_advance,
        get_settings().advance_payment_limit,
    )

    request = PaymentRequest(
        washer_id=washer_id,
        admin_id=admin_id,
        amount=payload.amount,
        total_earnings=current_earnings,
        material_deductions=payload.material_deductions,
        tool_deductions=payload.tool_deductions,
        is_advance=payload.is_advance,
        status=PaymentRequestStatus.PENDING,
        admin_notes=payload.admin_notes,
        created_at=utcnow(),
    )
    db.add(request)
    await db.commit()
    logger.info(
        "Payment request %s created for washer %s: %.2f%s",
        request.id, washer_id, request.amount, " (advance)" if request.is_advance else "",
    )
    return payment_request_out(await reload(db, PaymentRequest, request.id))


@router.get("/payment-requests/{request_id}", response_model=PaymentRequestSchema)
async def get_payment_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return payment_request_out(await get_visible_request(db, request_id, current_user))


@router.patch("/payment-requests/{request_id}", response_model=PaymentRequestSchema)
async def update_payment_request(
    request_id: int,
    payload: PaymentRequestUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Review a payment request.

    pending -> approved | rejected, approved -> paid | rejected. Paying
    deducts the amount and deductions from the washer's earnings.
    """
    request = await get_visible_request(db, request_id, current_user, for_update=True)
    validate_payment_request_transition(request.status, payload.status)
    now = utcnow()

    if payload.status != request.status:
        if payload.status == PaymentRequestStatus.APPROVED:
            request.approval_date = now
            request.admin_id = current_user.id
        elif payload.status == PaymentRequestStatus.PAID:
            profile = await lock_washer_profile(db, request.washer_id)
            total = payout_total(request)
            if not request.is_advance and total > (profile.total_earnings or 0.0):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Washer earnings no longer cover this payment",
                )
            profile.total_earnings = (profile.total_earnings or 0.0) - total
            request.paid_at = now
            logger.info("Payment request %s paid; deducted %.2f from washer %s", request_id, total, request.washer_id)
        request.status = payload.status

    if payload.admin_notes is not None:
        request.admin_notes = payload.admin_notes
    await db.commit()
    return payment_request_out(await reload(db, PaymentRequest, request_id))


@router.delete("/payment-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    request = await get_visible_request(db, request_id, current_user)
    if request.status != PaymentRequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only pending payment requests can be cancelled",
        )
    await db.delete(request)
    await db.commit()
    logger.info("Payment request %s cancelled by %s", request_id, current_user.id)
    return None


@router.get("/payments", response_model=List[Payment])
async def list_payments(
    payment_method: Optional[PaymentMethod] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Paid check-ins as payment records, newest payment first.
    """
    query = (
        select(CheckIn)
        .where(CheckIn.payment_status == PaymentStatus.PAID)
        .order_by(CheckIn.paid_time.desc(), CheckIn.id.desc())
    )
    if payment_method:
        query = query.where(CheckIn.payment_method == payment_method)
    if start_date:
        query = query.where(CheckIn.paid_time >= start_of_day(start_date))
    if end_date:
        query = query.where(CheckIn.paid_time <= end_of_day(end_date))
    admin_ids = await location_admin_ids(db, current_user)
    if admin_ids is not None:
        query = query.where(CheckIn.assigned_admin_id.in_(admin_ids))

    result = await db.execute(query)
    return [
        Payment(
            id=c.id,
            check_in_id=c.id,
            customer_name=c.customer.name if c.customer else "Walk-in Customer",
            license_plate=c.license_plate,
            amount=c.total_amount,
            payment_method=c.payment_method,
            paid_time=c.paid_time,
            washer_name=c.assigned_washer.name if c.assigned_washer else "Unassigned",
        )
        for c in result.scalars().all()
    ]
