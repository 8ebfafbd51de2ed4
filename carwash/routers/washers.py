"""
Car washer management routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import hash_password, require_staff
from carwash.core.deductions import payout_total
from carwash.core.search import matches_search
from carwash.database import get_db
from carwash.models.check_in import CheckIn, CheckInStatus, PaymentStatus
from carwash.models.finance import PaymentRequest, PaymentRequestStatus
from carwash.models.tool import ToolCharge, ToolChargeStatus, WasherTool
from carwash.models.user import User, UserRole, WasherProfile
from carwash.routers.admins import ensure_email_free
from carwash.routers.deps import get_or_404, lock_washer_profile, reload
from carwash.schemas.check_in import WasherDetails, to_row
from carwash.schemas.user import Washer as WasherSchema, WasherCreate, WasherRevenue, WasherUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/washers", tags=["washers"])

PROFILE_FIELDS = ("assigned_admin_id", "hourly_rate", "is_available")


async def get_washer_or_404(db: AsyncSession, washer_id: int) -> User:
    user = await get_or_404(db, User, washer_id, "Washer")
    if user.role != UserRole.CAR_WASHER:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Washer not found")
    return user


def washer_matches_status(user: User, status_filter: Optional[str]) -> bool:
    profile = user.washer_profile
    if status_filter == "available":
        return bool(profile and profile.is_available)
    if status_filter == "unavailable":
        return not (profile and profile.is_available)
    if status_filter == "active":
        return user.is_active
    if status_filter == "inactive":
        return not user.is_active
    return True


@router.get("", response_model=List[WasherSchema])
async def list_washers(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List car washers. ``status_filter`` is one of available, unavailable,
    active or inactive.
    """
    result = await db.execute(
        select(User).where(User.role == UserRole.CAR_WASHER).order_by(User.name)
    )
    return [
        user for user in result.scalars().all()
        if matches_search(search, user.name, user.email, user.phone)
        and washer_matches_status(user, status_filter)
    ]


@router.post("", response_model=WasherSchema, status_code=status.HTTP_201_CREATED)
async def create_washer(
    washer: WasherCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    await ensure_email_free(db, washer.email)

    db_user = User(
        name=washer.name,
        email=washer.email.lower(),
        phone=washer.phone,
        hashed_password=hash_password(washer.password),
        role=UserRole.CAR_WASHER,
    )
    db_user.washer_profile = WasherProfile(
        assigned_admin_id=washer.assigned_admin_id or current_user.id,
        hourly_rate=washer.hourly_rate,
        total_earnings=0.0,
        is_available=True,
    )
    db.add(db_user)
    await db.commit()
    logger.info("Washer %s created by %s", db_user.id, current_user.id)
    return await reload(db, User, db_user.id)


@router.get("/{washer_id}", response_model=WasherSchema)
async def get_washer(
    washer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_washer_or_404(db, washer_id)


@router.patch("/{washer_id}", response_model=WasherSchema)
async def update_washer(
    washer_id: int,
    washer_update: WasherUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_user = await get_washer_or_404(db, washer_id)
    update_data = washer_update.model_dump(exclude_unset=True)

    if "email" in update_data:
        await ensure_email_free(db, update_data["email"], exclude_id=washer_id)
        update_data["email"] = update_data["email"].lower()

    profile = db_user.washer_profile
    if profile is None:
        profile = db_user.washer_profile = WasherProfile(total_earnings=0.0)
    for field in PROFILE_FIELDS:
        if field in update_data:
            setattr(profile, field, update_data.pop(field))
    for field, value in update_data.items():
        setattr(db_user, field, value)

    await db.commit()
    return await reload(db, User, washer_id)


@router.delete("/{washer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_washer(
    washer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_user = await get_washer_or_404(db, washer_id)
    await db.delete(db_user)
    await db.commit()
    logger.info("Washer %s deleted by %s", washer_id, current_user.id)
    return None


@router.get("/{washer_id}/details", response_model=WasherDetails)
async def get_washer_details(
    washer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Washer profile with check-in counts, unreturned tools and the ten most
    recent check-ins.
    """
    washer = await get_washer_or_404(db, washer_id)

    result = await db.execute(
        select(CheckIn).where(CheckIn.assigned_washer_id == washer_id).order_by(CheckIn.check_in_time.desc())
    )
    check_ins = result.scalars().all()
    unreturned = await db.scalar(
        select(func.count(WasherTool.id)).where(
            WasherTool.washer_id == washer_id, WasherTool.is_returned.is_(False)
        )
    )

    return WasherDetails(
        washer=WasherSchema.model_validate(washer),
        total_check_ins=len(check_ins),
        completed_check_ins=sum(
            1 for c in check_ins if c.status in (CheckInStatus.COMPLETED, CheckInStatus.PAID)
        ),
        unreturned_tools=unreturned or 0,
        recent_check_ins=[to_row(c) for c in check_ins[:10]],
    )


@router.post("/{washer_id}/revenue", response_model=WasherRevenue)
async def recalculate_revenue(
    washer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Rebuild the washer's earnings balance from paid check-ins, less paid
    payment requests and paid tool charges.
    """
    washer = await get_washer_or_404(db, washer_id)
    profile = None
    if washer.washer_profile is not None:
        profile = await lock_washer_profile(db, washer_id)

    paid_income = await db.scalar(
        select(func.coalesce(func.sum(CheckIn.washer_income), 0.0)).where(
            CheckIn.assigned_washer_id == washer_id,
            CheckIn.payment_status == PaymentStatus.PAID,
        )
    )
    result = await db.execute(
        select(PaymentRequest).where(
            PaymentRequest.washer_id == washer_id,
            PaymentRequest.status == PaymentRequestStatus.PAID,
        )
    )
    paid_out = sum(payout_total(pr) for pr in result.scalars().all())
    paid_out += await db.scalar(
        select(func.coalesce(func.sum(ToolCharge.charge_amount), 0.0)).where(
            ToolCharge.washer_id == washer_id,
            ToolCharge.status == ToolChargeStatus.PAID,
        )
    )

    total = round((paid_income or 0.0) - paid_out, 2)
    if profile is None:
        washer.washer_profile = WasherProfile(total_earnings=total)
    else:
        profile.total_earnings = total
    await db.commit()
    logger.info("Recalculated earnings for washer %s: %.2f", washer_id, total)

    return WasherRevenue(
        washer_id=washer_id,
        total_earnings=total,
        paid_income=paid_income or 0.0,
        paid_out=paid_out,
    )
