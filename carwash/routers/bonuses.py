"""
Bonus routes for customers and washers.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff
from carwash.core.dates import utcnow
from carwash.core.workflow import apply_bonus_action
from carwash.database import get_db
from carwash.models.customer import Customer
from carwash.models.finance import Bonus, BonusStatus, BonusType
from carwash.models.user import User, UserRole
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.finance import Bonus as BonusSchema, BonusAction, BonusCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/bonuses", tags=["bonuses"])


async def find_recipient(db: AsyncSession, bonus_type: BonusType, recipient_id: int):
    """Return the customer or washer a bonus is for, or None."""
    if bonus_type == BonusType.CUSTOMER:
        return await db.get(Customer, recipient_id)
    user = await db.get(User, recipient_id)
    if user is None or user.role != UserRole.CAR_WASHER:
        return None
    return user


async def bonus_out(db: AsyncSession, bonus: Bonus) -> BonusSchema:
    recipient = await find_recipient(db, bonus.type, bonus.recipient_id)
    return BonusSchema(
        id=bonus.id,
        type=bonus.type,
        recipient_id=bonus.recipient_id,
        recipient_name=recipient.name if recipient else None,
        recipient_email=recipient.email if recipient else None,
        recipient_phone=recipient.phone if recipient else None,
        amount=bonus.amount,
        reason=bonus.reason,
        milestone=bonus.milestone,
        status=bonus.status,
        approved_by=bonus.approved_by,
        approved_at=bonus.approved_at,
        paid_at=bonus.paid_at,
        created_at=bonus.created_at,
    )


async def list_bonus_rows(
    db: AsyncSession,
    bonus_type: Optional[BonusType] = None,
    status_filter: Optional[BonusStatus] = None,
    recipient_id: Optional[int] = None,
) -> List[BonusSchema]:
    query = select(Bonus).order_by(Bonus.created_at.desc(), Bonus.id.desc())
    if bonus_type:
        query = query.where(Bonus.type == bonus_type)
    if status_filter:
        query = query.where(Bonus.status == status_filter)
    if recipient_id is not None:
        query = query.where(Bonus.recipient_id == recipient_id)
    result = await db.execute(query)
    return [await bonus_out(db, b) for b in result.scalars().all()]


@router.get("", response_model=List[BonusSchema])
async def list_bonuses(
    type: Optional[BonusType] = None,
    status_filter: Optional[BonusStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await list_bonus_rows(db, type, status_filter)


@router.post("", response_model=BonusSchema, status_code=status.HTTP_201_CREATED)
async def create_bonus(
    payload: BonusCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    if await find_recipient(db, payload.type, payload.recipient_id) is None:
        detail = "Customer not found" if payload.type == BonusType.CUSTOMER else "Washer not found"
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    bonus = Bonus(**payload.model_dump(), status=BonusStatus.PENDING, created_at=utcnow())
    db.add(bonus)
    await db.commit()
    logger.info("Bonus %s of %.2f created for %s %s", bonus.id, bonus.amount, bonus.type.value, bonus.recipient_id)
    return await bonus_out(db, await reload(db, Bonus, bonus.id))


@router.get("/{bonus_id}", response_model=BonusSchema)
async def get_bonus(
    bonus_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await bonus_out(db, await get_or_404(db, Bonus, bonus_id, "Bonus"))


@router.patch("/{bonus_id}", response_model=BonusSchema)
async def update_bonus(
    bonus_id: int,
    payload: BonusAction,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Approve, pay or reject a bonus.
    """
    bonus = await get_or_404(db, Bonus, bonus_id, "Bonus")
    apply_bonus_action(bonus, payload.action, payload.approved_by, utcnow())
    await db.commit()
    logger.info("Bonus %s %s by %s", bonus_id, bonus.status.value, current_user.id)
    return await bonus_out(db, await reload(db, Bonus, bonus_id))


@router.delete("/{bonus_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bonus(
    bonus_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    bonus = await get_or_404(db, Bonus, bonus_id, "Bonus")
    if bonus.status == BonusStatus.PAID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Paid bonuses cannot be deleted")
    await db.delete(bonus)
    await db.commit()
    return None
