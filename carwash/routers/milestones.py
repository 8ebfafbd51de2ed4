"""
Customer milestone and achievement routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff
from carwash.core.dates import utcnow
from carwash.core.milestones import (
    CustomerStats, achieved_value, check_condition, qualifying_milestones, validate_condition,
)
from carwash.database import get_db
from carwash.errors import ValidationError
from carwash.models.check_in import CheckIn, CheckInStatus
from carwash.models.customer import Customer
from carwash.models.milestone import Milestone, MilestoneAchievement
from carwash.models.user import User
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.milestone import (
    Achievement, CheckAchievementsRequest, CheckAchievementsResult, ClaimReward,
    Milestone as MilestoneSchema, MilestoneCreate, MilestoneUpdate, QualifyingCustomer,
    QualifyingCustomersRequest, to_achievement,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["milestones"])

COUNTED_STATUSES = (CheckInStatus.COMPLETED, CheckInStatus.PAID)


async def customer_stats(db: AsyncSession, customer_id: int) -> CustomerStats:
    """Visits and spending over the customer's completed or paid check-ins."""
    row = (await db.execute(
        select(func.count(CheckIn.id), func.coalesce(func.sum(CheckIn.total_amount), 0.0)).where(
            CheckIn.customer_id == customer_id,
            CheckIn.status.in_(COUNTED_STATUSES),
        )
    )).one()
    return CustomerStats(visits=row[0] or 0, spent=float(row[1] or 0.0))


async def award_milestones(db: AsyncSession, customer_id: int) -> List[MilestoneAchievement]:
    """
    Record an achievement for every active milestone the customer now
    meets. The caller commits.
    """
    stats = await customer_stats(db, customer_id)
    milestones = (await db.execute(select(Milestone).where(Milestone.is_active.is_(True)))).scalars().all()
    achieved = set((await db.execute(
        select(MilestoneAchievement.milestone_id).where(MilestoneAchievement.customer_id == customer_id)
    )).scalars().all())

    new = []
    for milestone, value in qualifying_milestones(milestones, stats, achieved):
        achievement = MilestoneAchievement(
            customer_id=customer_id,
            milestone_id=milestone.id,
            achieved_value=value,
            achieved_at=utcnow(),
        )
        db.add(achievement)
        new.append(achievement)
        logger.info("Customer %s achieved milestone %s (%s)", customer_id, milestone.id, milestone.name)
    return new


def check_condition_or_400(condition) -> None:
    try:
        validate_condition(condition)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


@router.get("/milestones", response_model=List[MilestoneSchema])
async def list_milestones(
    is_active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = select(Milestone).order_by(Milestone.created_at.desc(), Milestone.id.desc())
    if is_active is not None:
        query = query.where(Milestone.is_active.is_(is_active))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/milestones", response_model=MilestoneSchema, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    milestone: MilestoneCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    check_condition_or_400(milestone.condition)
    db_milestone = Milestone(**milestone.model_dump(), created_by=current_user.id)
    db.add(db_milestone)
    await db.commit()
    logger.info("Milestone %s created", db_milestone.id)
    return await reload(db, Milestone, db_milestone.id)


@router.get("/milestones/{milestone_id}", response_model=MilestoneSchema)
async def get_milestone(
    milestone_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_or_404(db, Milestone, milestone_id, "Milestone")


@router.patch("/milestones/{milestone_id}", response_model=MilestoneSchema)
async def update_milestone(
    milestone_id: int,
    milestone_update: MilestoneUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_milestone = await get_or_404(db, Milestone, milestone_id, "Milestone")
    update_data = milestone_update.model_dump(exclude_unset=True)
    if "condition" in update_data:
        check_condition_or_400(update_data["condition"])
    for field, value in update_data.items():
        setattr(db_milestone, field, value)
    await db.commit()
    return await reload(db, Milestone, milestone_id)


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_milestone(
    milestone_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_milestone = await get_or_404(db, Milestone, milestone_id, "Milestone")
    achievements = await db.execute(
        select(MilestoneAchievement).where(MilestoneAchievement.milestone_id == milestone_id)
    )
    for achievement in achievements.scalars().all():
        await db.delete(achievement)
    await db.delete(db_milestone)
    await db.commit()
    logger.info("Milestone %s deleted", milestone_id)
    return None


@router.get("/milestone-achievements", response_model=List[Achievement])
async def list_achievements(
    customer_id: Optional[int] = None,
    milestone_id: Optional[int] = None,
    reward_claimed: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = select(MilestoneAchievement).order_by(MilestoneAchievement.achieved_at.desc())
    if customer_id is not None:
        query = query.where(MilestoneAchievement.customer_id == customer_id)
    if milestone_id is not None:
        query = query.where(MilestoneAchievement.milestone_id == milestone_id)
    if reward_claimed is not None:
        query = query.where(MilestoneAchievement.reward_claimed.is_(reward_claimed))
    result = await db.execute(query)
    return [to_achievement(a) for a in result.scalars().all()]


@router.post("/milestone-achievements", response_model=CheckAchievementsResult)
async def check_achievements(
    payload: CheckAchievementsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Evaluate every active milestone for a customer and record new
    achievements.
    """
    await get_or_404(db, Customer, payload.customer_id, "Customer")
    new = await award_milestones(db, payload.customer_id)
    await db.commit()

    achievements = [to_achievement(await reload(db, MilestoneAchievement, a.id)) for a in new]
    return CheckAchievementsResult(
        customer_id=payload.customer_id,
        new_achievements=len(achievements),
        achievements=achievements,
    )


@router.put("/milestone-achievements", response_model=List[QualifyingCustomer])
async def qualifying_customers(
    payload: QualifyingCustomersRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List customers who meet a milestone's condition, flagging those who
    already have the achievement.
    """
    milestone = await get_or_404(db, Milestone, payload.milestone_id, "Milestone")
    achieved = set((await db.execute(
        select(MilestoneAchievement.customer_id).where(MilestoneAchievement.milestone_id == milestone.id)
    )).scalars().all())

    customers = (await db.execute(select(Customer).order_by(Customer.name))).scalars().all()
    qualifying = []
    for customer in customers:
        value = achieved_value(milestone, await customer_stats(db, customer.id))
        if check_condition(value, milestone.condition):
            qualifying.append(QualifyingCustomer(
                customer_id=customer.id,
                customer_name=customer.name,
                value=value,
                already_achieved=customer.id in achieved,
            ))
    return qualifying


@router.patch("/milestone-achievements/{achievement_id}", response_model=Achievement)
async def claim_reward(
    achievement_id: int,
    payload: Optional[ClaimReward] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    achievement = await get_or_404(db, MilestoneAchievement, achievement_id, "Achievement")
    if achievement.reward_claimed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reward already claimed")

    achievement.reward_claimed = True
    achievement.claimed_at = utcnow()
    achievement.claimed_by = current_user.id
    if payload and payload.notes:
        achievement.notes = payload.notes
    await db.commit()
    logger.info("Reward claimed for achievement %s", achievement_id)
    return to_achievement(await reload(db, MilestoneAchievement, achievement_id))
