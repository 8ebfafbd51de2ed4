"""
Pydantic schemas for customer milestones.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from carwash.models.milestone import MilestoneType


class MilestoneBase(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    type: MilestoneType
    condition: Dict[str, Any]
    reward: Optional[Dict[str, Any]] = None
    is_active: bool = True


class MilestoneCreate(MilestoneBase):
    pass


class MilestoneUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[MilestoneType] = None
    condition: Optional[Dict[str, Any]] = None
    reward: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class Milestone(MilestoneBase):
    id: int
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Achievement(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    milestone_id: int
    milestone_name: Optional[str] = None
    achieved_value: float
    achieved_at: datetime
    reward_claimed: bool
    claimed_at: Optional[datetime] = None
    claimed_by: Optional[int] = None
    notes: Optional[str] = None


class CheckAchievementsRequest(BaseModel):
    customer_id: int


class CheckAchievementsResult(BaseModel):
    customer_id: int
    new_achievements: int
    achievements: List[Achievement]


class QualifyingCustomersRequest(BaseModel):
    milestone_id: int


class QualifyingCustomer(BaseModel):
    customer_id: int
    customer_name: str
    value: float
    already_achieved: bool


class ClaimReward(BaseModel):
    notes: Optional[str] = None


def to_achievement(achievement) -> Achievement:
    return Achievement(
        id=achievement.id,
        customer_id=achievement.customer_id,
        customer_name=achievement.customer.name if achievement.customer else None,
        milestone_id=achievement.milestone_id,
        milestone_name=achievement.milestone.name if achievement.milestone else None,
        achieved_value=achievement.achieved_value,
        achieved_at=achievement.achieved_at,
        reward_claimed=achievement.reward_claimed,
        claimed_at=achievement.claimed_at,
        claimed_by=achievement.claimed_by,
        notes=achievement.notes,
    )
