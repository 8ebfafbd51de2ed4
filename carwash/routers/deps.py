"""
Lookup helpers shared by the routers.
"""
from typing import Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.database import Base
from carwash.models.user import WasherProfile

ModelT = TypeVar("ModelT", bound=Base)


def by_id(model: Type[ModelT], obj_id: int, for_update: bool = False) -> Select:
    """
    Select one row by primary key, refreshing any copy already in the
    session. ``for_update`` takes a row lock held until commit.
    """
    query = select(model).where(model.id == obj_id).execution_options(populate_existing=True)
    if for_update:
        query = query.with_for_update()
    return query


async def get_or_404(
    db: AsyncSession, model: Type[ModelT], obj_id: int, label: str, for_update: bool = False,
) -> ModelT:
    """Load ``model`` by primary key, raising 404 "<label> not found"."""
    result = await db.execute(by_id(model, obj_id, for_update))
    obj = result.scalar_one_or_none()
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj


async def lock_washer_profile(db: AsyncSession, washer_id: int) -> WasherProfile:
    """Re-read a washer's profile under a row lock before changing its balance."""
    result = await db.execute(
        select(WasherProfile)
        .where(WasherProfile.user_id == washer_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Washer profile not found")
    return profile


async def reload(db: AsyncSession, model: Type[ModelT], obj_id: int) -> ModelT:
    """Re-select a row after commit so eager relationships reflect the database."""
    result = await db.execute(by_id(model, obj_id))
    return result.scalar_one()
