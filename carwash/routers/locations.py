"""
Location routes.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff, require_super_admin
from carwash.database import get_db
from carwash.models.check_in import CheckIn
from carwash.models.location import Location
from carwash.models.user import AdminProfile, User, WasherProfile
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.location import (
    Location as LocationSchema, LocationCreate, LocationStats, LocationUpdate,
)
from carwash.schemas.user import Admin as AdminSchema, Washer as WasherSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/locations", tags=["locations"])


async def admin_ids_at(db: AsyncSession, location_id: int) -> List[int]:
    result = await db.execute(select(AdminProfile.user_id).where(AdminProfile.location_id == location_id))
    return list(result.scalars().all())


@router.get("", response_model=List[LocationSchema])
async def list_locations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    result = await db.execute(select(Location).order_by(Location.lga, Location.address))
    return result.scalars().all()


@router.post("", response_model=LocationSchema, status_code=status.HTTP_201_CREATED)
async def create_location(
    location: LocationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    db_location = Location(**location.model_dump())
    db.add(db_location)
    await db.commit()
    logger.info("Location %s created", db_location.id)
    return await reload(db, Location, db_location.id)


@router.get("/stats", response_model=List[LocationStats])
async def location_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Admin, washer and check-in counts per location.
    """
    result = await db.execute(select(Location).order_by(Location.id))
    stats = []
    for location in result.scalars().all():
        admin_ids = await admin_ids_at(db, location.id)
        washer_count = 0
        check_in_count = 0
        if admin_ids:
            washer_count = await db.scalar(
                select(func.count(WasherProfile.id)).where(WasherProfile.assigned_admin_id.in_(admin_ids))
            )
            check_in_count = await db.scalar(
                select(func.count(CheckIn.id)).where(CheckIn.assigned_admin_id.in_(admin_ids))
            )
        stats.append(LocationStats(
            location_id=location.id,
            address=location.address,
            lga=location.lga,
            admin_count=len(admin_ids),
            washer_count=washer_count,
            check_in_count=check_in_count,
        ))
    return stats


@router.get("/{location_id}", response_model=LocationSchema)
async def get_location(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_or_404(db, Location, location_id, "Location")


@router.patch("/{location_id}", response_model=LocationSchema)
async def update_location(
    location_id: int,
    location_update: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    db_location = await get_or_404(db, Location, location_id, "Location")
    for field, value in location_update.model_dump(exclude_unset=True).items():
        setattr(db_location, field, value)
    await db.commit()
    return await reload(db, Location, location_id)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    db_location = await get_or_404(db, Location, location_id, "Location")
    await db.delete(db_location)
    await db.commit()
    logger.info("Location %s deleted", location_id)
    return None


@router.get("/{location_id}/admins", response_model=List[AdminSchema])
async def location_admins(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    await get_or_404(db, Location, location_id, "Location")
    admin_ids = await admin_ids_at(db, location_id)
    if not admin_ids:
        return []
    result = await db.execute(select(User).where(User.id.in_(admin_ids)).order_by(User.name))
    return result.scalars().all()


@router.get("/{location_id}/workers", response_model=List[WasherSchema])
async def location_workers(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Washers whose assigned admin works at this location.
    """
    await get_or_404(db, Location, location_id, "Location")
    admin_ids = await admin_ids_at(db, location_id)
    if not admin_ids:
        return []
    result = await db.execute(
        select(User)
        .join(WasherProfile, WasherProfile.user_id == User.id)
        .where(WasherProfile.assigned_admin_id.in_(admin_ids))
        .order_by(User.name)
    )
    return result.scalars().all()
