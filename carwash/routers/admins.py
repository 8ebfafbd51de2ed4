"""
Admin management routes. Super admin only.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import hash_password, require_super_admin
from carwash.database import get_db
from carwash.models.location import Location
from carwash.models.user import AdminProfile, User, UserRole
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.user import Admin as AdminSchema, AdminCreate, AdminUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/admins", tags=["admins"])

STAFF_ROLES = (UserRole.SUPER_ADMIN, UserRole.ADMIN)


async def get_admin_or_404(db: AsyncSession, admin_id: int) -> User:
    user = await get_or_404(db, User, admin_id, "Admin")
    if user.role not in STAFF_ROLES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return user


async def ensure_email_free(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> None:
    query = select(User.id).where(User.email == email.lower())
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")


async def ensure_location_exists(db: AsyncSession, location_id: Optional[int]) -> None:
    if location_id is not None:
        await get_or_404(db, Location, location_id, "Location")


@router.get("", response_model=List[AdminSchema])
async def list_admins(
    search: Optional[str] = None,
    location_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    """
    List admins and super admins, newest first.
    """
    query = select(User).where(User.role.in_(STAFF_ROLES)).order_by(User.created_at.desc())
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(func.lower(User.name).like(pattern) | func.lower(User.email).like(pattern))
    if location_id is not None:
        query = query.join(AdminProfile, AdminProfile.user_id == User.id).where(
            AdminProfile.location_id == location_id
        )
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=AdminSchema, status_code=status.HTTP_201_CREATED)
async def create_admin(
    admin: AdminCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    if admin.role not in STAFF_ROLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role must be admin or super_admin")
    await ensure_email_free(db, admin.email)
    await ensure_location_exists(db, admin.location_id)

    db_user = User(
        name=admin.name,
        email=admin.email.lower(),
        phone=admin.phone,
        hashed_password=hash_password(admin.password),
        role=admin.role,
    )
    db_user.admin_profile = AdminProfile(location_id=admin.location_id)
    db.add(db_user)
    await db.commit()
    logger.info("Admin %s created by %s", db_user.id, current_user.id)
    return await reload(db, User, db_user.id)


@router.get("/{admin_id}", response_model=AdminSchema)
async def get_admin(
    admin_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    return await get_admin_or_404(db, admin_id)


@router.patch("/{admin_id}", response_model=AdminSchema)
async def update_admin(
    admin_id: int,
    admin_update: AdminUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    db_user = await get_admin_or_404(db, admin_id)
    update_data = admin_update.model_dump(exclude_unset=True)

    if "email" in update_data:
        await ensure_email_free(db, update_data["email"], exclude_id=admin_id)
        update_data["email"] = update_data["email"].lower()
    if "location_id" in update_data:
        location_id = update_data.pop("location_id")
        await ensure_location_exists(db, location_id)
        if db_user.admin_profile is None:
            db_user.admin_profile = AdminProfile(location_id=location_id)
        else:
            db_user.admin_profile.location_id = location_id

    for field, value in update_data.items():
        setattr(db_user, field, value)

    await db.commit()
    return await reload(db, User, admin_id)


@router.delete("/{admin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_admin(
    admin_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    db_user = await get_admin_or_404(db, admin_id)
    if db_user.role == UserRole.SUPER_ADMIN:
        remaining = await db.scalar(
            select(func.count(User.id)).where(User.role == UserRole.SUPER_ADMIN, User.id != admin_id)
        )
        if not remaining:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete the last super admin",
            )

    await db.delete(db_user)
    await db.commit()
    logger.info("Admin %s deleted by %s", admin_id, current_user.id)
    return None
