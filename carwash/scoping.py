"""
Location scoping for admins.

A super admin sees every location. Any other admin sees records created
by admins who work at the same location.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.models.user import AdminProfile, User, UserRole


async def location_admin_ids(db: AsyncSession, user: User) -> Optional[List[int]]:
    """
    Return the admin ids whose records ``user`` may see, or None for no
    restriction.
    """
    if user.role == UserRole.SUPER_ADMIN:
        return None
    profile = user.admin_profile
    if profile is None or profile.location_id is None:
        return None
    result = await db.execute(
        select(AdminProfile.user_id).where(AdminProfile.location_id == profile.location_id)
    )
    return list(result.scalars().all())
