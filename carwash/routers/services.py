"""
Wash service catalogue and commission settings routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff
from carwash.config import get_settings
from carwash.core.earnings import validate_commission
from carwash.core.search import matches_search, sort_records
from carwash.database import get_db
from carwash.models.service import Service, ServiceCategory
from carwash.models.user import User
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.service import (
    CommissionSetting, CommissionSettingsUpdate, Service as ServiceSchema, ServiceCreate, ServiceUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["services"])

SORT_FIELDS = {
    "name": lambda s: s.name.lower(),
    "base_price": lambda s: s.base_price,
    "category": lambda s: s.category.value,
    "estimated_duration": lambda s: s.estimated_duration,
    "created_at": lambda s: s.created_at,
}


def check_commission(washer_pct: float, company_pct: float) -> None:
    error = validate_commission(washer_pct, company_pct)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


async def ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Service.id).where(func.lower(Service.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Service.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Service name already exists")


@router.get("/services", response_model=List[ServiceSchema])
async def list_services(
    search: Optional[str] = None,
    category: Optional[ServiceCategory] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    sort_by: str = "name",
    sort_order: str = "asc",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List services with optional search, category and active/inactive filters.
    """
    query = select(Service)
    if category:
        query = query.where(Service.category == category)
    if status_filter == "active":
        query = query.where(Service.is_active.is_(True))
    elif status_filter == "inactive":
        query = query.where(Service.is_active.is_(False))

    result = await db.execute(query)
    services = [s for s in result.scalars().all() if matches_search(search, s.name, s.description)]
    return sort_records(services, SORT_FIELDS.get(sort_by, SORT_FIELDS["name"]), sort_order)


@router.post("/services", response_model=ServiceSchema, status_code=status.HTTP_201_CREATED)
async def create_service(
    service: ServiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Create a service. Commission percentages default to the configured split.
    """
    settings = get_settings()
    data = service.model_dump()
    if data["washer_commission_percentage"] is None:
        data["washer_commission_percentage"] = settings.default_washer_commission
    if data["company_commission_percentage"] is None:
        data["company_commission_percentage"] = 100 - data["washer_commission_percentage"]
    check_commission(data["washer_commission_percentage"], data["company_commission_percentage"])
    await ensure_name_free(db, service.name)

    db_service = Service(**data)
    db.add(db_service)
    await db.commit()
    logger.info("Service %s (%s) created", db_service.id, db_service.name)
    return await reload(db, Service, db_service.id)


@router.get("/services/{service_id}", response_model=ServiceSchema)
async def get_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_or_404(db, Service, service_id, "Service")


@router.patch("/services/{service_id}", response_model=ServiceSchema)
async def update_service(
    service_id: int,
    service_update: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_service = await get_or_404(db, Service, service_id, "Service")
    update_data = service_update.model_dump(exclude_unset=True)

    if update_data.get("name"):
        await ensure_name_free(db, update_data["name"], exclude_id=service_id)
    if "washer_commission_percentage" in update_data or "company_commission_percentage" in update_data:
        check_commission(
            update_data.get("washer_commission_percentage", db_service.washer_commission_percentage),
            update_data.get("company_commission_percentage", db_service.company_commission_percentage),
        )

    for field, value in update_data.items():
        setattr(db_service, field, value)

    await db.commit()
    return await reload(db, Service, service_id)


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_service = await get_or_404(db, Service, service_id, "Service")
    await db.delete(db_service)
    await db.commit()
    logger.info("Service %s deleted", service_id)
    return None


@router.get("/commission-settings", response_model=List[CommissionSetting])
async def get_commission_settings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    result = await db.execute(select(Service).order_by(Service.name))
    return [
        CommissionSetting(
            service_id=s.id,
            washer_commission_percentage=s.washer_commission_percentage,
            company_commission_percentage=s.company_commission_percentage,
            max_washers_per_service=s.max_washers_per_service,
            commission_notes=s.commission_notes,
        )
        for s in result.scalars().all()
    ]


@router.put("/commission-settings", response_model=List[CommissionSetting])
async def update_commission_settings(
    payload: CommissionSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Bulk update commission splits. Every entry is validated before any is
    applied.
    """
    services = {}
    for setting in payload.settings:
        check_commission(setting.washer_commission_percentage, setting.company_commission_percentage)
        services[setting.service_id] = await get_or_404(db, Service, setting.service_id, "Service")

    for setting in payload.settings:
        service = services[setting.service_id]
        service.washer_commission_percentage = setting.washer_commission_percentage
        service.company_commission_percentage = setting.company_commission_percentage
        if setting.max_washers_per_service is not None:
            service.max_washers_per_service = setting.max_washers_per_service
        if setting.commission_notes is not None:
            service.commission_notes = setting.commission_notes

    await db.commit()
    logger.info("Commission settings updated for %d service(s)", len(payload.settings))
    return await get_commission_settings(db=db, current_user=current_user)
