"""
Check-in routes: intake, the status workflow, payment and material usage.
"""
import logging
import secrets
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import get_current_active_user, require_staff, require_washer
from carwash.config import get_settings
from carwash.core.dates import utcnow
from carwash.core.earnings import estimated_duration, split_commission
from carwash.core.search import matches_search, normalise_plate, sort_records
from carwash.core.workflow import validate_check_in_transition
from carwash.database import get_db
from carwash.errors import CarWashError
from carwash.models.check_in import (
    CheckIn, CheckInMaterial, CheckInService, CheckInStatus, PaymentStatus, WashType,
)
from carwash.models.customer import Customer, Vehicle
from carwash.models.inventory import WasherMaterial
from carwash.models.service import Service
from carwash.models.user import User, UserRole
from carwash.routers.deps import get_or_404, lock_washer_profile, reload
from carwash.routers.milestones import award_milestones
from carwash.schemas.check_in import (
    AssignMaterialsRequest, CheckInCreate, CheckInDetail, CheckInEdit, CheckInRow, CheckInUpdate,
    to_detail, to_row,
)
from carwash.schemas.inventory import WasherMaterial as WasherMaterialSchema
from carwash.scoping import location_admin_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["check-ins"])

SORT_FIELDS = {
    "check_in_time": lambda r: r.check_in_time,
    "total_amount": lambda r: r.total_amount,
    "customer_name": lambda r: r.customer_name.lower(),
    "status": lambda r: r.status.value,
    "license_plate": lambda r: r.license_plate,
}

STAFF_ROLES = (UserRole.SUPER_ADMIN, UserRole.ADMIN)


def generate_passcode() -> str:
    return f"{secrets.randbelow(9000) + 1000}"


async def build_lines(db: AsyncSession, service_ids: List[int]) -> List[CheckInService]:
    """Snapshot catalogue services onto new check-in lines."""
    lines = []
    for service_id in service_ids:
        service = await get_or_404(db, Service, service_id, f"Service {service_id}")
        if not service.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Service {service.name} is not active",
            )
        lines.append(CheckInService(
            service_id=service.id,
            service_name=service.name,
            price=service.base_price,
            duration=service.estimated_duration,
            service=service,
        ))
    return lines


async def ensure_washer(db: AsyncSession, washer_id: Optional[int]) -> None:
    if washer_id is None:
        return
    washer = await db.get(User, washer_id)
    if washer is None or washer.role != UserRole.CAR_WASHER:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assigned washer not found")


async def get_visible_check_in(
    db: AsyncSession, check_in_id: int, user: User, for_update: bool = False,
) -> CheckIn:
    """Washers may only touch check-ins assigned to them."""
    check_in = await get_or_404(db, CheckIn, check_in_id, "Check-in", for_update=for_update)
    if user.role == UserRole.CAR_WASHER and check_in.assigned_washer_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This check-in is not assigned to you",
        )
    return check_in


@router.get("/check-ins", response_model=List[CheckInRow])
async def list_check_ins(
    search: Optional[str] = None,
    status_filter: Optional[CheckInStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = None,
    sort_by: str = "check_in_time",
    sort_order: str = "desc",
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List check-ins. ``search`` matches customer name, customer phone,
    license plate or user code.
    """
    query = select(CheckIn)
    if status_filter:
        query = query.where(CheckIn.status == status_filter)
    if payment_status:
        query = query.where(CheckIn.payment_status == payment_status)
    admin_ids = await location_admin_ids(db, current_user)
    if admin_ids is not None:
        query = query.where(CheckIn.assigned_admin_id.in_(admin_ids))

    result = await db.execute(query)
    rows = [
        to_row(c) for c in result.scalars().all()
        if matches_search(
            search,
            c.customer.name if c.customer else None,
            c.customer.phone if c.customer else None,
            c.license_plate,
            c.user_code,
        )
    ]
    rows = sort_records(rows, SORT_FIELDS.get(sort_by, SORT_FIELDS["check_in_time"]), sort_order)
    return rows[:limit]


@router.post("/check-ins", response_model=CheckInDetail, status_code=status.HTTP_201_CREATED)
async def create_check_in(
    payload: CheckInCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Check a car in. Delayed washes get a 4-digit passcode unless one is
    supplied; the amount defaults to the sum of service prices.
    """
    settings = get_settings()
    plate = normalise_plate(payload.license_plate)

    customer_id = payload.customer_id
    if customer_id is not None:
        await get_or_404(db, Customer, customer_id, "Customer")
    else:
        vehicle = (await db.execute(select(Vehicle).where(Vehicle.license_plate == plate))).scalar_one_or_none()
        if vehicle is not None:
            customer_id = vehicle.customer_id
    await ensure_washer(db, payload.assigned_washer_id)

    lines = await build_lines(db, payload.service_ids)
    passcode = payload.passcode
    if payload.wash_type == WashType.DELAYED and not passcode:
        passcode = generate_passcode()

    check_in = CheckIn(
        customer_id=customer_id,
        license_plate=plate,
        vehicle_type=payload.vehicle_type,
        vehicle_model=payload.vehicle_model,
        vehicle_color=payload.vehicle_color,
        wash_type=payload.wash_type,
        status=CheckInStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        assigned_washer_id=payload.assigned_washer_id,
        assigned_admin_id=payload.assigned_admin_id or current_user.id,
        passcode=passcode,
        user_code=payload.user_code,
        remarks=payload.remarks,
        valuable_items=payload.valuable_items,
        reason=payload.reason,
        estimated_duration=estimated_duration(lines, default=settings.default_estimated_duration),
        total_amount=(
            payload.total_amount if payload.total_amount is not None else sum(line.price for line in lines)
        ),
        check_in_time=utcnow(),
        lines=lines,
    )
    db.add(check_in)
    await db.commit()
    logger.info("Check-in %s created for %s by %s", check_in.id, plate, current_user.id)
    return to_detail(await reload(db, CheckIn, check_in.id))


@router.get("/my-checkins", response_model=List[CheckInRow])
async def my_check_ins(
    status_filter: Optional[CheckInStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_washer),
):
    """
    Check-ins assigned to the logged-in washer, newest first.
    """
    query = (
        select(CheckIn)
        .where(CheckIn.assigned_washer_id == current_user.id)
        .order_by(CheckIn.check_in_time.desc())
    )
    if status_filter:
        query = query.where(CheckIn.status == status_filter)
    result = await db.execute(query)
    return [to_row(c) for c in result.scalars().all()]


@router.get("/check-ins/{check_in_id}", response_model=CheckInDetail)
async def get_check_in(
    check_in_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return to_detail(await get_visible_check_in(db, check_in_id, current_user))


def complete(check_in: CheckIn, passcode: Optional[str], user: User) -> None:
    """
    Move a check-in to completed: verify the passcode, stamp the time and
    compute the commission split.
    """
    needs_passcode = user.role != UserRole.CAR_WASHER and check_in.wash_type != WashType.INSTANT
    if needs_passcode and (not passcode or passcode != check_in.passcode):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid passcode")

    check_in.actual_completion_time = utcnow()
    split = split_commission(check_in.lines)
    check_in.washer_income = split.washer_income
    check_in.company_income = split.company_income

    customer = check_in.customer
    if customer is not None:
        customer.total_visits = (customer.total_visits or 0) + 1
        customer.total_spent = (customer.total_spent or 0.0) + (check_in.total_amount or 0.0)


async def take_payment(db: AsyncSession, check_in: CheckIn) -> None:
    """
    Mark a completed check-in paid and credit the washer once. The caller
    holds the check-in row lock, so ``earnings_credited`` is current.
    """
    validate_check_in_transition(check_in.status, CheckInStatus.PAID)
    if check_in.washer_income is None or check_in.company_income is None:
        split = split_commission(check_in.lines)
        check_in.washer_income = split.washer_income
        check_in.company_income = split.company_income

    washer = check_in.assigned_washer
    if washer is None or washer.washer_profile is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Check-in has no assigned washer to credit",
        )
    if not check_in.washer_income:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to calculate washer earnings for this check-in",
        )

    now = utcnow()
    check_in.payment_status = PaymentStatus.PAID
    check_in.status = CheckInStatus.PAID
    check_in.paid_time = now

    if not check_in.earnings_credited:
        profile = await lock_washer_profile(db, washer.id)
        profile.total_earnings = (profile.total_earnings or 0.0) + check_in.washer_income
        check_in.earnings_credited = True
        logger.info(
            "Credited %.2f to washer %s for check-in %s",
            check_in.washer_income, washer.id, check_in.id,
        )


@router.patch("/check-ins/{check_in_id}", response_model=CheckInDetail)
async def update_check_in(
    check_in_id: int,
    payload: CheckInUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    Drive the check-in workflow.

    Status changes follow pending -> in_progress -> completed -> paid, with
    cancellation allowed before completion. Setting ``payment_status`` to
    paid moves the check-in to paid and credits the washer's earnings.
    """
    check_in = await get_visible_check_in(db, check_in_id, current_user, for_update=True)
    data = payload.model_dump(exclude_unset=True)
    is_washer = current_user.role == UserRole.CAR_WASHER

    if "washer_completion_status" in data and not is_washer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only car washers can update washer completion status",
        )
    if is_washer and ({"payment_status", "payment_method", "assigned_washer_id", "assigned_admin_id"} & data.keys()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Car washers cannot change payment or assignment",
        )
    if "assigned_washer_id" in data:
        await ensure_washer(db, data["assigned_washer_id"])

    new_status = data.pop("status", None)
    passcode = data.pop("passcode", None)
    payment_status = data.pop("payment_status", None)
    completed_now = False

    if new_status is not None and new_status != check_in.status:
        validate_check_in_transition(check_in.status, new_status)
        if new_status == CheckInStatus.COMPLETED:
            complete(check_in, passcode, current_user)
            completed_now = True
        if new_status == CheckInStatus.PAID:
            await take_payment(db, check_in)
        else:
            check_in.status = new_status

    for field, value in data.items():
        setattr(check_in, field, value)

    if payment_status == PaymentStatus.PAID and check_in.payment_status != PaymentStatus.PAID:
        await take_payment(db, check_in)

    await db.commit()
    logger.info("Check-in %s updated by %s: status=%s", check_in_id, current_user.id, check_in.status.value)

    if completed_now and check_in.customer_id:
        try:
            await award_milestones(db, check_in.customer_id)
            await db.commit()
        except (SQLAlchemyError, CarWashError):
            logger.exception("Milestone evaluation failed for customer %s", check_in.customer_id)
            await db.rollback()

    return to_detail(await reload(db, CheckIn, check_in_id))


@router.put("/check-ins/{check_in_id}/edit", response_model=CheckInDetail)
async def edit_check_in(
    check_in_id: int,
    payload: CheckInEdit,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Edit check-in details until it is paid. Supplying services replaces
    the lines and, unless an amount is given, reprices the check-in.
    """
    check_in = await get_or_404(db, CheckIn, check_in_id, "Check-in", for_update=True)
    if check_in.status == CheckInStatus.PAID or check_in.payment_status == PaymentStatus.PAID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Paid check-ins cannot be edited")

    data = payload.model_dump(exclude_unset=True)
    if "assigned_washer_id" in data:
        await ensure_washer(db, data["assigned_washer_id"])
    if data.get("license_plate"):
        data["license_plate"] = normalise_plate(data["license_plate"])

    service_ids = data.pop("service_ids", None)
    if service_ids:
        lines = await build_lines(db, service_ids)
        check_in.lines = lines
        check_in.estimated_duration = estimated_duration(
            lines, default=get_settings().default_estimated_duration
        )
        if data.get("total_amount") is None:
            data["total_amount"] = sum(line.price for line in lines)
        if check_in.status == CheckInStatus.COMPLETED:
            split = split_commission(lines)
            check_in.washer_income = split.washer_income
            check_in.company_income = split.company_income

    previous_total = check_in.total_amount or 0.0
    for field, value in data.items():
        if value is None and field == "total_amount":
            continue
        setattr(check_in, field, value)

    if check_in.wash_type == WashType.DELAYED and not check_in.passcode:
        check_in.passcode = generate_passcode()
    customer = check_in.customer
    if check_in.status == CheckInStatus.COMPLETED and customer is not None:
        customer.total_spent = (customer.total_spent or 0.0) + (check_in.total_amount or 0.0) - previous_total

    await db.commit()
    logger.info("Check-in %s edited by %s", check_in_id, current_user.id)
    return to_detail(await reload(db, CheckIn, check_in_id))


@router.delete("/check-ins/{check_in_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_check_in(
    check_in_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    check_in = await get_or_404(db, CheckIn, check_in_id, "Check-in")
    if check_in.status not in (CheckInStatus.PENDING, CheckInStatus.CANCELLED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only pending or cancelled check-ins can be deleted",
        )
    materials = await db.execute(select(CheckInMaterial).where(CheckInMaterial.check_in_id == check_in_id))
    for material in materials.scalars().all():
        # unused material goes back to the washer
        held = await db.get(WasherMaterial, material.washer_material_id)
        if held is not None:
            held.used_quantity = max((held.used_quantity or 0.0) - material.quantity, 0.0)
        await db.delete(material)
    await db.delete(check_in)
    await db.commit()
    logger.info("Check-in %s deleted by %s", check_in_id, current_user.id)
    return None


@router.post("/check-ins/{check_in_id}/assign-materials", response_model=List[WasherMaterialSchema])
async def assign_materials(
    check_in_id: int,
    payload: AssignMaterialsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    Consume materials held by the assigned washer on this check-in.
    """
    check_in = await get_visible_check_in(db, check_in_id, current_user)
    if check_in.assigned_washer_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Check-in has no assigned washer")

    used = []
    for usage in payload.materials:
        material = await get_or_404(db, WasherMaterial, usage.washer_material_id, "Washer material")
        if material.washer_id != check_in.assigned_washer_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Material {material.material_name} is not held by the assigned washer",
            )
        if material.is_returned:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Material {material.material_name} has been returned",
            )
        available = material.quantity - (material.used_quantity or 0.0)
        if usage.quantity > available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient {material.material_name}. Available: {available:g}, Requested: {usage.quantity:g}",
            )
        material.used_quantity = (material.used_quantity or 0.0) + usage.quantity
        db.add(CheckInMaterial(
            check_in_id=check_in_id,
            washer_material_id=material.id,
            quantity=usage.quantity,
        ))
        used.append(material)

    await db.commit()
    logger.info("Assigned %d material(s) to check-in %s", len(used), check_in_id)
    return [await reload(db, WasherMaterial, m.id) for m in used]
