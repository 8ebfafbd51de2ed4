"""
Worker tool, washer tool assignment, deduction and tool charge routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import get_current_active_user, require_staff
from carwash.config import get_settings
from carwash.core.dates import utcnow
from carwash.core.deductions import calculate_deductions
from carwash.core.search import matches_search, sort_records
from carwash.core.stock import tool_matches_status, validate_tool_quantities
from carwash.database import get_db
from carwash.models.tool import ToolCategory, ToolCharge, ToolChargeStatus, WasherTool, WorkerTool
from carwash.models.user import User, UserRole
from carwash.routers.deps import get_or_404, lock_washer_profile, reload
from carwash.schemas.tool import (
    DeductionItem, DeductionSummary, ToolCharge as ToolChargeSchema, ToolChargeCreate, ToolChargeUpdate,
    WasherTool as WasherToolSchema, WasherToolCreate, WasherToolUpdate, WorkerTool as WorkerToolSchema,
    WorkerToolCreate, WorkerToolUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["tools"])

# Supplies are valued as material deductions
CATEGORY_TOOL_TYPES = {
    ToolCategory.EQUIPMENT: "equipment",
    ToolCategory.TOOLS: "tool",
    ToolCategory.SUPPLIES: "supply",
}

SORT_FIELDS = {
    "name": lambda t: t.name.lower(),
    "category": lambda t: t.category.value,
    "replacement_cost": lambda t: t.replacement_cost,
    "available_quantity": lambda t: t.available_quantity,
    "created_at": lambda t: t.created_at,
}


async def get_washer_user(db: AsyncSession, washer_id: int) -> User:
    washer = await db.get(User, washer_id)
    if washer is None or washer.role != UserRole.CAR_WASHER:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Washer not found")
    return washer


async def ensure_tool_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(WorkerTool.id).where(func.lower(WorkerTool.name) == name.lower())
    if exclude_id is not None:
        query = query.where(WorkerTool.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tool name already exists")


def washer_tool_out(assignment: WasherTool) -> WasherToolSchema:
    return WasherToolSchema(
        id=assignment.id,
        washer_id=assignment.washer_id,
        washer_name=assignment.washer.name if assignment.washer else None,
        tool_id=assignment.tool_id,
        tool_name=assignment.tool_name,
        tool_type=assignment.tool_type,
        quantity=assignment.quantity,
        amount=assignment.amount,
        is_returned=assignment.is_returned,
        assigned_date=assignment.assigned_date,
        returned_date=assignment.returned_date,
        notes=assignment.notes,
    )


def tool_charge_out(charge: ToolCharge) -> ToolChargeSchema:
    return ToolChargeSchema(
        id=charge.id,
        washer_id=charge.washer_id,
        washer_name=charge.washer.name if charge.washer else None,
        tool_id=charge.tool_id,
        tool_name=charge.tool_name,
        charge_amount=charge.charge_amount,
        replacement_cost=charge.replacement_cost,
        reason=charge.reason,
        status=charge.status,
        charged_by=charge.charged_by,
        paid_at=charge.paid_at,
        created_at=charge.created_at,
    )


@router.get("/tools", response_model=List[WorkerToolSchema])
async def list_tools(
    search: Optional[str] = None,
    category: Optional[ToolCategory] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    sort_by: str = "name",
    sort_order: str = "asc",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List tools. ``status`` is one of active, inactive, low_availability or
    out_of_stock.
    """
    query = select(WorkerTool)
    if category:
        query = query.where(WorkerTool.category == category)
    result = await db.execute(query)

    low_ratio = get_settings().low_availability_ratio
    tools = [
        t for t in result.scalars().all()
        if matches_search(search, t.name, t.description)
        and (not status_filter or tool_matches_status(t, status_filter, low_ratio))
    ]
    return sort_records(tools, SORT_FIELDS.get(sort_by, SORT_FIELDS["name"]), sort_order)


@router.post("/tools", response_model=WorkerToolSchema, status_code=status.HTTP_201_CREATED)
async def create_tool(
    tool: WorkerToolCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    data = tool.model_dump()
    if data["available_quantity"] is None:
        data["available_quantity"] = data["total_quantity"]
    validate_tool_quantities(data["replacement_cost"], data["total_quantity"], data["available_quantity"])
    await ensure_tool_name_free(db, tool.name)

    db_tool = WorkerTool(**data)
    db.add(db_tool)
    await db.commit()
    logger.info("Tool %s (%s) created", db_tool.id, db_tool.name)
    return await reload(db, WorkerTool, db_tool.id)


@router.get("/tools/{tool_id}", response_model=WorkerToolSchema)
async def get_tool(
    tool_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_or_404(db, WorkerTool, tool_id, "Tool")


@router.patch("/tools/{tool_id}", response_model=WorkerToolSchema)
async def update_tool(
    tool_id: int,
    tool_update: WorkerToolUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_tool = await get_or_404(db, WorkerTool, tool_id, "Tool")
    update_data = tool_update.model_dump(exclude_unset=True)
    if update_data.get("name"):
        await ensure_tool_name_free(db, update_data["name"], exclude_id=tool_id)
    validate_tool_quantities(
        update_data.get("replacement_cost", db_tool.replacement_cost),
        update_data.get("total_quantity", db_tool.total_quantity),
        update_data.get("available_quantity", db_tool.available_quantity),
    )
    for field, value in update_data.items():
        setattr(db_tool, field, value)
    await db.commit()
    return await reload(db, WorkerTool, tool_id)


@router.delete("/tools/{tool_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tool(
    tool_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_tool = await get_or_404(db, WorkerTool, tool_id, "Tool")
    outstanding = await db.scalar(
        select(func.count(WasherTool.id)).where(WasherTool.tool_id == tool_id, WasherTool.is_returned.is_(False))
    )
    if outstanding:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tool has unreturned assignments",
        )
    await db.delete(db_tool)
    await db.commit()
    logger.info("Tool %s deleted", tool_id)
    return None


@router.get("/washer-tools", response_model=List[WasherToolSchema])
async def list_washer_tools(
    washer_id: Optional[int] = None,
    tool_type: Optional[str] = None,
    is_returned: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    List tool assignments. Washers only see their own.
    """
    if current_user.role == UserRole.CAR_WASHER:
        washer_id = current_user.id
    query = select(WasherTool).order_by(WasherTool.assigned_date.desc(), WasherTool.id.desc())
    if washer_id is not None:
        query = query.where(WasherTool.washer_id == washer_id)
    if tool_type:
        query = query.where(WasherTool.tool_type == tool_type)
    if is_returned is not None:
        query = query.where(WasherTool.is_returned.is_(is_returned))
    result = await db.execute(query)
    return [washer_tool_out(a) for a in result.scalars().all()]


@router.post("/washer-tools", response_model=WasherToolSchema, status_code=status.HTTP_201_CREATED)
async def assign_tool(
    payload: WasherToolCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Hand a quantity of a tool to a washer. The tool's replacement cost is
    recorded on the assignment.
    """
    await get_washer_user(db, payload.washer_id)
    tool = await get_or_404(db, WorkerTool, payload.tool_id, "Tool")
    if not tool.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tool is not active")
    if payload.quantity > tool.available_quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient quantity. Available: {tool.available_quantity}, Requested: {payload.quantity}",
        )

    tool.available_quantity -= payload.quantity
    assignment = WasherTool(
        washer_id=payload.washer_id,
        tool_id=tool.id,
        tool_name=tool.name,
        tool_type=payload.tool_type or CATEGORY_TOOL_TYPES[tool.category],
        quantity=payload.quantity,
        amount=tool.replacement_cost,
        assigned_date=utcnow(),
        notes=payload.notes,
    )
    db.add(assignment)
    await db.commit()
    logger.info("Assigned %d x %s to washer %s", payload.quantity, tool.name, payload.washer_id)
    return washer_tool_out(await reload(db, WasherTool, assignment.id))


@router.put("/washer-tools/{assignment_id}", response_model=WasherToolSchema)
async def return_tool(
    assignment_id: int,
    payload: WasherToolUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Mark an assignment returned and put the quantity back into stock.
    """
    assignment = await get_or_404(db, WasherTool, assignment_id, "Tool assignment")
    if payload.notes is not None:
        assignment.notes = payload.notes

    if payload.is_returned:
        if assignment.is_returned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tool already returned")
        assignment.is_returned = True
        assignment.returned_date = utcnow()
        if assignment.tool_id is not None:
            tool = await db.get(WorkerTool, assignment.tool_id)
            if tool is not None:
                tool.available_quantity = min(tool.total_quantity, tool.available_quantity + assignment.quantity)
        logger.info("Washer %s returned %s", assignment.washer_id, assignment.tool_name)

    await db.commit()
    return washer_tool_out(await reload(db, WasherTool, assignment_id))


@router.get("/calculate-deductions", response_model=DeductionSummary)
async def get_deductions(
    washer_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    Value a washer's unreturned tools. Material and supply types are
    material deductions; everything else is a tool deduction.
    """
    if current_user.role == UserRole.CAR_WASHER:
        washer_id = current_user.id
    if washer_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="washer_id is required")
    await get_washer_user(db, washer_id)

    result = await db.execute(
        select(WasherTool).where(WasherTool.washer_id == washer_id, WasherTool.is_returned.is_(False))
    )
    deductions = calculate_deductions(result.scalars().all())
    return DeductionSummary(
        washer_id=washer_id,
        material_deductions=deductions.material_deductions,
        tool_deductions=deductions.tool_deductions,
        total_deductions=deductions.total_deductions,
        has_unreturned_tools=deductions.has_unreturned_tools,
        unreturned_tools=[DeductionItem.model_validate(item) for item in deductions.items],
    )


@router.get("/tool-charges", response_model=List[ToolChargeSchema])
async def list_tool_charges(
    washer_id: Optional[int] = None,
    status_filter: Optional[ToolChargeStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = select(ToolCharge).order_by(ToolCharge.created_at.desc(), ToolCharge.id.desc())
    if washer_id is not None:
        query = query.where(ToolCharge.washer_id == washer_id)
    if status_filter:
        query = query.where(ToolCharge.status == status_filter)
    result = await db.execute(query)
    return [tool_charge_out(c) for c in result.scalars().all()]


@router.post("/tool-charges", response_model=ToolChargeSchema, status_code=status.HTTP_201_CREATED)
async def create_tool_charge(
    payload: ToolChargeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    await get_washer_user(db, payload.washer_id)
    tool_name = payload.tool_name
    replacement_cost = payload.replacement_cost
    if payload.tool_id is not None:
        tool = await get_or_404(db, WorkerTool, payload.tool_id, "Tool")
        tool_name = tool_name or tool.name
        if replacement_cost is None:
            replacement_cost = tool.replacement_cost
    if not tool_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tool_id or tool_name is required")

    charge = ToolCharge(
        washer_id=payload.washer_id,
        tool_id=payload.tool_id,
        tool_name=tool_name,
        charge_amount=payload.charge_amount,
        replacement_cost=replacement_cost if replacement_cost is not None else payload.charge_amount,
        reason=payload.reason,
        status=ToolChargeStatus.PENDING,
        charged_by=current_user.id,
    )
    db.add(charge)
    await db.commit()
    logger.info("Tool charge %s of %.2f raised on washer %s", charge.id, charge.charge_amount, charge.washer_id)
    return tool_charge_out(await reload(db, ToolCharge, charge.id))


@router.patch("/tool-charges/{charge_id}", response_model=ToolChargeSchema)
async def update_tool_charge(
    charge_id: int,
    payload: ToolChargeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Update a charge. Marking it paid deducts the amount from the washer's
    earnings.
    """
    charge = await get_or_404(db, ToolCharge, charge_id, "Tool charge", for_update=True)
    data = payload.model_dump(exclude_unset=True)
    if charge.status != ToolChargeStatus.PENDING and data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Tool charge is already {charge.status.value}",
        )

    new_status = data.pop("status", None)
    for field, value in data.items():
        setattr(charge, field, value)

    if new_status == ToolChargeStatus.PAID:
        if charge.washer is not None and charge.washer.washer_profile is not None:
            profile = await lock_washer_profile(db, charge.washer_id)
            profile.total_earnings = (profile.total_earnings or 0.0) - charge.charge_amount
        charge.paid_at = utcnow()
        logger.info("Tool charge %s paid; deducted %.2f from washer %s", charge_id, charge.charge_amount, charge.washer_id)
    if new_status is not None:
        charge.status = new_status

    await db.commit()
    return tool_charge_out(await reload(db, ToolCharge, charge_id))


@router.delete("/tool-charges/{charge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tool_charge(
    charge_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    charge = await get_or_404(db, ToolCharge, charge_id, "Tool charge")
    if charge.status == ToolChargeStatus.PAID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Paid tool charges cannot be deleted")
    await db.delete(charge)
    await db.commit()
    return None
