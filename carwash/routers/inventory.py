"""
Stock item, stock movement and washer material routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import get_current_active_user, require_staff
from carwash.core.dates import utcnow
from carwash.core.search import matches_search, sort_records
from carwash.core.stock import apply_movement, stock_status, validate_stock_levels
from carwash.database import get_db
from carwash.models.inventory import MovementType, StockItem, StockMovement, WasherMaterial
from carwash.models.user import User, UserRole
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.inventory import (
    AvailableMaterial, StockAdjustment, StockAdjustmentResult, StockItem as StockItemSchema,
    StockItemCreate, StockItemUpdate, StockMovement as StockMovementSchema,
    WasherMaterial as WasherMaterialSchema, WasherMaterialCreate, WasherMaterialUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["inventory"])

SORT_FIELDS = {
    "name": lambda i: i.name.lower(),
    "category": lambda i: i.category.lower(),
    "current_stock": lambda i: i.current_stock,
    "cost_per_unit": lambda i: i.cost_per_unit,
    "updated_at": lambda i: i.updated_at,
}


def stock_item_out(item: StockItem) -> StockItemSchema:
    return StockItemSchema(
        id=item.id,
        name=item.name,
        description=item.description,
        category=item.category,
        unit=item.unit,
        current_stock=item.current_stock,
        min_stock_level=item.min_stock_level,
        max_stock_level=item.max_stock_level,
        cost_per_unit=item.cost_per_unit,
        supplier=item.supplier,
        is_active=item.is_active,
        status=stock_status(item.current_stock, item.min_stock_level, item.max_stock_level),
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def move_stock(
    db: AsyncSession,
    item: StockItem,
    movement: MovementType,
    quantity: float,
    reason: str,
    admin_id: Optional[int],
    remarks: Optional[str] = None,
) -> StockMovement:
    """Apply a movement to ``item`` and add its ledger entry to the session."""
    previous = item.current_stock
    item.current_stock = apply_movement(previous, movement, quantity)
    record = StockMovement(
        stock_item_id=item.id,
        type=movement,
        quantity=quantity,
        previous_balance=previous,
        new_balance=item.current_stock,
        reason=reason,
        admin_id=admin_id,
        remarks=remarks,
    )
    db.add(record)
    return record


async def ensure_item_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(StockItem.id).where(func.lower(StockItem.name) == name.lower())
    if exclude_id is not None:
        query = query.where(StockItem.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item name already exists")


@router.get("/inventory", response_model=List[StockItemSchema])
async def list_inventory(
    search: Optional[str] = None,
    category: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    sort_by: str = "name",
    sort_order: str = "asc",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List stock items with their computed stock status.
    """
    query = select(StockItem)
    if category:
        query = query.where(StockItem.category == category)
    result = await db.execute(query)

    items = [
        stock_item_out(i) for i in result.scalars().all()
        if matches_search(search, i.name, i.description, i.supplier)
    ]
    if status_filter:
        items = [i for i in items if i.status == status_filter]
    return sort_records(items, SORT_FIELDS.get(sort_by, SORT_FIELDS["name"]), sort_order)


@router.post("/inventory", response_model=StockItemSchema, status_code=status.HTTP_201_CREATED)
async def create_stock_item(
    item: StockItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    validate_stock_levels(item.current_stock, item.min_stock_level, item.max_stock_level, item.cost_per_unit)
    await ensure_item_name_free(db, item.name)

    db_item = StockItem(**item.model_dump())
    db.add(db_item)
    await db.commit()
    logger.info("Stock item %s (%s) created", db_item.id, db_item.name)
    return stock_item_out(await reload(db, StockItem, db_item.id))


@router.get("/inventory/{item_id}", response_model=StockItemSchema)
async def get_stock_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return stock_item_out(await get_or_404(db, StockItem, item_id, "Item"))


@router.patch("/inventory/{item_id}", response_model=StockItemSchema)
async def update_stock_item(
    item_id: int,
    item_update: StockItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_item = await get_or_404(db, StockItem, item_id, "Item")
    update_data = item_update.model_dump(exclude_unset=True)
    if update_data.get("name"):
        await ensure_item_name_free(db, update_data["name"], exclude_id=item_id)
    validate_stock_levels(
        update_data.get("current_stock", db_item.current_stock),
        update_data.get("min_stock_level", db_item.min_stock_level),
        update_data.get("max_stock_level", db_item.max_stock_level),
        update_data.get("cost_per_unit", db_item.cost_per_unit),
    )
    for field, value in update_data.items():
        setattr(db_item, field, value)
    await db.commit()
    return stock_item_out(await reload(db, StockItem, item_id))


@router.delete("/inventory/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stock_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_item = await get_or_404(db, StockItem, item_id, "Item")
    movements = await db.execute(select(StockMovement).where(StockMovement.stock_item_id == item_id))
    for movement in movements.scalars().all():
        await db.delete(movement)
    await db.delete(db_item)
    await db.commit()
    logger.info("Stock item %s deleted", item_id)
    return None


@router.post("/inventory/{item_id}/adjust", response_model=StockAdjustmentResult)
async def adjust_stock(
    item_id: int,
    adjustment: StockAdjustment,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Move stock in or out, recording the balance before and after.
    """
    db_item = await get_or_404(db, StockItem, item_id, "Item")
    record = move_stock(
        db, db_item, adjustment.type, adjustment.quantity, adjustment.reason, current_user.id, adjustment.remarks,
    )
    await db.commit()
    logger.info(
        "Stock %s for %s: %g -> %g",
        adjustment.type.value, db_item.name, record.previous_balance, record.new_balance,
    )
    return StockAdjustmentResult(
        item=stock_item_out(await reload(db, StockItem, item_id)),
        movement=StockMovementSchema.model_validate(await reload(db, StockMovement, record.id)),
    )


@router.get("/inventory/{item_id}/movements", response_model=List[StockMovementSchema])
async def list_movements(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    await get_or_404(db, StockItem, item_id, "Item")
    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.stock_item_id == item_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    )
    return result.scalars().all()


@router.get("/washer-materials", response_model=List[WasherMaterialSchema])
async def list_washer_materials(
    washer_id: Optional[int] = None,
    is_returned: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    if current_user.role == UserRole.CAR_WASHER:
        washer_id = current_user.id
    query = select(WasherMaterial).order_by(WasherMaterial.assigned_date.desc(), WasherMaterial.id.desc())
    if washer_id is not None:
        query = query.where(WasherMaterial.washer_id == washer_id)
    if is_returned is not None:
        query = query.where(WasherMaterial.is_returned.is_(is_returned))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/washer-materials", response_model=WasherMaterialSchema, status_code=status.HTTP_201_CREATED)
async def issue_material(
    payload: WasherMaterialCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Issue stock to a washer. The quantity leaves the stock balance.
    """
    washer = await db.get(User, payload.washer_id)
    if washer is None or washer.role != UserRole.CAR_WASHER:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Washer not found")
    item = await get_or_404(db, StockItem, payload.stock_item_id, "Item")

    move_stock(db, item, MovementType.OUT, payload.quantity, f"Issued to washer {washer.name}", current_user.id)
    material = WasherMaterial(
        washer_id=washer.id,
        stock_item_id=item.id,
        material_name=item.name,
        material_type=payload.material_type or "material",
        quantity=payload.quantity,
        used_quantity=0.0,
        unit=item.unit,
        assigned_date=utcnow(),
        notes=payload.notes,
    )
    db.add(material)
    await db.commit()
    logger.info("Issued %g %s of %s to washer %s", payload.quantity, item.unit, item.name, washer.id)
    return await reload(db, WasherMaterial, material.id)


@router.patch("/washer-materials/{material_id}", response_model=WasherMaterialSchema)
async def update_washer_material(
    material_id: int,
    payload: WasherMaterialUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Update notes or mark a material returned. The unused quantity goes
    back into stock.
    """
    material = await get_or_404(db, WasherMaterial, material_id, "Washer material")
    if payload.notes is not None:
        material.notes = payload.notes

    if payload.is_returned:
        if material.is_returned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Material already returned")
        unused = material.quantity - (material.used_quantity or 0.0)
        if unused > 0 and material.stock_item_id is not None:
            item = await db.get(StockItem, material.stock_item_id)
            if item is not None:
                move_stock(db, item, MovementType.IN, unused, "Returned by washer", current_user.id)
        material.is_returned = True
        material.returned_date = utcnow()
        logger.info("Material %s returned with %g unused", material_id, unused)

    await db.commit()
    return await reload(db, WasherMaterial, material_id)


@router.get("/calculate-available-quantities", response_model=List[AvailableMaterial])
async def available_quantities(
    washer_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    Issued minus used quantity for each material a washer still holds.
    """
    if current_user.role == UserRole.CAR_WASHER:
        washer_id = current_user.id
    if washer_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="washer_id is required")

    result = await db.execute(
        select(WasherMaterial)
        .where(WasherMaterial.washer_id == washer_id, WasherMaterial.is_returned.is_(False))
        .order_by(WasherMaterial.material_name)
    )
    return [
        AvailableMaterial(
            washer_material_id=m.id,
            material_name=m.material_name,
            unit=m.unit,
            issued_quantity=m.quantity,
            used_quantity=m.used_quantity or 0.0,
            available_quantity=max(m.quantity - (m.used_quantity or 0.0), 0.0),
        )
        for m in result.scalars().all()
    ]
