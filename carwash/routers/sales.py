"""
Product sale routes.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff
from carwash.core.dates import end_of_day, start_of_day, utcnow
from carwash.database import get_db
from carwash.models.customer import Customer
from carwash.models.inventory import MovementType, SaleItem, SaleStatus, SalesTransaction, StockItem
from carwash.models.user import User
from carwash.routers.deps import get_or_404, reload
from carwash.routers.inventory import move_stock
from carwash.schemas.inventory import Sale as SaleSchema, SaleCreate
from carwash.scoping import location_admin_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/sales", tags=["sales"])


@router.get("", response_model=List[SaleSchema])
async def list_sales(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = select(SalesTransaction).order_by(SalesTransaction.created_at.desc(), SalesTransaction.id.desc())
    if start_date:
        query = query.where(SalesTransaction.created_at >= start_of_day(start_date))
    if end_date:
        query = query.where(SalesTransaction.created_at <= end_of_day(end_date))
    admin_ids = await location_admin_ids(db, current_user)
    if admin_ids is not None:
        query = query.where(SalesTransaction.admin_id.in_(admin_ids))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=SaleSchema, status_code=status.HTTP_201_CREATED)
async def create_sale(
    payload: SaleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Record a product sale. Each line deducts stock; if any line is short
    the whole sale is rejected.
    """
    if payload.customer_id is not None:
        await get_or_404(db, Customer, payload.customer_id, "Customer")

    sale = SalesTransaction(
        customer_id=payload.customer_id,
        admin_id=current_user.id,
        payment_method=payload.payment_method,
        status=SaleStatus.COMPLETED,
        remarks=payload.remarks,
        created_at=utcnow(),
    )
    total = 0.0
    for line in payload.items:
        item = await get_or_404(db, StockItem, line.stock_item_id, f"Item {line.stock_item_id}")
        unit_price = line.unit_price if line.unit_price is not None else item.cost_per_unit
        move_stock(db, item, MovementType.OUT, line.quantity, "Product sale", current_user.id)
        line_total = round(unit_price * line.quantity, 2)
        sale.items.append(SaleItem(
            stock_item_id=item.id,
            item_name=item.name,
            quantity=line.quantity,
            unit_price=unit_price,
            line_total=line_total,
        ))
        total += line_total
    sale.total_amount = round(total, 2)

    db.add(sale)
    await db.commit()
    logger.info("Sale %s recorded: %.2f over %d line(s)", sale.id, sale.total_amount, len(payload.items))
    return await reload(db, SalesTransaction, sale.id)


@router.get("/{sale_id}", response_model=SaleSchema)
async def get_sale(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_or_404(db, SalesTransaction, sale_id, "Sale")
