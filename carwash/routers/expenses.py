"""
Expense routes.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff
from carwash.core.dates import end_of_day, start_of_day, utcnow
from carwash.database import get_db
from carwash.models.check_in import CheckIn
from carwash.models.finance import Expense, ExpenseType
from carwash.models.location import Location
from carwash.models.user import User
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.finance import Expense as ExpenseSchema, ExpenseCreate, ExpenseUpdate
from carwash.scoping import location_admin_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/expenses", tags=["expenses"])


def expense_out(expense: Expense) -> ExpenseSchema:
    return ExpenseSchema(
        id=expense.id,
        service_type=expense.service_type,
        amount=expense.amount,
        reason=expense.reason,
        description=expense.description,
        admin_id=expense.admin_id,
        admin_name=expense.admin.name if expense.admin else None,
        check_in_id=expense.check_in_id,
        location_id=expense.location_id,
        expense_date=expense.expense_date,
        created_at=expense.created_at,
    )


async def check_references(db: AsyncSession, data: dict) -> None:
    if data.get("check_in_id") is not None:
        await get_or_404(db, CheckIn, data["check_in_id"], "Check-in")
    if data.get("location_id") is not None:
        await get_or_404(db, Location, data["location_id"], "Location")


async def get_visible_expense(db: AsyncSession, expense_id: int, user: User) -> Expense:
    expense = await get_or_404(db, Expense, expense_id, "Expense")
    admin_ids = await location_admin_ids(db, user)
    if admin_ids is not None and expense.admin_id not in admin_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


@router.get("", response_model=List[ExpenseSchema])
async def list_expenses(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service_type: Optional[ExpenseType] = None,
    location_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List expenses, newest first. ``end_date`` includes the whole day.
    """
    query = select(Expense).order_by(Expense.expense_date.desc(), Expense.id.desc())
    if start_date:
        query = query.where(Expense.expense_date >= start_of_day(start_date))
    if end_date:
        query = query.where(Expense.expense_date <= end_of_day(end_date))
    if service_type:
        query = query.where(Expense.service_type == service_type)
    if location_id is not None:
        query = query.where(Expense.location_id == location_id)
    admin_ids = await location_admin_ids(db, current_user)
    if admin_ids is not None:
        query = query.where(Expense.admin_id.in_(admin_ids))
    result = await db.execute(query)
    return [expense_out(e) for e in result.scalars().all()]


@router.post("", response_model=ExpenseSchema, status_code=status.HTTP_201_CREATED)
async def create_expense(
    payload: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    data = payload.model_dump()
    await check_references(db, data)
    if data["expense_date"] is None:
        data["expense_date"] = utcnow()
    if data["location_id"] is None and current_user.admin_profile is not None:
        data["location_id"] = current_user.admin_profile.location_id

    expense = Expense(**data, admin_id=current_user.id)
    db.add(expense)
    await db.commit()
    logger.info("Expense %s of %.2f (%s) recorded", expense.id, expense.amount, expense.service_type.value)
    return expense_out(await reload(db, Expense, expense.id))


@router.get("/{expense_id}", response_model=ExpenseSchema)
async def get_expense(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return expense_out(await get_visible_expense(db, expense_id, current_user))


@router.patch("/{expense_id}", response_model=ExpenseSchema)
async def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    expense = await get_visible_expense(db, expense_id, current_user)
    update_data = payload.model_dump(exclude_unset=True)
    await check_references(db, update_data)
    for field, value in update_data.items():
        setattr(expense, field, value)
    await db.commit()
    return expense_out(await reload(db, Expense, expense_id))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    expense = await get_visible_expense(db, expense_id, current_user)
    await db.delete(expense)
    await db.commit()
    logger.info("Expense %s deleted", expense_id)
    return None
