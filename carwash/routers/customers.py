"""
Customer and vehicle routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carwash.auth import require_staff
from carwash.core.search import matches_search, normalise_plate
from carwash.database import get_db
from carwash.models.check_in import CheckIn
from carwash.models.customer import Customer, Vehicle
from carwash.models.milestone import MilestoneAchievement
from carwash.models.user import User
from carwash.routers.deps import get_or_404, reload
from carwash.schemas.check_in import to_row
from carwash.schemas.customer import (
    Availability, Customer as CustomerSchema, CustomerCreate, CustomerDetails, CustomerUpdate,
    Vehicle as VehicleSchema, VehicleCreate,
)
from carwash.schemas.milestone import to_achievement

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["customers"])


async def email_taken(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> bool:
    query = select(Customer.id).where(Customer.email == email.lower())
    if exclude_id is not None:
        query = query.where(Customer.id != exclude_id)
    return (await db.execute(query)).first() is not None


async def plate_taken(db: AsyncSession, plate: str) -> bool:
    result = await db.execute(select(Vehicle.id).where(Vehicle.license_plate == normalise_plate(plate)))
    return result.first() is not None


def customer_matches(customer: Customer, term: Optional[str]) -> bool:
    plates = [v.license_plate for v in customer.vehicles]
    return matches_search(term, customer.name, customer.phone, customer.email, *plates)


@router.get("/customers", response_model=List[CustomerSchema])
async def list_customers(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    List customers, newest first. ``search`` matches name, phone, email
    and license plate.
    """
    result = await db.execute(select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc()))
    customers = [c for c in result.scalars().all() if customer_matches(c, search)]
    return customers[skip:skip + limit]


@router.post("/customers", response_model=CustomerSchema, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Create a customer with optional vehicles. The first vehicle is primary.
    """
    if customer.email and await email_taken(db, customer.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    plates = [normalise_plate(v.license_plate) for v in customer.vehicles]
    if len(set(plates)) != len(plates):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Duplicate license plate in request")
    for plate in plates:
        if await plate_taken(db, plate):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"License plate {plate} is already registered",
            )

    data = customer.model_dump(exclude={"vehicles"})
    if data.get("email"):
        data["email"] = data["email"].lower()
    db_customer = Customer(**data)
    for index, vehicle in enumerate(customer.vehicles):
        db_customer.vehicles.append(Vehicle(
            **vehicle.model_dump(exclude={"license_plate"}),
            license_plate=plates[index],
            is_primary=index == 0,
        ))
    db.add(db_customer)
    await db.commit()
    logger.info("Customer %s created with %d vehicle(s)", db_customer.id, len(plates))
    return await reload(db, Customer, db_customer.id)


@router.get("/customers/search", response_model=List[CustomerSchema])
async def quick_search(
    q: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Quick lookup for the check-in form; at most ten matches.
    """
    result = await db.execute(select(Customer).order_by(Customer.name))
    return [c for c in result.scalars().all() if customer_matches(c, q)][:10]


@router.get("/customers/validate-email", response_model=Availability)
async def validate_email(
    email: str,
    exclude_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    if await email_taken(db, email, exclude_id):
        return Availability(available=False, message="Email already registered")
    return Availability(available=True, message="Email is available")


@router.get("/vehicles/validate-license-plate", response_model=Availability)
async def validate_license_plate(
    plate: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    if await plate_taken(db, plate):
        return Availability(available=False, message="License plate already registered")
    return Availability(available=True, message="License plate is available")


@router.get("/customers/{customer_id}", response_model=CustomerSchema)
async def get_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    return await get_or_404(db, Customer, customer_id, "Customer")


@router.patch("/customers/{customer_id}", response_model=CustomerSchema)
async def update_customer(
    customer_id: int,
    customer_update: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_customer = await get_or_404(db, Customer, customer_id, "Customer")

    update_data = customer_update.model_dump(exclude_unset=True)
    if update_data.get("email"):
        if await email_taken(db, update_data["email"], exclude_id=customer_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        update_data["email"] = update_data["email"].lower()

    for field, value in update_data.items():
        setattr(db_customer, field, value)

    await db.commit()
    return await reload(db, Customer, customer_id)


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    db_customer = await get_or_404(db, Customer, customer_id, "Customer")
    await db.delete(db_customer)
    await db.commit()
    logger.info("Customer %s deleted", customer_id)
    return None


@router.get("/customers/{customer_id}/details", response_model=CustomerDetails)
async def get_customer_details(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Customer with vehicles, check-in history and milestone achievements.
    """
    customer = await get_or_404(db, Customer, customer_id, "Customer")
    check_ins = await db.execute(
        select(CheckIn).where(CheckIn.customer_id == customer_id).order_by(CheckIn.check_in_time.desc())
    )
    achievements = await db.execute(
        select(MilestoneAchievement)
        .where(MilestoneAchievement.customer_id == customer_id)
        .order_by(MilestoneAchievement.achieved_at.desc())
    )
    return CustomerDetails(
        customer=CustomerSchema.model_validate(customer),
        check_ins=[to_row(c) for c in check_ins.scalars().all()],
        achievements=[to_achievement(a) for a in achievements.scalars().all()],
    )


@router.get("/customer-vehicles", response_model=List[VehicleSchema])
async def list_customer_vehicles(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    customer = await get_or_404(db, Customer, customer_id, "Customer")
    return customer.vehicles


@router.post("/customer-vehicles", response_model=VehicleSchema, status_code=status.HTTP_201_CREATED)
async def add_customer_vehicle(
    vehicle: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """
    Add a vehicle to a customer. A customer's first vehicle is always primary;
    making a new vehicle primary demotes the others.
    """
    customer = await get_or_404(db, Customer, vehicle.customer_id, "Customer")
    plate = normalise_plate(vehicle.license_plate)
    if await plate_taken(db, plate):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"License plate {plate} is already registered",
        )

    is_primary = vehicle.is_primary or not customer.vehicles
    if is_primary:
        for existing in customer.vehicles:
            existing.is_primary = False

    db_vehicle = Vehicle(
        **vehicle.model_dump(exclude={"license_plate", "is_primary"}),
        license_plate=plate,
        is_primary=is_primary,
    )
    db.add(db_vehicle)
    await db.commit()
    return await reload(db, Vehicle, db_vehicle.id)
