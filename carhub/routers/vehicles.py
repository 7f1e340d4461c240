"""
Vehicle routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload
from typing import List

from carhub.database import get_db
from carhub.models.customer import Customer
from carhub.models.service import Service, OPEN_STATUSES
from carhub.models.vehicle import Vehicle
from carhub.models.user import User
from carhub.schemas.service import Service as ServiceSchema
from carhub.schemas.vehicle import (
    Vehicle as VehicleSchema, VehicleCreate, VehicleUpdate, VehicleWithCustomer,
)
from carhub.auth import get_current_active_user, technician_scope

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


async def get_vehicle_or_404(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
    vehicle = result.scalar_one_or_none()

    if not vehicle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehicle not found"
        )

    return vehicle


async def ensure_customer_exists(db: AsyncSession, customer_id: int):
    result = await db.execute(select(Customer.id).where(Customer.id == customer_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )


async def ensure_plate_free(db: AsyncSession, license_plate: str, exclude_id: int = None):
    query = select(Vehicle.id).where(Vehicle.license_plate == license_plate)
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="License plate already registered"
        )


async def count_open_services(db: AsyncSession, vehicle_id: int) -> int:
    result = await db.execute(
        select(func.count(Service.id))
        .where(Service.vehicle_id == vehicle_id)
        .where(Service.status.in_(OPEN_STATUSES))
    )
    return result.scalar_one()


@router.get("", response_model=List[VehicleWithCustomer])
async def get_vehicles(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get all vehicles with their owner's name, ordered by plate.
    """
    result = await db.execute(
        select(Vehicle)
        .options(selectinload(Vehicle.customer))
        .order_by(Vehicle.license_plate)
        .offset(skip)
        .limit(limit)
    )
    return [
        VehicleWithCustomer(
            **VehicleSchema.model_validate(vehicle).model_dump(),
            customer_name=vehicle.customer.name if vehicle.customer else None,
        )
        for vehicle in result.scalars().all()
    ]


@router.get("/{vehicle_id}", response_model=VehicleSchema)
async def get_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get a specific vehicle by ID.
    """
    return await get_vehicle_or_404(db, vehicle_id)


@router.get("/{vehicle_id}/services", response_model=List[ServiceSchema])
async def get_vehicle_services(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get the service history of a vehicle, newest first.
    """
    await get_vehicle_or_404(db, vehicle_id)
    query = (
        select(Service)
        .where(Service.vehicle_id == vehicle_id)
        .options(
            selectinload(Service.customer),
            selectinload(Service.vehicle),
            selectinload(Service.service_type),
            selectinload(Service.items),
        )
        .order_by(Service.scheduled_date.desc(), Service.id.desc())
    )
    technician_id = technician_scope(current_user)
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=VehicleSchema, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Create a new vehicle.
    """
    await ensure_customer_exists(db, vehicle.customer_id)
    await ensure_plate_free(db, vehicle.license_plate)

    db_vehicle = Vehicle(**vehicle.model_dump())
    db.add(db_vehicle)
    await db.commit()
    await db.refresh(db_vehicle)

    return db_vehicle


@router.put("/{vehicle_id}", response_model=VehicleSchema)
async def update_vehicle(
    vehicle_id: int,
    vehicle_update: VehicleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Update a vehicle.
    """
    db_vehicle = await get_vehicle_or_404(db, vehicle_id)

    # Update only provided fields
    update_data = vehicle_update.model_dump(exclude_unset=True)
    if update_data.get("customer_id") is not None:
        await ensure_customer_exists(db, update_data["customer_id"])
    if update_data.get("license_plate"):
        await ensure_plate_free(db, update_data["license_plate"], exclude_id=vehicle_id)

    for field, value in update_data.items():
        setattr(db_vehicle, field, value)

    await db.commit()
    await db.refresh(db_vehicle)

    return db_vehicle


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Delete a vehicle. Refused while any of its services is still open.
    """
    db_vehicle = await get_vehicle_or_404(db, vehicle_id)

    open_services = await count_open_services(db, vehicle_id)
    if open_services:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot delete this vehicle: it has {open_services} open service(s). "
                "Complete or cancel them before deleting the vehicle."
            )
        )

    # Closed services go with the vehicle
    closed = await db.execute(select(Service).where(Service.vehicle_id == vehicle_id))
    for service in closed.scalars().all():
        await db.delete(service)

    await db.delete(db_vehicle)
    await db.commit()

    return None
