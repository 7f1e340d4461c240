"""
Customer routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload
from typing import List

from carhub.database import get_db
from carhub.models.customer import Customer
from carhub.models.service import Service
from carhub.models.vehicle import Vehicle
from carhub.models.user import User
from carhub.schemas.customer import Customer as CustomerSchema, CustomerCreate, CustomerUpdate
from carhub.schemas.service import Service as ServiceSchema
from carhub.schemas.vehicle import Vehicle as VehicleSchema
from carhub.auth import get_current_active_user, technician_scope

router = APIRouter(prefix="/customers", tags=["customers"])


async def get_customer_or_404(db: AsyncSession, customer_id: int) -> Customer:
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    return customer


async def ensure_document_free(db: AsyncSession, document: str, exclude_id: int = None):
    query = select(Customer.id).where(Customer.document == document)
    if exclude_id is not None:
        query = query.where(Customer.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Document already registered"
        )


@router.get("", response_model=List[CustomerSchema])
async def get_customers(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get all customers ordered by name, with pagination.
    """
    result = await db.execute(
        select(Customer).order_by(Customer.name).offset(skip).limit(limit)
    )
    return result.scalars().all()


@router.get("/{customer_id}", response_model=CustomerSchema)
async def get_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get a specific customer by ID.
    """
    return await get_customer_or_404(db, customer_id)


@router.get("/{customer_id}/vehicles", response_model=List[VehicleSchema])
async def get_customer_vehicles(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get the vehicles owned by a customer.
    """
    await get_customer_or_404(db, customer_id)
    result = await db.execute(
        select(Vehicle).where(Vehicle.customer_id == customer_id).order_by(Vehicle.license_plate)
    )
    return result.scalars().all()


@router.get("/{customer_id}/services", response_model=List[ServiceSchema])
async def get_customer_services(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get a customer's service history, newest first.
    """
    await get_customer_or_404(db, customer_id)
    query = (
        select(Service)
        .where(Service.customer_id == customer_id)
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


@router.post("", response_model=CustomerSchema, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Create a new customer.
    """
    if customer.document:
        await ensure_document_free(db, customer.document)

    db_customer = Customer(**customer.model_dump(), loyalty_points=0)
    db.add(db_customer)
    await db.commit()
    await db.refresh(db_customer)

    return db_customer


@router.put("/{customer_id}", response_model=CustomerSchema)
async def update_customer(
    customer_id: int,
    customer_update: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Update a customer.
    """
    db_customer = await get_customer_or_404(db, customer_id)

    # Update only provided fields
    update_data = customer_update.model_dump(exclude_unset=True)
    if update_data.get("document"):
        await ensure_document_free(db, update_data["document"], exclude_id=customer_id)

    for field, value in update_data.items():
        setattr(db_customer, field, value)

    await db.commit()
    await db.refresh(db_customer)

    return db_customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Delete a customer that no longer owns vehicles or services.
    """
    db_customer = await get_customer_or_404(db, customer_id)

    vehicle_count = (
        await db.execute(select(func.count(Vehicle.id)).where(Vehicle.customer_id == customer_id))
    ).scalar_one()
    service_count = (
        await db.execute(select(func.count(Service.id)).where(Service.customer_id == customer_id))
    ).scalar_one()
    if vehicle_count or service_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot delete this customer: {vehicle_count} vehicle(s) and "
                f"{service_count} service(s) are still linked to it."
            )
        )

    await db.delete(db_customer)
    await db.commit()

    return None
