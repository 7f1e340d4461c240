"""
Service routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import List, Optional
from datetime import datetime, timezone
from decimal import Decimal

from loguru import logger

from carhub.clock import now_local
from carhub.database import get_db
from carhub.models.customer import Customer
from carhub.models.payment import Payment
from carhub.models.service import Service, ServiceItem, ServiceStatus, STATUS_TRANSITIONS
from carhub.models.service_type import ServiceType
from carhub.models.vehicle import Vehicle
from carhub.models.user import User
from carhub.schemas.payment import Payment as PaymentSchema
from carhub.schemas.service import Service as ServiceSchema, ServiceCreate, ServiceItemIn, ServiceUpdate
from carhub.auth import get_current_active_user, technician_scope

router = APIRouter(prefix="/services", tags=["services"])


def service_query():
    return select(Service).options(
        selectinload(Service.customer),
        selectinload(Service.vehicle),
        selectinload(Service.service_type),
        selectinload(Service.items),
    )


async def load_service(db: AsyncSession, service_id: int, technician_id: Optional[int] = None) -> Service:
    query = service_query().where(Service.id == service_id)
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)
    result = await db.execute(query.execution_options(populate_existing=True))
    service = result.scalar_one_or_none()

    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found"
        )

    return service


async def get_service_or_404(db: AsyncSession, service_id: int, technician_id: Optional[int] = None) -> Service:
    """Plain service lookup, limited to the technician's own services when given."""
    query = select(Service).where(Service.id == service_id)
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)
    service = (await db.execute(query)).scalar_one_or_none()
    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found"
        )
    return service


async def check_references(db: AsyncSession, data: dict, current: Optional[Service] = None):
    """Make sure referenced rows exist and the vehicle belongs to the customer."""
    customer_id = data.get("customer_id", current.customer_id if current else None)
    vehicle_id = data.get("vehicle_id", current.vehicle_id if current else None)

    if (await db.execute(select(Customer.id).where(Customer.id == customer_id))).scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    vehicle = (await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))).scalar_one_or_none()
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    if vehicle.customer_id != customer_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vehicle does not belong to the selected customer"
        )

    if data.get("service_type_id") is not None:
        found = await db.execute(select(ServiceType.id).where(ServiceType.id == data["service_type_id"]))
        if found.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service type not found")

    if data.get("technician_id") is not None:
        found = await db.execute(select(User.id).where(User.id == data["technician_id"]))
        if found.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technician not found")


async def build_items(db: AsyncSession, items: List[ServiceItemIn]) -> List[ServiceItem]:
    type_ids = {item.service_type_id for item in items}
    if type_ids:
        found = set((await db.execute(select(ServiceType.id).where(ServiceType.id.in_(type_ids)))).scalars().all())
        missing = type_ids - found
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Service type not found: {sorted(missing)}"
            )

    return [
        ServiceItem(
            service_type_id=item.service_type_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.unit_price * item.quantity,
            notes=item.notes,
        )
        for item in items
    ]


async def award_loyalty_points(db: AsyncSession, service: Service):
    if service.service_type_id is None:
        return
    service_type = await db.get(ServiceType, service.service_type_id)
    if not service_type or not service_type.loyalty_points:
        return
    customer = await db.get(Customer, service.customer_id)
    if customer:
        customer.loyalty_points = (customer.loyalty_points or 0) + service_type.loyalty_points
        logger.info(
            "Customer {} earned {} loyalty points for service {}",
            customer.id, service_type.loyalty_points, service.id,
        )


def apply_status(service: Service, new_status: ServiceStatus) -> bool:
    """
    Move a service to ``new_status``, stamping lifecycle timestamps.

    Returns True when the service has just been completed.
    """
    old_status = service.status
    if new_status == old_status:
        return False
    if new_status not in STATUS_TRANSITIONS[old_status]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change service status from '{old_status.value}' to '{new_status.value}'"
        )

    stamp = datetime.now(timezone.utc)
    if new_status == ServiceStatus.IN_PROGRESS and service.started_at is None:
        service.started_at = stamp
    if new_status == ServiceStatus.COMPLETED:
        service.completed_at = stamp
    service.status = new_status
    return new_status == ServiceStatus.COMPLETED


@router.get("", response_model=List[ServiceSchema])
async def get_services(
    skip: int = 0,
    limit: int = 100,
    status_filter: ServiceStatus = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get services, newest first, with optional status filter.
    Technicians only see their own services.
    """
    query = service_query()

    if status_filter:
        query = query.where(Service.status == status_filter)

    technician_id = technician_scope(current_user)
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)

    result = await db.execute(
        query.order_by(Service.created_at.desc(), Service.id.desc()).offset(skip).limit(limit)
    )
    return result.scalars().all()


@router.get("/{service_id}", response_model=ServiceSchema)
async def get_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get a specific service by ID.
    """
    return await load_service(db, service_id, technician_scope(current_user))


@router.get("/{service_id}/payments", response_model=List[PaymentSchema])
async def get_service_payments(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get the payments recorded against a service.
    """
    await load_service(db, service_id, technician_scope(current_user))
    result = await db.execute(
        select(Payment).where(Payment.service_id == service_id).order_by(Payment.payment_date, Payment.id)
    )
    return result.scalars().all()


@router.post("", response_model=ServiceSchema, status_code=status.HTTP_201_CREATED)
async def create_service(
    service: ServiceCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Book a new service. Missing schedule fields default to the current
    local date/time; an optional push reminder is stored alongside.
    """
    data = service.model_dump(exclude={"items", "reminder_enabled", "reminder_minutes"})
    await check_references(db, data)

    now = now_local()
    if data.get("scheduled_date") is None:
        data["scheduled_date"] = now.date()
    if data.get("scheduled_time") is None:
        data["scheduled_time"] = now.time().replace(microsecond=0)

    target_status = data.pop("status")
    db_service = Service(**data, status=ServiceStatus.SCHEDULED, started_at=None, completed_at=None)
    db_service.items = await build_items(db, service.items)
    completed = apply_status(db_service, target_status)
    db.add(db_service)
    await db.flush()

    if completed:
        await award_loyalty_points(db, db_service)

    if service.reminder_enabled:
        notifications = request.app.state.notifications
        await notifications.create_service_reminder(db, db_service, service.reminder_minutes)

    await db.commit()
    logger.info("Service {} created for vehicle {}", db_service.id, db_service.vehicle_id)

    return await load_service(db, db_service.id)


@router.put("/{service_id}", response_model=ServiceSchema)
async def update_service(
    service_id: int,
    service_update: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Update a service.
    """
    db_service = await load_service(db, service_id, technician_scope(current_user))

    # Update only provided fields
    update_data = service_update.model_dump(exclude_unset=True, exclude={"items"})
    new_status = update_data.pop("status", None)

    if {"customer_id", "vehicle_id", "service_type_id", "technician_id"} & update_data.keys():
        await check_references(db, update_data, current=db_service)

    for field, value in update_data.items():
        setattr(db_service, field, value)

    if {"pix_paid", "cash_paid", "check_paid", "card_paid"} & update_data.keys():
        db_service.amount_paid = sum(
            (Decimal(getattr(db_service, field) or 0) for field in ("pix_paid", "cash_paid", "check_paid", "card_paid")),
            Decimal("0"),
        )

    if new_status is not None and apply_status(db_service, new_status):
        await award_loyalty_points(db, db_service)

    if service_update.items is not None:
        db_service.items = await build_items(db, service_update.items)

    await db.commit()

    return await load_service(db, service_id)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Delete a service. Open services must be completed or cancelled first.
    """
    db_service = await load_service(db, service_id, technician_scope(current_user))

    if db_service.is_open:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot delete a service that is still {db_service.status.value}. "
                "Complete or cancel it first."
            )
        )

    await db.delete(db_service)
    await db.commit()

    return None
