"""
Payment routes.

Technicians may only record or remove payments on their own services.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from loguru import logger

from carhub.clock import today
from carhub.database import get_db
from carhub.models.payment import Payment, PaymentMethod
from carhub.models.service import Service
from carhub.models.user import User
from carhub.routers.services import get_service_or_404
from carhub.schemas.payment import Payment as PaymentSchema, PaymentCreate
from carhub.auth import get_current_active_user, technician_scope

router = APIRouter(prefix="/payments", tags=["payments"])

# Service column that accumulates each payment method
METHOD_COLUMNS = {
    PaymentMethod.PIX: "pix_paid",
    PaymentMethod.CASH: "cash_paid",
    PaymentMethod.CHECK: "check_paid",
    PaymentMethod.CARD: "card_paid",
}


async def get_payment_or_404(db: AsyncSession, payment_id: int, current_user: User) -> Payment:
    query = select(Payment).where(Payment.id == payment_id)
    technician_id = technician_scope(current_user)
    if technician_id is not None:
        query = query.join(Service, Service.id == Payment.service_id).where(Service.technician_id == technician_id)
    payment = (await db.execute(query)).scalar_one_or_none()
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found"
        )
    return payment


@router.post("", response_model=PaymentSchema, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Record a payment and add it to the service's paid totals.
    """
    service = await get_service_or_404(db, payment.service_id, technician_scope(current_user))

    data = payment.model_dump()
    if data.get("payment_date") is None:
        data["payment_date"] = today()

    db_payment = Payment(**data)
    db.add(db_payment)

    column = METHOD_COLUMNS[payment.payment_method]
    setattr(service, column, (getattr(service, column) or 0) + payment.amount)
    service.amount_paid = (service.amount_paid or 0) + payment.amount

    await db.commit()
    await db.refresh(db_payment)
    logger.info("Payment of {} ({}) recorded for service {}", payment.amount, payment.payment_method.value, service.id)

    return db_payment


@router.get("/{payment_id}", response_model=PaymentSchema)
async def get_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await get_payment_or_404(db, payment_id, current_user)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Remove a payment and take it back out of the service's paid totals.
    """
    payment = await get_payment_or_404(db, payment_id, current_user)

    service = await get_service_or_404(db, payment.service_id)
    column = METHOD_COLUMNS[payment.payment_method]
    setattr(service, column, max((getattr(service, column) or 0) - payment.amount, 0))
    service.amount_paid = max((service.amount_paid or 0) - payment.amount, 0)

    await db.delete(payment)
    await db.commit()

    return None
