"""
Pydantic schemas for Payment.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from carhub.models.payment import PaymentMethod


class PaymentBase(BaseModel):
    """Base payment schema with common fields."""
    service_id: int
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod
    payment_date: Optional[date] = None
    notes: Optional[str] = None


class PaymentCreate(PaymentBase):
    """Schema for creating a payment."""
    pass


class Payment(PaymentBase):
    """Schema for payment responses."""
    id: int
    payment_date: date
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
