"""
Pydantic schemas for ServiceType.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from carhub.schemas.validators import not_null


class ServiceTypeBase(BaseModel):
    """Base service type schema with common fields."""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    default_price: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    estimated_duration: Optional[int] = Field(None, ge=0)
    is_active: bool = True
    is_recurring: bool = False
    interval_months: Optional[int] = Field(None, ge=1)
    loyalty_points: int = Field(0, ge=0)


class ServiceTypeCreate(ServiceTypeBase):
    """Schema for creating a service type."""
    pass


class ServiceTypeUpdate(BaseModel):
    """Schema for updating a service type."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    default_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    estimated_duration: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    is_recurring: Optional[bool] = None
    interval_months: Optional[int] = Field(None, ge=1)
    loyalty_points: Optional[int] = Field(None, ge=0)

    check_not_null = not_null("name", "default_price", "is_active", "is_recurring", "loyalty_points")


class ServiceType(ServiceTypeBase):
    """Schema for service type responses."""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
