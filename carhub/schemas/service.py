"""
Pydantic schemas for Service and ServiceItem.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional
from carhub.models.service import ServiceStatus
from carhub.schemas.validators import not_null

Money = Decimal


class ServiceItemIn(BaseModel):
    """Line item as submitted with a service."""
    service_type_id: int
    quantity: int = Field(1, ge=1)
    unit_price: Money = Field(ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None


class ServiceItem(BaseModel):
    """Schema for line item responses."""
    id: int
    service_type_id: int
    quantity: int
    unit_price: Money
    total_price: Money
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ServiceBase(BaseModel):
    """Base service schema with common fields."""
    customer_id: int
    vehicle_id: int
    service_type_id: Optional[int] = None
    technician_id: Optional[int] = None
    status: ServiceStatus = ServiceStatus.SCHEDULED
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    estimated_value: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    final_value: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None


class ServiceCreate(ServiceBase):
    """Schema for creating a service."""
    items: List[ServiceItemIn] = []
    reminder_enabled: bool = False
    reminder_minutes: int = Field(30, ge=1, le=7 * 24 * 60)


class ServiceUpdate(BaseModel):
    """Schema for updating a service."""
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    service_type_id: Optional[int] = None
    technician_id: Optional[int] = None
    status: Optional[ServiceStatus] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    estimated_value: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    final_value: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    pix_paid: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    cash_paid: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    check_paid: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    card_paid: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    items: Optional[List[ServiceItemIn]] = None

    check_not_null = not_null(
        "customer_id", "vehicle_id", "pix_paid", "cash_paid", "check_paid", "card_paid",
    )


class CustomerRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class VehicleRef(BaseModel):
    id: int
    license_plate: str
    brand: str
    model: str

    model_config = ConfigDict(from_attributes=True)


class ServiceTypeRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class Service(ServiceBase):
    """Schema for service responses."""
    id: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    amount_paid: Money = Decimal("0.00")
    pix_paid: Money = Decimal("0.00")
    cash_paid: Money = Decimal("0.00")
    check_paid: Money = Decimal("0.00")
    card_paid: Money = Decimal("0.00")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer: Optional[CustomerRef] = None
    vehicle: Optional[VehicleRef] = None
    service_type: Optional[ServiceTypeRef] = None
    items: List[ServiceItem] = []

    model_config = ConfigDict(from_attributes=True)
