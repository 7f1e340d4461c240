"""
Pydantic schemas for Vehicle.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
from carhub.schemas.validators import not_null


class VehicleBase(BaseModel):
    """Base vehicle schema with common fields."""
    customer_id: int
    license_plate: str = Field(min_length=1)
    brand: str
    model: str
    year: int = Field(ge=1900, le=2100)
    color: Optional[str] = None
    chassis: Optional[str] = None
    engine: Optional[str] = None
    fuel_type: Optional[str] = None
    notes: Optional[str] = None


class VehicleCreate(VehicleBase):
    """Schema for creating a vehicle."""
    pass


class VehicleUpdate(BaseModel):
    """Schema for updating a vehicle."""
    customer_id: Optional[int] = None
    license_plate: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = None
    chassis: Optional[str] = None
    engine: Optional[str] = None
    fuel_type: Optional[str] = None
    notes: Optional[str] = None

    check_not_null = not_null("customer_id", "license_plate", "brand", "model", "year")


class Vehicle(VehicleBase):
    """Schema for vehicle responses."""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VehicleWithCustomer(Vehicle):
    """Vehicle listing row with its owner's name."""
    customer_name: Optional[str] = None
