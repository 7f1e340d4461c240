"""
Pydantic schemas for Customer.
"""
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import Optional
from carhub.models.customer import DocumentType
from carhub.schemas.validators import not_null


class CustomerBase(BaseModel):
    """Base customer schema with common fields."""
    name: str = Field(min_length=1)
    document: Optional[str] = None
    document_type: Optional[DocumentType] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(None, max_length=2)
    zip_code: Optional[str] = Field(None, max_length=10)
    observations: Optional[str] = None


class CustomerCreate(CustomerBase):
    """Schema for creating a customer."""
    pass


class CustomerUpdate(BaseModel):
    """Schema for updating a customer."""
    name: Optional[str] = Field(None, min_length=1)
    document: Optional[str] = None
    document_type: Optional[DocumentType] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(None, max_length=2)
    zip_code: Optional[str] = Field(None, max_length=10)
    observations: Optional[str] = None

    check_not_null = not_null("name")


class Customer(CustomerBase):
    """Schema for customer responses."""
    id: int
    loyalty_points: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
