"""
Pydantic schemas for User and Authentication.
"""
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import List, Optional
from carhub.models.user import UserRole
from carhub.schemas.validators import not_null


class UserBase(BaseModel):
    """Base user schema with common fields."""
    username: str = Field(min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.TECHNICIAN


class UserCreate(UserBase):
    """Schema for creating a user."""
    password: str = Field(min_length=6)
    permissions: List[str] = []


class UserUpdate(BaseModel):
    """Schema for updating a user."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    password: Optional[str] = Field(None, min_length=6)
    is_active: Optional[bool] = None

    check_not_null = not_null("username", "role", "is_active")


class PermissionsUpdate(BaseModel):
    """Schema for replacing a user's permission list."""
    permissions: List[str]


class User(UserBase):
    """Schema for user responses."""
    id: int
    is_active: bool = True
    permissions: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    """Schema for authentication token."""
    access_token: str
    token_type: str


class LoginRequest(BaseModel):
    """Schema for login request."""
    username: str
    password: str
