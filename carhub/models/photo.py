"""
Photo metadata model for database.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from carhub.database import Base
import enum


class PhotoEntity(str, enum.Enum):
    CUSTOMER = "customer"
    VEHICLE = "vehicle"
    SERVICE = "service"


class PhotoCategory(str, enum.Enum):
    VEHICLE = "vehicle"
    SERVICE = "service"
    DAMAGE = "damage"
    BEFORE = "before"
    AFTER = "after"
    OTHER = "other"


class Photo(Base):
    """Image attached to a customer, vehicle or service."""

    __tablename__ = "photos"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(SQLEnum(PhotoEntity), nullable=True)
    entity_id = Column(Integer, nullable=True, index=True)
    category = Column(SQLEnum(PhotoCategory), default=PhotoCategory.OTHER, nullable=False)
    file_name = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    url = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
