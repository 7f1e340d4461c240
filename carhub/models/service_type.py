"""
Service type (catalog) model for database.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from carhub.database import Base


class ServiceType(Base):
    """Catalog entry describing a kind of work the workshop sells."""

    __tablename__ = "service_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    default_price = Column(Numeric(10, 2), default=0, nullable=False)
    estimated_duration = Column(Integer, nullable=True)  # minutes
    is_active = Column(Boolean, default=True, nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    interval_months = Column(Integer, nullable=True)
    loyalty_points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
