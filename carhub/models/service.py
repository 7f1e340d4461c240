"""
Service (work order) model for database.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Date, Time, DateTime, ForeignKey,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from carhub.database import Base
import enum


class ServiceStatus(str, enum.Enum):
    """Service status enumeration."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that still hold a vehicle in the workshop
OPEN_STATUSES = (ServiceStatus.SCHEDULED, ServiceStatus.IN_PROGRESS)

# Allowed lifecycle moves; staying in the same status is always allowed
STATUS_TRANSITIONS = {
    ServiceStatus.SCHEDULED: {
        ServiceStatus.IN_PROGRESS, ServiceStatus.COMPLETED, ServiceStatus.CANCELLED,
    },
    ServiceStatus.IN_PROGRESS: {
        ServiceStatus.SCHEDULED, ServiceStatus.COMPLETED, ServiceStatus.CANCELLED,
    },
    ServiceStatus.COMPLETED: set(),
    ServiceStatus.CANCELLED: {ServiceStatus.SCHEDULED},
}


class Service(Base):
    """Service database model."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    service_type_id = Column(Integer, ForeignKey("service_types.id"), nullable=True)
    technician_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(SQLEnum(ServiceStatus), default=ServiceStatus.SCHEDULED, nullable=False)
    scheduled_date = Column(Date, nullable=True, index=True)
    scheduled_time = Column(Time, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    estimated_value = Column(Numeric(10, 2), nullable=True)
    final_value = Column(Numeric(10, 2), nullable=True)
    amount_paid = Column(Numeric(10, 2), default=0, nullable=False)
    pix_paid = Column(Numeric(10, 2), default=0, nullable=False)
    cash_paid = Column(Numeric(10, 2), default=0, nullable=False)
    check_paid = Column(Numeric(10, 2), default=0, nullable=False)
    card_paid = Column(Numeric(10, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    customer = relationship("Customer", back_populates="services")
    vehicle = relationship("Vehicle", back_populates="services")
    service_type = relationship("ServiceType")
    technician = relationship("User", back_populates="services")
    items = relationship("ServiceItem", back_populates="service", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="service", cascade="all, delete-orphan")
    reminders = relationship("ServiceReminder", back_populates="service", cascade="all, delete-orphan")

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


class ServiceItem(Base):
    """Line item attached to a service."""

    __tablename__ = "service_items"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    service_type_id = Column(Integer, ForeignKey("service_types.id"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    service = relationship("Service", back_populates="items")
    service_type = relationship("ServiceType")
