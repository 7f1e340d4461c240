"""
Payment model for database.
"""
from sqlalchemy import Column, Integer, Text, Numeric, Date, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from carhub.database import Base
import enum


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""
    PIX = "pix"
    CASH = "cash"
    CHECK = "check"
    CARD = "card"


class Payment(Base):
    """Historical record of an amount paid against a service."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    payment_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    service = relationship("Service", back_populates="payments")
