"""
Customer model for database.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from carhub.database import Base
import enum


class DocumentType(str, enum.Enum):
    """Brazilian taxpayer document kinds."""
    CPF = "cpf"
    CNPJ = "cnpj"


class Customer(Base):
    """Customer database model."""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    document = Column(String, unique=True, nullable=True, index=True)
    document_type = Column(SQLEnum(DocumentType), nullable=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True)
    observations = Column(Text, nullable=True)
    loyalty_points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    vehicles = relationship("Vehicle", back_populates="customer")
    services = relationship("Service", back_populates="customer")
