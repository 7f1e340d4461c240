"""
Pydantic schemas for request/response validation.
"""
from carhub.schemas.customer import CustomerBase, CustomerCreate, CustomerUpdate, Customer
from carhub.schemas.vehicle import VehicleBase, VehicleCreate, VehicleUpdate, Vehicle
from carhub.schemas.service_type import ServiceTypeCreate, ServiceTypeUpdate, ServiceType
from carhub.schemas.service import ServiceBase, ServiceCreate, ServiceUpdate, Service, ServiceItem
from carhub.schemas.payment import PaymentCreate, Payment
from carhub.schemas.photo import PhotoCreate, PhotoUpdate, Photo
from carhub.schemas.user import UserBase, UserCreate, UserUpdate, User, Token

__all__ = [
    "CustomerBase", "CustomerCreate", "CustomerUpdate", "Customer",
    "VehicleBase", "VehicleCreate", "VehicleUpdate", "Vehicle",
    "ServiceTypeCreate", "ServiceTypeUpdate", "ServiceType",
    "ServiceBase", "ServiceCreate", "ServiceUpdate", "Service", "ServiceItem",
    "PaymentCreate", "Payment",
    "PhotoCreate", "PhotoUpdate", "Photo",
    "UserBase", "UserCreate", "UserUpdate", "User", "Token",
]
