"""
SQLAlchemy database models.
"""
from carhub.models.customer import Customer, DocumentType
from carhub.models.vehicle import Vehicle
from carhub.models.service_type import ServiceType
from carhub.models.service import Service, ServiceItem, ServiceStatus
from carhub.models.payment import Payment, PaymentMethod
from carhub.models.photo import Photo
from carhub.models.user import User, UserRole
from carhub.models.notification import PushSubscription, ServiceReminder

__all__ = [
    "Customer", "DocumentType", "Vehicle", "ServiceType", "Service", "ServiceItem",
    "ServiceStatus", "Payment", "PaymentMethod", "Photo", "User", "UserRole",
    "PushSubscription", "ServiceReminder",
]
