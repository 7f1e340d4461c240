"""
Pydantic schemas for dashboard reports.
"""
from pydantic import BaseModel
import datetime
from typing import List, Optional
from carhub.models.service import ServiceStatus


class DashboardStats(BaseModel):
    daily_revenue: float = 0.0
    daily_services: int = 0
    weekly_revenue: float = 0.0
    weekly_services: int = 0
    completed_revenue: float = 0.0
    predicted_revenue: float = 0.0
    appointments: int = 0
    active_customers: int = 0


class RevenuePoint(BaseModel):
    date: datetime.date
    revenue: float


class TopService(BaseModel):
    service_type_id: int
    name: str
    count: int
    revenue: float


class StatusCount(BaseModel):
    status: ServiceStatus
    count: int


class ServiceSummary(BaseModel):
    """Row for the recent-services and upcoming-appointments lists."""
    id: int
    status: ServiceStatus
    scheduled_date: Optional[datetime.date] = None
    scheduled_time: Optional[datetime.time] = None
    customer_name: Optional[str] = None
    vehicle: Optional[str] = None
    service_type: Optional[str] = None
    estimated_value: float = 0.0


class TopCustomer(BaseModel):
    customer_id: int
    customer_name: str
    service_count: int


class CustomerAnalytics(BaseModel):
    total: int = 0
    new_this_week: int = 0
    new_this_month: int = 0
    top_customers: List[TopCustomer] = []


class TopServiceType(BaseModel):
    service_type_id: int
    service_type_name: str
    service_count: int


class ServiceAnalytics(BaseModel):
    total: int = 0
    this_week: int = 0
    this_month: int = 0
    top_service_types: List[TopServiceType] = []
    average_value: float = 0.0


class Distribution(BaseModel):
    label: str
    count: int
    percentage: float


class VehicleAnalytics(BaseModel):
    total_vehicles: int = 0
    brand_distribution: List[Distribution] = []
    fuel_distribution: List[Distribution] = []
    age_distribution: List[Distribution] = []


class DashboardAnalytics(BaseModel):
    customers: CustomerAnalytics
    services: ServiceAnalytics
    vehicles: VehicleAnalytics
