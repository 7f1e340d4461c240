"""
Dashboard report routes.

Numbers are scoped to the technician's own services unless the caller is an
admin. Report failures come back as zeroed data, never as a 500.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from carhub import clock
from carhub.database import get_db
from carhub.models.user import User
from carhub.schemas.dashboard import (
    DashboardAnalytics, DashboardStats, RevenuePoint, ServiceSummary, StatusCount, TopService,
)
from carhub.services import dashboard
from carhub.auth import get_current_active_user, technician_scope

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Headline numbers: daily, weekly, completed and predicted revenue,
    appointment count and active customers.
    """
    return await dashboard.get_dashboard_stats(db, clock.today(), technician_scope(current_user))


@router.get("/revenue", response_model=List[RevenuePoint])
async def get_revenue(
    days: int = dashboard.DEFAULT_SERIES_DAYS,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Estimated revenue per day over the trailing ``days`` days. Non-positive
    values fall back to 7 and anything over 366 is capped.
    """
    return await dashboard.get_revenue_series(
        db, clock.today(), days, realized=False, technician_id=technician_scope(current_user)
    )


@router.get("/realized-revenue", response_model=List[RevenuePoint])
async def get_realized_revenue(
    days: int = dashboard.DEFAULT_SERIES_DAYS,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Revenue from completed services per day over the trailing ``days`` days.
    """
    return await dashboard.get_revenue_series(
        db, clock.today(), days, realized=True, technician_id=technician_scope(current_user)
    )


@router.get("/top-services", response_model=List[TopService])
async def get_top_services(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await dashboard.get_top_services(db, limit, technician_scope(current_user))


@router.get("/service-status", response_model=List[StatusCount])
async def get_service_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await dashboard.get_service_status(db, technician_scope(current_user))


@router.get("/recent-services", response_model=List[ServiceSummary])
async def get_recent_services(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await dashboard.get_recent_services(db, limit, technician_scope(current_user))


@router.get("/upcoming-appointments", response_model=List[ServiceSummary])
async def get_upcoming_appointments(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await dashboard.get_upcoming_appointments(
        db, clock.today(), limit, technician_scope(current_user)
    )


@router.get("/analytics", response_model=DashboardAnalytics)
async def get_analytics(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Customer, service and vehicle analytics for the reports page.
    """
    today = clock.today()
    return DashboardAnalytics(
        customers=await dashboard.get_customer_analytics(db, clock.now_local()),
        services=await dashboard.get_service_analytics(db, today),
        vehicles=await dashboard.get_vehicle_analytics(db, today),
    )
