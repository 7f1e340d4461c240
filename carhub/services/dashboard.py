"""
Dashboard reports.

Every report scans the matching service rows and reduces them in Python.
The pure reducers (``compute_stats``, ``build_revenue_series``,
``rank_top_services`` ...) take plain rows and a reference date so they can be
exercised without a database; the ``get_*`` coroutines load the rows and turn
any database error into an empty report, so a broken query never takes the
dashboard down with it.
"""
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from carhub.clock import week_start
from carhub.models.customer import Customer
from carhub.models.service import Service, ServiceStatus
from carhub.models.vehicle import Vehicle
from carhub.money import ZERO, parse_money, service_revenue, to_float
from carhub.schemas.dashboard import (
    CustomerAnalytics,
    DashboardStats,
    Distribution,
    RevenuePoint,
    ServiceAnalytics,
    ServiceSummary,
    StatusCount,
    TopCustomer,
    TopService,
    TopServiceType,
    VehicleAnalytics,
)

DEFAULT_SERIES_DAYS = 7
MAX_SERIES_DAYS = 366

AGE_RANGES = (
    ("New (0-2 years)", 0, 2),
    ("Semi-new (3-5 years)", 3, 5),
    ("Used (6-10 years)", 6, 10),
    ("Old (10+ years)", 11, None),
)


# Reducers

def compute_stats(services: Iterable, today: date) -> DashboardStats:
    """Reduce service rows into the headline dashboard numbers."""
    monday = week_start(today)
    daily_revenue = weekly_revenue = completed_revenue = predicted_revenue = ZERO
    daily_services = weekly_services = appointments = 0
    customers = set()

    for service in services:
        status = service.status
        scheduled = service.scheduled_date
        estimated = parse_money(service.estimated_value)

        if service.customer_id is not None:
            customers.add(service.customer_id)

        if status != ServiceStatus.CANCELLED:
            predicted_revenue += estimated
            if scheduled is not None:
                if scheduled == today:
                    daily_revenue += estimated
                    daily_services += 1
                if monday <= scheduled <= today:
                    weekly_revenue += estimated
                    weekly_services += 1

        if status == ServiceStatus.COMPLETED:
            completed_revenue += service_revenue(service.final_value, service.estimated_value)

        if status == ServiceStatus.SCHEDULED and scheduled is not None and scheduled > today:
            appointments += 1

    return DashboardStats(
        daily_revenue=to_float(daily_revenue),
        daily_services=daily_services,
        weekly_revenue=to_float(weekly_revenue),
        weekly_services=weekly_services,
        completed_revenue=to_float(completed_revenue),
        predicted_revenue=to_float(predicted_revenue),
        appointments=appointments,
        active_customers=len(customers),
    )


def series_days(today: date, days: int) -> List[date]:
    """The ``days`` calendar days ending at ``today``, oldest first."""
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def build_revenue_series(
    services: Iterable, today: date, days: int, realized: bool = False
) -> List[RevenuePoint]:
    """
    Day-bucketed revenue over the trailing ``days`` days.

    The estimated series counts every non-cancelled service; the realized
    series only completed ones. Days without services are zero.
    """
    buckets = {day: ZERO for day in series_days(today, days)}

    for service in services:
        scheduled = service.scheduled_date
        if scheduled not in buckets:
            continue
        if realized:
            if service.status != ServiceStatus.COMPLETED:
                continue
        elif service.status == ServiceStatus.CANCELLED:
            continue
        buckets[scheduled] += service_revenue(service.final_value, service.estimated_value)

    return [RevenuePoint(date=day, revenue=to_float(amount)) for day, amount in buckets.items()]


def rank_top_services(services: Iterable, limit: int = 5) -> List[TopService]:
    """Service types ranked by count, then revenue, both descending."""
    counts: Counter = Counter()
    revenue = defaultdict(lambda: ZERO)
    names = {}

    for service in services:
        if service.service_type_id is None or service.status == ServiceStatus.CANCELLED:
            continue
        type_id = service.service_type_id
        counts[type_id] += 1
        revenue[type_id] += service_revenue(service.final_value, service.estimated_value)
        if service.service_type is not None:
            names[type_id] = service.service_type.name

    ranked = sorted(counts, key=lambda type_id: (counts[type_id], revenue[type_id]), reverse=True)
    return [
        TopService(
            service_type_id=type_id,
            name=names.get(type_id, f"Service type {type_id}"),
            count=counts[type_id],
            revenue=to_float(revenue[type_id]),
        )
        for type_id in ranked[:limit]
    ]


def status_breakdown(services: Iterable) -> List[StatusCount]:
    counts = Counter(service.status for service in services)
    return [StatusCount(status=status, count=counts.get(status, 0)) for status in ServiceStatus]


def summarize(service: Service) -> ServiceSummary:
    return ServiceSummary(
        id=service.id,
        status=service.status,
        scheduled_date=service.scheduled_date,
        scheduled_time=service.scheduled_time,
        customer_name=service.customer.name if service.customer else None,
        vehicle=service.vehicle.description if service.vehicle else None,
        service_type=service.service_type.name if service.service_type else None,
        estimated_value=to_float(parse_money(service.estimated_value)),
    )


def _percentages(counts: Counter, total: int) -> List[Distribution]:
    return [
        Distribution(
            label=label,
            count=count,
            percentage=round(count * 100 / total, 2) if total else 0.0,
        )
        for label, count in counts.most_common()
    ]


def vehicle_distributions(vehicles: List, current_year: int) -> VehicleAnalytics:
    total = len(vehicles)
    brands = Counter(vehicle.brand for vehicle in vehicles)
    fuels = Counter(vehicle.fuel_type or "unknown" for vehicle in vehicles)

    ages = Counter({label: 0 for label, _, _ in AGE_RANGES})
    for vehicle in vehicles:
        age = max(current_year - vehicle.year, 0)
        for label, low, high in AGE_RANGES:
            if age >= low and (high is None or age <= high):
                ages[label] += 1
                break

    return VehicleAnalytics(
        total_vehicles=total,
        brand_distribution=_percentages(brands, total),
        fuel_distribution=_percentages(fuels, total),
        age_distribution=[
            Distribution(
                label=label,
                count=ages[label],
                percentage=round(ages[label] * 100 / total, 2) if total else 0.0,
            )
            for label, _, _ in AGE_RANGES
        ],
    )


def average_service_value(services: Iterable) -> float:
    """Mean value over services worth more than zero."""
    values = []
    for service in services:
        if service.status == ServiceStatus.COMPLETED:
            value = service_revenue(service.final_value, service.estimated_value)
        else:
            value = parse_money(service.estimated_value)
        if value > 0:
            values.append(value)
    if not values:
        return 0.0
    return to_float(sum(values, ZERO) / Decimal(len(values)))


# Loaders

async def load_services(
    db: AsyncSession,
    technician_id: Optional[int] = None,
    with_relations: bool = False,
) -> List[Service]:
    query = select(Service)
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)
    if with_relations:
        query = query.options(
            selectinload(Service.customer),
            selectinload(Service.vehicle),
            selectinload(Service.service_type),
        )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_dashboard_stats(
    db: AsyncSession, today: date, technician_id: Optional[int] = None
) -> DashboardStats:
    try:
        services = await load_services(db, technician_id)
    except SQLAlchemyError:
        logger.exception("Dashboard stats query failed; returning zeroed stats")
        await db.rollback()
        return DashboardStats()
    return compute_stats(services, today)


async def get_revenue_series(
    db: AsyncSession,
    today: date,
    days: int = 7,
    realized: bool = False,
    technician_id: Optional[int] = None,
) -> List[RevenuePoint]:
    if days < 1:
        days = DEFAULT_SERIES_DAYS
    days = min(days, MAX_SERIES_DAYS)
    try:
        services = await load_services(db, technician_id)
    except SQLAlchemyError:
        logger.exception("Revenue series query failed; returning zero-filled series")
        await db.rollback()
        services = []
    return build_revenue_series(services, today, days, realized=realized)


async def get_top_services(
    db: AsyncSession, limit: int = 5, technician_id: Optional[int] = None
) -> List[TopService]:
    try:
        services = await load_services(db, technician_id, with_relations=True)
    except SQLAlchemyError:
        logger.exception("Top services query failed")
        await db.rollback()
        return []
    return rank_top_services(services, limit)


async def get_service_status(
    db: AsyncSession, technician_id: Optional[int] = None
) -> List[StatusCount]:
    try:
        services = await load_services(db, technician_id)
    except SQLAlchemyError:
        logger.exception("Service status query failed")
        await db.rollback()
        services = []
    return status_breakdown(services)


async def get_recent_services(
    db: AsyncSession, limit: int = 5, technician_id: Optional[int] = None
) -> List[ServiceSummary]:
    query = (
        select(Service)
        .options(
            selectinload(Service.customer),
            selectinload(Service.vehicle),
            selectinload(Service.service_type),
        )
        .order_by(Service.created_at.desc(), Service.id.desc())
        .limit(limit)
    )
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)
    try:
        result = await db.execute(query)
    except SQLAlchemyError:
        logger.exception("Recent services query failed")
        await db.rollback()
        return []
    return [summarize(service) for service in result.scalars().all()]


async def get_upcoming_appointments(
    db: AsyncSession, today: date, limit: int = 5, technician_id: Optional[int] = None
) -> List[ServiceSummary]:
    query = (
        select(Service)
        .options(
            selectinload(Service.customer),
            selectinload(Service.vehicle),
            selectinload(Service.service_type),
        )
        .where(Service.status == ServiceStatus.SCHEDULED)
        .where(Service.scheduled_date.is_not(None))
        .where(Service.scheduled_date >= today)
        .order_by(Service.scheduled_date, Service.scheduled_time, Service.id)
        .limit(limit)
    )
    if technician_id is not None:
        query = query.where(Service.technician_id == technician_id)
    try:
        result = await db.execute(query)
    except SQLAlchemyError:
        logger.exception("Upcoming appointments query failed")
        await db.rollback()
        return []
    return [summarize(service) for service in result.scalars().all()]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def get_customer_analytics(db: AsyncSession, now: datetime) -> CustomerAnalytics:
    try:
        customers = list((await db.execute(select(Customer))).scalars().all())
        services = await load_services(db)
    except SQLAlchemyError:
        logger.exception("Customer analytics query failed")
        await db.rollback()
        return CustomerAnalytics()

    now = _as_utc(now)
    week_ago, month_ago = now - timedelta(days=7), now - timedelta(days=30)
    created = [_as_utc(customer.created_at) for customer in customers]

    per_customer = Counter(service.customer_id for service in services)
    names = {customer.id: customer.name for customer in customers}
    top = [
        TopCustomer(customer_id=customer_id, customer_name=names[customer_id], service_count=count)
        for customer_id, count in per_customer.most_common()
        if customer_id in names
    ][:5]

    return CustomerAnalytics(
        total=len(customers),
        new_this_week=sum(1 for stamp in created if stamp and stamp >= week_ago),
        new_this_month=sum(1 for stamp in created if stamp and stamp >= month_ago),
        top_customers=top,
    )


async def get_service_analytics(db: AsyncSession, today: date) -> ServiceAnalytics:
    try:
        services = await load_services(db, with_relations=True)
    except SQLAlchemyError:
        logger.exception("Service analytics query failed")
        await db.rollback()
        return ServiceAnalytics()

    week_ago, month_ago = today - timedelta(days=7), today - timedelta(days=30)
    dated = [service.scheduled_date for service in services if service.scheduled_date]

    per_type = Counter()
    type_names = {}
    for service in services:
        if service.service_type is not None:
            per_type[service.service_type_id] += 1
            type_names[service.service_type_id] = service.service_type.name

    return ServiceAnalytics(
        total=len(services),
        this_week=sum(1 for day in dated if day >= week_ago),
        this_month=sum(1 for day in dated if day >= month_ago),
        top_service_types=[
            TopServiceType(
                service_type_id=type_id,
                service_type_name=type_names[type_id],
                service_count=count,
            )
            for type_id, count in per_type.most_common(5)
        ],
        average_value=average_service_value(services),
    )


async def get_vehicle_analytics(db: AsyncSession, today: date) -> VehicleAnalytics:
    try:
        vehicles = list((await db.execute(select(Vehicle))).scalars().all())
    except SQLAlchemyError:
        logger.exception("Vehicle analytics query failed")
        await db.rollback()
        return VehicleAnalytics()
    return vehicle_distributions(vehicles, today.year)
