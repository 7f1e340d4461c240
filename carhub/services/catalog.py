"""
Startup seeding: default service catalog and the first admin account.
"""
from decimal import Decimal

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from carhub.auth import hash_password
from carhub.models.service_type import ServiceType
from carhub.models.user import User, UserRole

DEFAULT_SERVICE_TYPES = [
    {"name": "Oil Change", "description": "Engine oil change", "default_price": "80.00",
     "is_recurring": True, "interval_months": 6, "loyalty_points": 10},
    {"name": "Alignment", "description": "Wheel alignment and balancing", "default_price": "120.00",
     "is_recurring": True, "interval_months": 12, "loyalty_points": 15},
    {"name": "Full Inspection", "description": "Complete vehicle inspection", "default_price": "300.00",
     "is_recurring": True, "interval_months": 12, "loyalty_points": 30},
    {"name": "Tire Replacement", "description": "Tire replacement", "default_price": "200.00",
     "is_recurring": False, "loyalty_points": 20},
    {"name": "Wash", "description": "Full wash", "default_price": "30.00",
     "is_recurring": False, "loyalty_points": 5},
    {"name": "Brakes", "description": "Brake system maintenance", "default_price": "150.00",
     "is_recurring": True, "interval_months": 18, "loyalty_points": 18},
    {"name": "Sanitization", "description": "Deep cleaning and sanitization", "default_price": "100.00",
     "is_recurring": True, "interval_months": 1, "loyalty_points": 8},
    {"name": "Repair", "description": "Repair and maintenance work", "default_price": "180.00",
     "is_recurring": False, "loyalty_points": 15},
    {"name": "Other", "description": "Other services", "default_price": "50.00",
     "is_recurring": False, "loyalty_points": 5},
]


async def seed_service_types(db: AsyncSession) -> int:
    """Insert catalog entries whose names are missing. Returns how many were added."""
    existing = set((await db.execute(select(ServiceType.name))).scalars().all())
    added = 0
    for entry in DEFAULT_SERVICE_TYPES:
        if entry["name"] in existing:
            continue
        db.add(ServiceType(**{**entry, "default_price": Decimal(entry["default_price"])}))
        added += 1
    await db.commit()
    if added:
        logger.info("Added {} default service types", added)
    return added


async def seed_admin(db: AsyncSession, username: str, password: str) -> bool:
    """Create the initial admin account unless an admin or that username exists."""
    result = await db.execute(
        select(User.id).where(or_(User.role == UserRole.ADMIN, User.username == username)).limit(1)
    )
    if result.scalar_one_or_none() is not None:
        return False
    db.add(
        User(
            username=username,
            hashed_password=hash_password(password),
            role=UserRole.ADMIN,
            is_active=True,
            permissions=[],
        )
    )
    await db.commit()
    logger.info("Created initial admin user '{}'", username)
    return True
