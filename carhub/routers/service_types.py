"""
Service type (catalog) routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from typing import List

from carhub.database import get_db
from carhub.models.service import Service, ServiceItem
from carhub.models.service_type import ServiceType
from carhub.models.user import User
from carhub.schemas.service_type import (
    ServiceType as ServiceTypeSchema, ServiceTypeCreate, ServiceTypeUpdate,
)
from carhub.auth import get_current_active_user, require_admin

router = APIRouter(prefix="/service-types", tags=["service-types"])


async def get_service_type_or_404(db: AsyncSession, service_type_id: int) -> ServiceType:
    service_type = await db.get(ServiceType, service_type_id)
    if not service_type:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service type not found"
        )
    return service_type


async def ensure_name_free(db: AsyncSession, name: str, exclude_id: int = None):
    query = select(ServiceType.id).where(ServiceType.name == name)
    if exclude_id is not None:
        query = query.where(ServiceType.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Service type name already exists"
        )


@router.get("", response_model=List[ServiceTypeSchema])
async def get_service_types(
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Get the service catalog ordered by name.
    """
    query = select(ServiceType).order_by(ServiceType.name)
    if active_only:
        query = query.where(ServiceType.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{service_type_id}", response_model=ServiceTypeSchema)
async def get_service_type(
    service_type_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await get_service_type_or_404(db, service_type_id)


@router.post("", response_model=ServiceTypeSchema, status_code=status.HTTP_201_CREATED)
async def create_service_type(
    service_type: ServiceTypeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Add a service type to the catalog.
    """
    await ensure_name_free(db, service_type.name)

    db_service_type = ServiceType(**service_type.model_dump())
    db.add(db_service_type)
    await db.commit()
    await db.refresh(db_service_type)

    return db_service_type


@router.put("/{service_type_id}", response_model=ServiceTypeSchema)
async def update_service_type(
    service_type_id: int,
    service_type_update: ServiceTypeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    db_service_type = await get_service_type_or_404(db, service_type_id)

    update_data = service_type_update.model_dump(exclude_unset=True)
    if update_data.get("name"):
        await ensure_name_free(db, update_data["name"], exclude_id=service_type_id)

    for field, value in update_data.items():
        setattr(db_service_type, field, value)

    await db.commit()
    await db.refresh(db_service_type)

    return db_service_type


@router.delete("/{service_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service_type(
    service_type_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Delete an unused service type. Types already referenced by services
    should be deactivated instead.
    """
    db_service_type = await get_service_type_or_404(db, service_type_id)

    used = (
        await db.execute(select(func.count(Service.id)).where(Service.service_type_id == service_type_id))
    ).scalar_one()
    used += (
        await db.execute(select(func.count(ServiceItem.id)).where(ServiceItem.service_type_id == service_type_id))
    ).scalar_one()
    if used:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Service type is used by {used} service(s); deactivate it instead"
        )

    await db.delete(db_service_type)
    await db.commit()

    return None
