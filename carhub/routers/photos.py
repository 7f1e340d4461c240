"""
Photo metadata routes.

Photos attached to a service follow the service's visibility: technicians
only reach photos of their own services.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, select
from typing import List, Optional

from carhub.database import get_db
from carhub.models.photo import Photo, PhotoEntity
from carhub.models.service import Service
from carhub.models.user import User
from carhub.routers.services import get_service_or_404
from carhub.schemas.photo import Photo as PhotoSchema, PhotoCreate, PhotoUpdate
from carhub.auth import get_current_active_user, technician_scope

router = APIRouter(prefix="/photos", tags=["photos"])


async def ensure_entity_visible(
    db: AsyncSession, entity_type: Optional[PhotoEntity], entity_id: Optional[int], current_user: User
):
    technician_id = technician_scope(current_user)
    if technician_id is not None and entity_type == PhotoEntity.SERVICE and entity_id is not None:
        await get_service_or_404(db, entity_id, technician_id)


async def get_photo_or_404(db: AsyncSession, photo_id: int, current_user: User) -> Photo:
    photo = await db.get(Photo, photo_id)
    if not photo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found"
        )
    await ensure_entity_visible(db, photo.entity_type, photo.entity_id, current_user)
    return photo


@router.get("", response_model=List[PhotoSchema])
async def get_photos(
    entity_type: Optional[PhotoEntity] = None,
    entity_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    List photos, optionally for one customer, vehicle or service.
    """
    await ensure_entity_visible(db, entity_type, entity_id, current_user)

    query = select(Photo).order_by(Photo.created_at.desc(), Photo.id.desc())
    if entity_type is not None:
        query = query.where(Photo.entity_type == entity_type)
    if entity_id is not None:
        query = query.where(Photo.entity_id == entity_id)

    technician_id = technician_scope(current_user)
    if technician_id is not None:
        own_services = select(Service.id).where(Service.technician_id == technician_id)
        query = query.where(
            or_(
                Photo.entity_type.is_(None),
                Photo.entity_type != PhotoEntity.SERVICE,
                Photo.entity_id.in_(own_services),
            )
        )

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{photo_id}", response_model=PhotoSchema)
async def get_photo(
    photo_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    return await get_photo_or_404(db, photo_id, current_user)


@router.post("", response_model=PhotoSchema, status_code=status.HTTP_201_CREATED)
async def create_photo(
    photo: PhotoCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    await ensure_entity_visible(db, photo.entity_type, photo.entity_id, current_user)

    db_photo = Photo(**photo.model_dump(), uploaded_by=current_user.id)
    db.add(db_photo)
    await db.commit()
    await db.refresh(db_photo)
    return db_photo


@router.put("/{photo_id}", response_model=PhotoSchema)
async def update_photo(
    photo_id: int,
    photo_update: PhotoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Re-attach or re-describe a photo; temporary photos get their entity here.
    """
    db_photo = await get_photo_or_404(db, photo_id, current_user)

    update_data = photo_update.model_dump(exclude_unset=True)
    await ensure_entity_visible(
        db,
        update_data.get("entity_type", db_photo.entity_type),
        update_data.get("entity_id", db_photo.entity_id),
        current_user,
    )

    for field, value in update_data.items():
        setattr(db_photo, field, value)
    await db.commit()
    await db.refresh(db_photo)
    return db_photo


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    photo_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    db_photo = await get_photo_or_404(db, photo_id, current_user)
    await db.delete(db_photo)
    await db.commit()
    return None
