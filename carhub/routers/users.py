"""
Admin user and permission management routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List

from carhub.database import get_db
from carhub.models.photo import Photo
from carhub.models.user import User, UserRole
from carhub.schemas.user import PermissionsUpdate, User as UserSchema, UserCreate, UserUpdate
from carhub.auth import hash_password, require_admin

router = APIRouter(prefix="/admin/users", tags=["admin"])


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def ensure_username_free(db: AsyncSession, username: str, exclude_id: int = None):
    query = select(User.id).where(User.username == username)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already registered")


@router.get("", response_model=List[UserSchema])
async def get_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    result = await db.execute(select(User).order_by(User.created_at, User.id))
    return result.scalars().all()


@router.post("", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    await ensure_username_free(db, user.username)

    data = user.model_dump(exclude={"password"})
    db_user = User(**data, hashed_password=hash_password(user.password), is_active=True)
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)

    return db_user


@router.put("/{user_id}", response_model=UserSchema)
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    db_user = await get_user_or_404(db, user_id)

    update_data = user_update.model_dump(exclude_unset=True)
    if update_data.get("username"):
        await ensure_username_free(db, update_data["username"], exclude_id=user_id)

    password = update_data.pop("password", None)
    if password:
        db_user.hashed_password = hash_password(password)

    if db_user.id == current_user.id and (
        update_data.get("role") not in (None, UserRole.ADMIN) or update_data.get("is_active") is False
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot demote or deactivate themselves"
        )

    for field, value in update_data.items():
        setattr(db_user, field, value)

    await db.commit()
    await db.refresh(db_user)

    return db_user


@router.put("/{user_id}/permissions", response_model=UserSchema)
async def update_permissions(
    user_id: int,
    payload: PermissionsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Replace a user's permission list.
    """
    db_user = await get_user_or_404(db, user_id)
    db_user.permissions = sorted(set(payload.permissions))
    await db.commit()
    await db.refresh(db_user)
    return db_user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    db_user = await get_user_or_404(db, user_id)
    if db_user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete themselves")

    # Their photos and services stay, unattributed
    await db.execute(update(Photo).where(Photo.uploaded_by == user_id).values(uploaded_by=None))
    await db.delete(db_user)
    await db.commit()

    return None
