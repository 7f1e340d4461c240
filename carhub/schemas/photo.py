"""
Pydantic schemas for Photo metadata.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
from carhub.models.photo import PhotoCategory, PhotoEntity
from carhub.schemas.validators import not_null


class PhotoBase(BaseModel):
    entity_type: Optional[PhotoEntity] = None
    entity_id: Optional[int] = None
    category: PhotoCategory = PhotoCategory.OTHER
    file_name: str
    original_name: str
    mime_type: str = Field(pattern=r"^image/")
    file_size: int = Field(ge=0, le=10 * 1024 * 1024)
    url: str
    description: Optional[str] = None


class PhotoCreate(PhotoBase):
    pass


class PhotoUpdate(BaseModel):
    entity_type: Optional[PhotoEntity] = None
    entity_id: Optional[int] = None
    category: Optional[PhotoCategory] = None
    description: Optional[str] = None

    check_not_null = not_null("category")


class Photo(PhotoBase):
    id: int
    uploaded_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
