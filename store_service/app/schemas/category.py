import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryBase(BaseModel):
    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=255)
    description: Optional[str] = None


class CategoryCreate(CategoryBase):
    parent_id: Optional[uuid.UUID] = None
    is_active: bool = True


class CategoryUpdate(CategoryBase):
    pass


class CategoryParentUpdate(BaseModel):
    parent_id: Optional[uuid.UUID] = None


class CategoryStatusUpdate(BaseModel):
    is_active: bool


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    level: int
    path: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryHierarchyRebuildResponse(BaseModel):
    categories_checked: int
    categories_repaired: int
