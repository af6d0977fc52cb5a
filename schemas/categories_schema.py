from datetime import datetime
from typing import List, Optional

from sqlmodel import SQLModel, Field


class CategoryCreate(SQLModel):
    name: str = Field(max_length=50)
    description: Optional[str] = Field(default=None, max_length=100)


class CategoryUpdate(SQLModel):
    name: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=100)


class CategoryRead(CategoryCreate):
    """Categoría con el número de platos de carta y especiales vigentes que agrupa."""
    id: int
    menu_items_count: int = 0
    specials_count: int = 0
    created_at: datetime
    updated_at: datetime


class CategoryListResponse(SQLModel):
    data: List[CategoryRead]
    total_count: int
    limit: int
    offset: int
