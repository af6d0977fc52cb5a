from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class MenuItemBase(SQLModel):
    name: str = Field(max_length=100)
    id_category: Optional[int] = None
    ingredients: Optional[str] = Field(default=None, max_length=255)
    estimated_time: int = Field(default=15, ge=0)
    price: float = Field(gt=0)
    available: bool = True
    vegetarian: bool = False
    spicy: bool = False


class MenuItemCreate(MenuItemBase):
    pass

class MenuItemUpdate(SQLModel):
    name: Optional[str] = Field(default=None, max_length=100)
    id_category: Optional[int] = None
    ingredients: Optional[str] = Field(default=None, max_length=255)
    estimated_time: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, gt=0)
    available: Optional[bool] = None
    vegetarian: Optional[bool] = None
    spicy: Optional[bool] = None

class MenuItemRead(MenuItemBase):
    id: int
    created_at: datetime
    updated_at: datetime
    deleted: bool
    deleted_on: Optional[datetime]

# Esquema para listar con paginación
class MenuItemListResponse(SQLModel):
    items: list[MenuItemRead]
    total_items: int
    page: int
    page_size: int
    total_pages: int
