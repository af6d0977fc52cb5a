from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel

from models.enums import CatalogKind, ItemStatus


class OrderItemCreate(SQLModel):
    catalog_kind: CatalogKind = Field(default=CatalogKind.MENU, description="Catálogo: 'menu' o 'special'")
    catalog_id: int
    quantity: int = Field(gt=0, description="Cantidad del ítem en el pedido")
    special_instructions: Optional[str] = Field(default=None, max_length=255)


class OrderItemStatusUpdate(SQLModel):
    status: ItemStatus


class OrderItemRead(SQLModel):
    id: int
    id_order: int
    catalog_kind: CatalogKind
    catalog_id: int
    name: str
    quantity: int
    unit_price: float
    subtotal: float
    special_instructions: Optional[str]
    status: ItemStatus
    created_at: datetime
    updated_at: datetime


class OrderItemsAdd(SQLModel):
    items: list[OrderItemCreate] = Field(min_length=1)
