from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from models.enums import OrderStatus, Priority
from schemas.order_items_schema import OrderItemCreate, OrderItemRead

# --- Esquemas de Creación (Input) ---

# Crear orden con ítems (POST /api/orders); la lista puede venir vacía
class OrderCreate(SQLModel):
    id_table: int
    notes: Optional[str] = Field(default=None, max_length=255)
    items: list[OrderItemCreate] = []


# --- Esquemas de Actualización ---

class OrderStatusUpdate(SQLModel):
    status: OrderStatus


class CloseTableRequest(SQLModel):
    payment_method: str = Field(default="cash", max_length=30)
    tip: float = Field(default=0.0, ge=0)
    discount: float = Field(default=0.0, ge=0)


# --- Esquemas de Lectura ---

class OrderRead(SQLModel):
    id: int
    id_table: int
    id_user_created: Optional[int]
    status: OrderStatus
    total_value: float
    notes: Optional[str]
    payment_method: Optional[str]
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead] = []

    # Derivados en cada lectura (nunca se guardan)
    wait_minutes: int
    priority: Priority
    allowed_transitions: list[OrderStatus] = []


class OrderListResponse(SQLModel):
    data: list[OrderRead]
    total_count: int
    limit: int
    offset: int


class ItemStatusResponse(SQLModel):
    """Respuesta de actualizar un ítem; `order_completed` avisa que toda la orden quedó lista."""
    item: OrderItemRead
    order: OrderRead
    order_completed: bool


class CloseTableResponse(SQLModel):
    id_table: int
    orders_closed: int
    total_base: float
    tip: float
    discount: float
    total_final: float
    payment_method: str
    table_status: str


class KitchenSummary(SQLModel):
    counts: dict[str, int]
    total_active: int
