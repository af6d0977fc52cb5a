from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

from core.clock import utc_now
from models.enums import OrderStatus


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Claves Foráneas
    id_table: int = Field(foreign_key="tables.id", index=True)
    id_user_created: Optional[int] = Field(default=None, foreign_key="users.id")

    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    total_value: float = Field(default=0.0, ge=0, description="Valor total del pedido")
    notes: Optional[str] = Field(default=None, max_length=255)
    payment_method: Optional[str] = Field(default=None, max_length=30)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relaciones
    user_created: Optional["User"] = Relationship(back_populates="orders")
    table: "Table" = Relationship(back_populates="orders")
    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"order_by": "OrderItem.id", "cascade": "all, delete-orphan"},
    )


if TYPE_CHECKING:
    from models.tables import Table
    from models.order_items import OrderItem
    from models.users import User
