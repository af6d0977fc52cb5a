from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship

from core.clock import utc_now
from models.enums import CatalogKind, ItemStatus

if TYPE_CHECKING:
    from models.orders import Order


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    id_order: int = Field(foreign_key="orders.id", index=True)

    # Referencia etiquetada al catálogo: (menu, id) o (special, id)
    catalog_kind: CatalogKind = Field(default=CatalogKind.MENU)
    catalog_id: int

    quantity: int = Field(gt=0, description="Cantidad del ítem en el pedido")
    unit_price: float = Field(gt=0, description="Precio del ítem al momento del pedido")
    special_instructions: Optional[str] = Field(default=None, max_length=255)
    status: ItemStatus = Field(default=ItemStatus.PENDING)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relaciones
    order: Optional["Order"] = Relationship(back_populates="items")

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price
