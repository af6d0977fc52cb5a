from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

from core.clock import utc_now
from models.enums import TableKind, TableStatus


class Table(SQLModel, table=True):
    """Mesa, posición de barra o punto de recogida (pickup)."""
    __tablename__ = "tables"

    id: Optional[int] = Field(default=None, primary_key=True)
    number: str = Field(max_length=10, unique=True, nullable=False)
    name: str = Field(max_length=50, nullable=False)
    capacity: int = Field(nullable=False)
    location: Optional[str] = Field(default=None, max_length=50)
    kind: TableKind = Field(default=TableKind.TABLE)
    status: TableStatus = Field(default=TableStatus.AVAILABLE)
    description: Optional[str] = Field(default=None, max_length=255)
    active: bool = Field(default=True, nullable=False)

    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)
    deleted: bool = Field(default=False, nullable=False)
    deleted_on: Optional[datetime] = Field(default=None)

    # Relaciones
    orders: List["Order"] = Relationship(back_populates="table")
    history: List["TableStatusHistory"] = Relationship(back_populates="table")


class TableStatusHistory(SQLModel, table=True):
    """Bitácora de cambios de estado de una mesa."""
    __tablename__ = "table_status_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    id_table: int = Field(foreign_key="tables.id", index=True)
    previous_status: TableStatus
    new_status: TableStatus
    changed_by: Optional[str] = Field(default=None, max_length=50)
    reason: Optional[str] = Field(default=None, max_length=255)
    changed_at: datetime = Field(default_factory=utc_now)

    table: Optional[Table] = Relationship(back_populates="history")


if TYPE_CHECKING:
    from models.orders import Order
