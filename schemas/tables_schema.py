from sqlmodel import SQLModel, Field
from typing import List, Optional
from datetime import datetime

from models.enums import TableKind, TableStatus


class TableBase(SQLModel):
    number: str = Field(max_length=10)
    name: str = Field(max_length=50)
    capacity: int = Field(gt=0)
    location: Optional[str] = Field(default=None, max_length=50)
    kind: TableKind = TableKind.TABLE
    description: Optional[str] = Field(default=None, max_length=255)
    active: bool = True

class TableCreate(TableBase):
    pass

class TableUpdate(SQLModel):
    number: Optional[str] = Field(default=None, max_length=10)
    name: Optional[str] = Field(default=None, max_length=50)
    capacity: Optional[int] = Field(default=None, gt=0)
    location: Optional[str] = Field(default=None, max_length=50)
    kind: Optional[TableKind] = None
    description: Optional[str] = Field(default=None, max_length=255)
    active: Optional[bool] = None

class TableStatusUpdate(SQLModel):
    """Schema para actualizar únicamente el estado de la mesa."""
    status: TableStatus = Field(..., description="El nuevo estado de la mesa.")
    reason: Optional[str] = Field(default=None, max_length=255)

class TableRead(TableBase):
    id: int
    status: TableStatus
    created_at: datetime
    updated_at: datetime

class TableListResponse(SQLModel):
    """
    Schema de respuesta para el endpoint de listar mesas, incluyendo paginación.
    """
    items: List[TableRead] = Field(description="Lista de mesas que cumplen con el filtro y paginación.")
    total_count: int = Field(description="Número total de mesas que coinciden con los filtros.")
    offset: int
    limit: int
    total_pages: int
    current_page: int

class TableStatusHistoryRead(SQLModel):
    id: int
    id_table: int
    previous_status: TableStatus
    new_status: TableStatus
    changed_by: Optional[str]
    reason: Optional[str]
    changed_at: datetime

class TableStats(SQLModel):
    total_tables: int
    by_kind: dict[str, int]
    by_status: dict[str, int]
    total_capacity: int
    average_capacity: float
