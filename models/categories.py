from datetime import datetime
from typing import Optional, List
from sqlmodel import Field, SQLModel, Relationship

from core.clock import utc_now


class Category(SQLModel, table=True):
    """Modelo para 'categories' (del menú y de los platos especiales)."""
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50, nullable=False)
    description: Optional[str] = Field(default=None, max_length=100)

    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)
    deleted: bool = Field(default=False, nullable=False) # Campo Soft Delete (Estado)
    deleted_on: Optional[datetime] = Field(default=None) # Campo Soft Delete (Fecha)

    # Relaciones
    menu_items: List["MenuItem"] = Relationship(back_populates="category")
    special_dishes: List["SpecialDish"] = Relationship(back_populates="category")

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from models.menu_items import MenuItem
    from models.special_dishes import SpecialDish
