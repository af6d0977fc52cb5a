from sqlmodel import Field, Relationship, SQLModel
from typing import Optional
from datetime import datetime

from core.clock import utc_now


class MenuItem(SQLModel, table=True):
    """Plato de la carta regular."""
    __tablename__ = "menu_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    id_category: Optional[int] = Field(default=None, foreign_key="categories.id")
    ingredients: Optional[str] = Field(default=None, max_length=255)
    estimated_time: int = Field(default=15, description="Tiempo estimado de preparación en minutos")
    price: float = Field(gt=0, description="Precio del ítem del menú")
    available: bool = Field(default=True, nullable=False)
    vegetarian: bool = Field(default=False, nullable=False)
    spicy: bool = Field(default=False, nullable=False)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
    deleted: bool = Field(default=False)
    deleted_on: Optional[datetime] = Field(default=None)

    # Relaciones
    category: Optional["Category"] = Relationship(back_populates="menu_items")

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from models.categories import Category
