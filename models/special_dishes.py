from datetime import date, datetime
from typing import Optional, TYPE_CHECKING
from sqlmodel import Field, Relationship, SQLModel

from core.clock import utc_now

if TYPE_CHECKING:
    from models.categories import Category


class SpecialDish(SQLModel, table=True):
    """
    Plato especial (fuera de carta). Vive en su propio catálogo: un ítem de orden
    lo referencia con `catalog_kind = 'special'`.
    """
    __tablename__ = "special_dishes"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    description: Optional[str] = Field(default=None, max_length=255)
    id_category: Optional[int] = Field(default=None, foreign_key="categories.id")
    ingredients: Optional[str] = Field(default=None, max_length=255)
    estimated_time: int = Field(default=20, description="Tiempo estimado de preparación en minutos")
    price: float = Field(gt=0)
    available: bool = Field(default=True, nullable=False)
    vegetarian: bool = Field(default=False, nullable=False)
    spicy: bool = Field(default=False, nullable=False)

    # Ventana de vigencia (opcional en ambos extremos)
    starts_on: Optional[date] = Field(default=None)
    ends_on: Optional[date] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
    deleted: bool = Field(default=False)
    deleted_on: Optional[datetime] = Field(default=None)

    # Relaciones
    category: Optional["Category"] = Relationship(back_populates="special_dishes")

    def is_current(self, today: date) -> bool:
        """True si `today` cae dentro de la ventana de vigencia."""
        if self.starts_on and today < self.starts_on:
            return False
        if self.ends_on and today > self.ends_on:
            return False
        return True
