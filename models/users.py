from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

from core.clock import utc_now
from models.enums import UserRole


class User(SQLModel, table=True):
    """Modelo para 'users' (empleados del restaurante)."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, nullable=False)
    username: str = Field(max_length=50, unique=True, nullable=False)
    password: str = Field(max_length=100, nullable=False)
    email: Optional[str] = Field(default=None, max_length=100)
    role: UserRole = Field(default=UserRole.WAITER)
    active: bool = Field(default=True, nullable=False)

    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)
    last_connection: Optional[datetime] = Field(default=None)
    deleted: bool = Field(default=False, nullable=False)
    deleted_on: Optional[datetime] = Field(default=None)

    # Relaciones
    tokens: List["Token"] = Relationship(back_populates="user")
    orders: List["Order"] = Relationship(back_populates="user_created")


if TYPE_CHECKING:
    from models.tokens import Token
    from models.orders import Order
