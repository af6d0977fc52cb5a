from enum import Enum


class OrderStatus(str, Enum):
    """Estados de una orden. `delivered` y `cancelled` son terminales."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_ORDER_STATUSES


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Órdenes que aparecen en el panel de cocina
ACTIVE_ORDER_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)


class ItemStatus(str, Enum):
    """Estado de cada ítem; lo fija directamente el personal de cocina."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    OUT_OF_SERVICE = "out_of_service"


class TableKind(str, Enum):
    TABLE = "table"
    PICKUP = "pickup"
    BAR = "bar"


class Priority(str, Enum):
    NORMAL = "NORMAL"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class CatalogKind(str, Enum):
    """Espacio de nombres del catálogo al que apunta un ítem de orden."""
    MENU = "menu"
    SPECIAL = "special"


class UserRole(str, Enum):
    ADMIN = "admin"
    WAITER = "waiter"
    KITCHEN = "kitchen"
