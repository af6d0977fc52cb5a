"""
Reglas puras del ciclo de vida de una orden.

- Agregación: el estado de la orden se deriva de los estados de sus ítems.
- Prioridad: el nivel de urgencia se deriva del tiempo de espera.
- Transiciones: qué cambios explícitos de estado admite cada estado.

Nada aquí toca la base de datos; el motor (`order_lifecycle`) las compone.
"""
import logging
import math
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Optional, Union

from core.clock import as_utc, utc_now
from models.enums import ItemStatus, OrderStatus, Priority

logger = logging.getLogger(__name__)

# Umbrales de prioridad en minutos (estrictamente mayor que)
MEDIUM_PRIORITY_AFTER_MINUTES = 15
HIGH_PRIORITY_AFTER_MINUTES = 30

_DONE_ITEM_STATUSES = frozenset({ItemStatus.READY, ItemStatus.DELIVERED})

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.PREPARING}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def coerce_item_status(value: Union[ItemStatus, str, None]) -> ItemStatus:
    """Convierte un valor crudo a `ItemStatus`; desconocidos y NULL cuentan como pendiente."""
    if isinstance(value, ItemStatus):
        return value
    try:
        return ItemStatus(value)
    except ValueError:
        logger.warning("Estado de ítem desconocido %r; se trata como 'pending'", value)
        return ItemStatus.PENDING


def aggregate_item_statuses(statuses: Iterable[Union[ItemStatus, str, None]]) -> OrderStatus:
    """
    Deriva el estado de la orden a partir de los estados de sus ítems.

    1. Todos `ready`/`delivered` -> `ready`
    2. Alguno `preparing` -> `preparing`
    3. En otro caso -> `pending`

    Una orden sin ítems queda `pending`. Nunca devuelve un estado terminal.
    """
    normalized = [coerce_item_status(s) for s in statuses]
    if not normalized:
        return OrderStatus.PENDING
    if all(s in _DONE_ITEM_STATUSES for s in normalized):
        return OrderStatus.READY
    if any(s == ItemStatus.PREPARING for s in normalized):
        return OrderStatus.PREPARING
    return OrderStatus.PENDING


def compute_wait_minutes(created_at: datetime, now: Optional[datetime] = None) -> int:
    """Minutos completos transcurridos desde `created_at`; nunca negativo."""
    now = as_utc(now) if now is not None else utc_now()
    elapsed = (now - as_utc(created_at)).total_seconds()
    if elapsed <= 0:
        return 0
    return math.floor(elapsed / 60)


def compute_priority(wait_minutes: int) -> Priority:
    if wait_minutes > HIGH_PRIORITY_AFTER_MINUTES:
        return Priority.HIGH
    if wait_minutes > MEDIUM_PRIORITY_AFTER_MINUTES:
        return Priority.MEDIUM
    return Priority.NORMAL


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def allowed_transitions(current: OrderStatus) -> list:
    """Transiciones explícitas disponibles, en orden estable para la UI."""
    return sorted(TRANSITIONS.get(current, frozenset()), key=lambda s: list(OrderStatus).index(s))
