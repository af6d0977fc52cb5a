"""
Motor del ciclo de vida de órdenes.

Único componente con efectos: persiste órdenes e ítems, aplica el estado derivado
tras cada cambio de ítem y libera/ocupa mesas. Cada operación es atómica: hace
commit al final o rollback si algo falla.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, func, select

from core.clock import utc_now
from core.config import settings
from models.enums import (
    ACTIVE_ORDER_STATUSES,
    TERMINAL_ORDER_STATUSES,
    ItemStatus,
    OrderStatus,
    TableStatus,
)
from models.order_items import OrderItem
from models.orders import Order
from models.tables import Table
from schemas.order_items_schema import OrderItemCreate, OrderItemRead
from schemas.orders_schema import OrderRead
from services.catalog import resolve_names, resolve_price
from services.errors import (
    InvalidState,
    InvalidStatus,
    ItemNotFound,
    NoOpenOrders,
    OrderError,
    OrderNotFound,
    TableNotFound,
)
from services.order_rules import (
    aggregate_item_statuses,
    allowed_transitions,
    compute_priority,
    compute_wait_minutes,
)
from services.tables import change_table_status

logger = logging.getLogger(__name__)


@dataclass
class ItemStatusChange:
    order: Order
    item: OrderItem
    order_completed: bool


@dataclass
class TableClosing:
    table: Table
    orders: List[Order]
    total_base: float
    tip: float
    discount: float
    payment_method: str

    @property
    def total_final(self) -> float:
        return self.total_base + self.tip - self.discount


def describe_orders(session: Session, orders: Iterable[Order], now: Optional[datetime] = None) -> List[OrderRead]:
    """Arma la vista de lectura: nombres de catálogo, espera y prioridad calculadas ahora."""
    orders = list(orders)
    now = now or utc_now()
    names = resolve_names(
        session,
        ((item.catalog_kind, item.catalog_id) for order in orders for item in order.items),
    )

    result = []
    for order in orders:
        wait = compute_wait_minutes(order.created_at, now)
        items = [
            OrderItemRead(
                id=item.id,
                id_order=item.id_order,
                catalog_kind=item.catalog_kind,
                catalog_id=item.catalog_id,
                name=names.get((item.catalog_kind, item.catalog_id), "Item desconocido"),
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                special_instructions=item.special_instructions,
                status=item.status,
                created_at=item.created_at,
                updated_at=item.updated_at,
            )
            for item in order.items
        ]
        result.append(OrderRead(
            id=order.id,
            id_table=order.id_table,
            id_user_created=order.id_user_created,
            status=order.status,
            total_value=order.total_value,
            notes=order.notes,
            payment_method=order.payment_method,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=items,
            wait_minutes=wait,
            priority=compute_priority(wait),
            allowed_transitions=allowed_transitions(order.status),
        ))
    return result


def _coerce(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidStatus(f"Estado inválido '{value}'. Permitidos: {', '.join(s.value for s in enum_cls)}")


class OrderLifecycle:
    """Operaciones de estado sobre órdenes, ligadas a una sesión (una petición)."""

    def __init__(self, session: Session, release_table_on_close: Optional[bool] = None, actor: Optional[str] = None):
        self.session = session
        self.release_table_on_close = (
            settings.RELEASE_TABLE_ON_CLOSE if release_table_on_close is None else release_table_on_close
        )
        self.actor = actor

    # ------------------------------------------------------------------
    # Utilidades internas
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _get_table(self, id_table: int) -> Table:
        table = self.session.get(Table, id_table)
        if not table or table.deleted or not table.active:
            raise TableNotFound(f"Mesa {id_table} no encontrada o inactiva.")
        return table

    def _lock_order(self, order_id: int) -> Order:
        # FOR UPDATE serializa las actualizaciones concurrentes sobre la misma orden
        order = self.session.exec(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .with_for_update()
        ).first()
        if not order:
            raise OrderNotFound(f"Orden {order_id} no encontrada.")
        return order

    def _ensure_mutable(self, order: Order) -> None:
        if order.status in TERMINAL_ORDER_STATUSES:
            raise InvalidState(f"La orden {order.id} está '{order.status.value}' y no admite cambios.")

    def _build_items(self, items: Iterable[OrderItemCreate], now: datetime) -> List[OrderItem]:
        built = []
        for item_data in items:
            unit_price = resolve_price(self.session, item_data.catalog_kind, item_data.catalog_id)
            built.append(OrderItem(
                catalog_kind=item_data.catalog_kind,
                catalog_id=item_data.catalog_id,
                quantity=item_data.quantity,
                unit_price=unit_price,
                special_instructions=item_data.special_instructions,
                status=ItemStatus.PENDING,
                created_at=now,
                updated_at=now,
            ))
        return built

    def _set_status(self, order: Order, new_status: OrderStatus, now: datetime) -> None:
        previous = order.status
        order.status = new_status
        order.updated_at = now
        self.session.add(order)
        logger.info("Orden %s: %s -> %s", order.id, previous.value, new_status.value)

    def _apply_derived_status(self, order: Order, now: datetime) -> bool:
        """Recalcula el estado desde los ítems. True si la orden acaba de quedar lista."""
        derived = aggregate_item_statuses(item.status for item in order.items)
        current = order.status
        if derived == current:
            return False
        # La confirmación del personal no se pierde mientras nada se esté preparando
        if derived == OrderStatus.PENDING and current == OrderStatus.CONFIRMED:
            return False
        self._set_status(order, derived, now)
        if derived == OrderStatus.READY:
            logger.info("Orden %s completada: todos los ítems listos", order.id)
            return True
        return False

    def _force_items(self, order: Order, status: ItemStatus, now: datetime, skip: Iterable[ItemStatus] = ()) -> None:
        skip = set(skip)
        for item in order.items:
            if item.status in skip or item.status == status:
                continue
            item.status = status
            item.updated_at = now
            self.session.add(item)

    def _has_other_open_orders(self, id_table: int, exclude_ids: Iterable[int]) -> bool:
        count = self.session.exec(
            select(func.count(Order.id)).where(
                Order.id_table == id_table,
                col(Order.status).not_in(list(TERMINAL_ORDER_STATUSES)),
                col(Order.id).not_in(list(exclude_ids)),
            )
        ).one()
        return count > 0

    def _release_table(self, id_table: int, closed_ids: Iterable[int], reason: str) -> None:
        if not self.release_table_on_close:
            return
        closed_ids = list(closed_ids)
        if self._has_other_open_orders(id_table, closed_ids):
            return
        table = self.session.get(Table, id_table)
        if table is not None and table.status == TableStatus.OCCUPIED:
            change_table_status(self.session, table, TableStatus.AVAILABLE, self.actor, reason)

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    def create_order(
        self,
        id_table: int,
        items: Iterable[OrderItemCreate] = (),
        notes: Optional[str] = None,
        id_user_created: Optional[int] = None,
    ) -> Order:
        """Crea la orden en `pending` con precios tomados del catálogo en este momento."""
        with self._transaction():
            table = self._get_table(id_table)
            now = utc_now()
            order_items = self._build_items(items, now)

            order = Order(
                id_table=table.id,
                id_user_created=id_user_created,
                status=OrderStatus.PENDING,
                notes=notes,
                total_value=sum(item.subtotal for item in order_items),
                created_at=now,
                updated_at=now,
            )
            order.items = order_items
            self.session.add(order)

            if table.status == TableStatus.AVAILABLE:
                change_table_status(self.session, table, TableStatus.OCCUPIED, self.actor, "Nueva orden")

        self.session.refresh(order)
        logger.info("Orden %s creada en mesa %s con %d ítems, total %.2f",
                    order.id, table.number, len(order_items), order.total_value)
        return order

    def add_items(self, order_id: int, items: Iterable[OrderItemCreate]) -> Order:
        """Agrega ítems `pending`, suma al total y recalcula el estado (una orden lista puede retroceder)."""
        with self._transaction():
            order = self._lock_order(order_id)
            self._ensure_mutable(order)
            now = utc_now()
            new_items = self._build_items(items, now)
            if not new_items:
                raise OrderError("Se requiere al menos un ítem para agregar.")

            order.items.extend(new_items)
            order.total_value += sum(item.subtotal for item in new_items)
            order.updated_at = now
            self.session.add(order)
            self._apply_derived_status(order, now)

        self.session.refresh(order)
        logger.info("Orden %s: %d ítems agregados, nuevo total %.2f", order.id, len(new_items), order.total_value)
        return order

    def update_item_status(self, order_id: int, item_id: int, status: Union[ItemStatus, str]) -> ItemStatusChange:
        new_status = _coerce(ItemStatus, status)
        with self._transaction():
            order = self._lock_order(order_id)
            item = next((i for i in order.items if i.id == item_id), None)
            if item is None:
                raise ItemNotFound(f"Ítem {item_id} no encontrado en la orden {order_id}.")
            self._ensure_mutable(order)

            now = utc_now()
            item.status = new_status
            item.updated_at = now
            self.session.add(item)
            completed = self._apply_derived_status(order, now)

        self.session.refresh(order)
        self.session.refresh(item)
        return ItemStatusChange(order=order, item=item, order_completed=completed)

    def update_order_status(self, order_id: int, status: Union[OrderStatus, str]) -> Order:
        """
        Cambio explícito de estado por parte del personal (no pasa por la derivación).

        - `delivered`: todos los ítems pasan a `delivered` y se libera la mesa si no
          le quedan órdenes abiertas.
        - `ready`: los ítems no entregados pasan a `ready`.
        - `cancelled`: se libera la mesa si no le quedan órdenes abiertas.
        """
        new_status = _coerce(OrderStatus, status)
        with self._transaction():
            order = self._lock_order(order_id)
            self._ensure_mutable(order)
            now = utc_now()

            if new_status == OrderStatus.DELIVERED:
                self._force_items(order, ItemStatus.DELIVERED, now)
            elif new_status == OrderStatus.READY:
                self._force_items(order, ItemStatus.READY, now, skip=[ItemStatus.DELIVERED])

            if order.status != new_status:
                self._set_status(order, new_status, now)

            if new_status in TERMINAL_ORDER_STATUSES:
                self._release_table(order.id_table, [order.id], f"Orden {order.id} {new_status.value}")

        self.session.refresh(order)
        return order

    def cancel_order(self, order_id: int) -> Order:
        return self.update_order_status(order_id, OrderStatus.CANCELLED)

    def close_table(
        self,
        id_table: int,
        payment_method: str = "cash",
        tip: float = 0.0,
        discount: float = 0.0,
    ) -> TableClosing:
        """Entrega todas las órdenes abiertas de la mesa y devuelve el resumen de cobro."""
        with self._transaction():
            table = self._get_table(id_table)
            orders = self.session.exec(
                select(Order)
                .where(Order.id_table == id_table, col(Order.status).not_in(list(TERMINAL_ORDER_STATUSES)))
                .options(selectinload(Order.items))
                .order_by(Order.created_at, Order.id)
                .with_for_update()
            ).all()
            if not orders:
                raise NoOpenOrders(f"No hay órdenes activas para la mesa {table.number}.")

            now = utc_now()
            for order in orders:
                self._force_items(order, ItemStatus.DELIVERED, now)
                order.payment_method = payment_method
                self._set_status(order, OrderStatus.DELIVERED, now)

            closing = TableClosing(
                table=table,
                orders=list(orders),
                total_base=sum(order.total_value for order in orders),
                tip=tip,
                discount=discount,
                payment_method=payment_method,
            )
            self._release_table(table.id, [order.id for order in orders], "Mesa cerrada")

        self.session.refresh(table)
        logger.info("Mesa %s cerrada: %d órdenes, total final %.2f",
                    table.number, len(closing.orders), closing.total_final)
        return closing

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    def list_active_orders(self, now: Optional[datetime] = None) -> List[OrderRead]:
        """Cola FIFO de cocina: órdenes activas, la más antigua primero."""
        orders = self.session.exec(
            select(Order)
            .where(col(Order.status).in_(ACTIVE_ORDER_STATUSES))
            .options(selectinload(Order.items))
            .order_by(Order.created_at, Order.id)
        ).all()
        return describe_orders(self.session, orders, now)

    def orders_for_table(self, id_table: int, now: Optional[datetime] = None) -> List[OrderRead]:
        """Órdenes no terminadas de una mesa, la más reciente primero."""
        self._get_table(id_table)
        orders = self.session.exec(
            select(Order)
            .where(Order.id_table == id_table, col(Order.status).not_in(list(TERMINAL_ORDER_STATUSES)))
            .options(selectinload(Order.items))
            .order_by(col(Order.created_at).desc(), col(Order.id).desc())
        ).all()
        return describe_orders(self.session, orders, now)
