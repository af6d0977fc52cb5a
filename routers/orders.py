from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import selectinload
from sqlmodel import select, col, func
from typing import List, Optional

# Core
from core.database import SessionDep
from core.security import CurrentUser, decode_token, require_roles

# Modelos
from models.enums import OrderStatus, UserRole
from models.orders import Order

# Schemas
from schemas.order_items_schema import OrderItemsAdd, OrderItemStatusUpdate
from schemas.orders_schema import (
    ItemStatusResponse,
    OrderCreate,
    OrderListResponse,
    OrderRead,
    OrderStatusUpdate,
)

# Servicios
from services.order_lifecycle import OrderLifecycle, describe_orders

router = APIRouter(
    prefix="/api/orders",
    tags=["ORDERS"],
    dependencies=[Depends(decode_token)]
)
waiters = [Depends(require_roles(UserRole.WAITER))]
kitchen_staff = [Depends(require_roles(UserRole.KITCHEN, UserRole.WAITER))]


def _describe_one(session, order: Order) -> OrderRead:
    return describe_orders(session, [order])[0]

# ==========================================================
# GET → Listar órdenes con filtros y metadatos
# ==========================================================
@router.get("", response_model=OrderListResponse, status_code=status.HTTP_200_OK)
def list_orders(
    session: SessionDep,
    id_table: Optional[int] = Query(None, description="Filtrar por mesa"),
    order_status: Optional[OrderStatus] = Query(None, alias="status", description="Filtrar por estado de la orden"),
    limit: int = Query(50, ge=1, le=100, description="Límite de resultados"),
    offset: int = Query(0, ge=0, description="Desplazamiento")
):
    """Lista las órdenes (más recientes primero) con filtros, paginación y metadatos."""
    query = select(Order)
    if id_table:
        query = query.where(col(Order.id_table) == id_table)
    if order_status:
        query = query.where(col(Order.status) == order_status)

    total_count = session.exec(select(func.count()).select_from(query.subquery())).one()
    orders = session.exec(
        query.options(selectinload(Order.items))
        .order_by(col(Order.created_at).desc(), col(Order.id).desc())
        .limit(limit)
        .offset(offset)
    ).all()

    return OrderListResponse(
        data=describe_orders(session, orders),
        total_count=total_count,
        limit=limit,
        offset=offset,
    )

# ==========================================================
# GET → Órdenes abiertas de una mesa
# ==========================================================
@router.get("/table/{id_table}", response_model=List[OrderRead])
def read_orders_for_table(id_table: int, session: SessionDep):
    """Órdenes no entregadas ni canceladas de la mesa, la más reciente primero."""
    return OrderLifecycle(session).orders_for_table(id_table)

# ==========================================================
# GET → Obtener una orden específica
# ==========================================================
@router.get("/{order_id}", response_model=OrderRead)
def read_order(order_id: int, session: SessionDep):
    """Obtiene una orden específica por su ID, con sus ítems."""
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Orden no encontrada."
        )
    return _describe_one(session, order)

# ==========================================================
# POST → Crear una nueva orden (con o sin ítems)
# ==========================================================
@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED, dependencies=waiters)
def create_order(order_data: OrderCreate, session: SessionDep, current_user: CurrentUser):
    """Crea una orden en estado `pending`; los precios se toman del catálogo en este momento."""
    order = OrderLifecycle(session, actor=current_user.username).create_order(
        order_data.id_table,
        order_data.items,
        notes=order_data.notes,
        id_user_created=current_user.id,
    )
    return _describe_one(session, order)

# ==========================================================
# POST → Agregar ítems a una orden existente
# ==========================================================
@router.post("/{order_id}/items", response_model=OrderRead, dependencies=waiters)
def add_items(order_id: int, items_data: OrderItemsAdd, session: SessionDep, current_user: CurrentUser):
    order = OrderLifecycle(session, actor=current_user.username).add_items(order_id, items_data.items)
    return _describe_one(session, order)

# ==========================================================
# PATCH → Estado de un ítem (acción de cocina)
# ==========================================================
@router.patch("/{order_id}/items/{item_id}/status", response_model=ItemStatusResponse, dependencies=kitchen_staff)
def update_item_status(
    order_id: int,
    item_id: int,
    status_data: OrderItemStatusUpdate,
    session: SessionDep,
    current_user: CurrentUser,
):
    """Actualiza el ítem y recalcula el estado de la orden; `order_completed` indica que quedó lista."""
    change = OrderLifecycle(session, actor=current_user.username).update_item_status(
        order_id, item_id, status_data.status
    )
    order_read = _describe_one(session, change.order)
    item_read = next(i for i in order_read.items if i.id == change.item.id)
    return ItemStatusResponse(item=item_read, order=order_read, order_completed=change.order_completed)

# ==========================================================
# PATCH → Cambio explícito del estado de la orden
# ==========================================================
@router.patch("/{order_id}/status", response_model=OrderRead, dependencies=kitchen_staff)
def update_order_status(order_id: int, status_data: OrderStatusUpdate, session: SessionDep, current_user: CurrentUser):
    """Cocina mueve la orden entre estados activos; entregar o cancelar es cosa de meseros."""
    if current_user.role == UserRole.KITCHEN and status_data.status.is_terminal:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permiso denegado: el rol kitchen no puede marcar una orden como '{status_data.status.value}'."
        )
    order = OrderLifecycle(session, actor=current_user.username).update_order_status(order_id, status_data.status)
    return _describe_one(session, order)

# ==========================================================
# POST → Cancelar una orden
# ==========================================================
@router.post("/{order_id}/cancel", response_model=OrderRead, dependencies=waiters)
def cancel_order(order_id: int, session: SessionDep, current_user: CurrentUser):
    order = OrderLifecycle(session, actor=current_user.username).cancel_order(order_id)
    return _describe_one(session, order)
