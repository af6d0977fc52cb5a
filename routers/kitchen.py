from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import col, func, select

# Importaciones de Core
from core.database import SessionDep
from core.security import decode_token

# Importaciones de Modelos, Schemas y Servicios
from models.enums import ACTIVE_ORDER_STATUSES, OrderStatus
from models.orders import Order
from schemas.orders_schema import KitchenSummary, OrderRead
from services.order_lifecycle import OrderLifecycle


router = APIRouter(prefix="/api/kitchen", tags=["Panel de Cocina"], dependencies=[Depends(decode_token)])


# ======================================================================
# ENDPOINT 1: COLA FIFO DE PEDIDOS ACTIVOS (GET /api/kitchen/orders)
# ======================================================================

@router.get(
    "/orders",
    response_model=List[OrderRead],
    summary="Pedidos activos para el panel de cocina, el más antiguo primero",
)
def get_kitchen_orders(session: SessionDep):
    """
    Retorna los pedidos pendientes, confirmados, en preparación y listos, ordenados por
    hora de creación. `wait_minutes` y `priority` se calculan en cada lectura.
    """
    return OrderLifecycle(session).list_active_orders()


# ======================================================================
# ENDPOINT 2: CONTEO DE PEDIDOS ACTIVOS POR ESTADO (GET /api/kitchen/summary)
# ======================================================================

@router.get("/summary", response_model=KitchenSummary, summary="Contar pedidos activos por estado")
def get_kitchen_summary(session: SessionDep) -> KitchenSummary:
    """Conteo por estado; los estados sin pedidos aparecen con 0."""
    rows = session.exec(
        select(Order.status, func.count(Order.id))
        .where(col(Order.status).in_(ACTIVE_ORDER_STATUSES))
        .group_by(Order.status)
    ).all()

    counts = {s.value: 0 for s in ACTIVE_ORDER_STATUSES}
    for order_status, count in rows:
        counts[OrderStatus(order_status).value] = count

    return KitchenSummary(counts=counts, total_active=sum(counts.values()))
