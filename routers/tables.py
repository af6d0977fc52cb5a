from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, func, select
from typing import List, Optional

from core.clock import utc_now
from core.database import SessionDep
from core.security import CurrentUser, decode_token, require_roles
from models.enums import TableKind, TableStatus, UserRole
from models.tables import Table, TableStatusHistory
from schemas.orders_schema import CloseTableRequest, CloseTableResponse
from schemas.tables_schema import (
    TableCreate,
    TableListResponse,
    TableRead,
    TableStats,
    TableStatusHistoryRead,
    TableStatusUpdate,
    TableUpdate,
)
from services.order_lifecycle import OrderLifecycle
from services.tables import change_table_status

router = APIRouter(prefix="/api/tables", tags=["Mesas"], dependencies=[Depends(decode_token)])
admin_only = [Depends(require_roles(UserRole.ADMIN))]
staff = [Depends(require_roles(UserRole.WAITER))]


def _get_table_or_404(session, table_id: int) -> Table:
    table = session.get(Table, table_id)
    if not table or table.deleted:
        raise HTTPException(status_code=404, detail="Mesa no encontrada")
    return table

# ======================================================================
# GET /api/tables - Listar mesas con filtros y paginación
# ======================================================================
@router.get("", response_model=TableListResponse, summary="Listar mesas con filtros y paginación")
def list_tables(
    session: SessionDep,
    kind: Optional[TableKind] = Query(None, description="Filtrar por tipo (table, pickup, bar)"),
    table_status: Optional[TableStatus] = Query(None, alias="status", description="Filtrar por estado"),
    include_inactive: bool = Query(False, description="Incluir mesas inactivas"),
    limit: int = Query(50, ge=1, le=100, description="Cantidad máxima de resultados por página"),
    offset: int = Query(0, ge=0, description="Número de elementos a omitir (para paginación)"),
):
    query = select(Table).where(Table.deleted == False)

    # Aplicar filtros dinámicos
    if not include_inactive:
        query = query.where(Table.active == True)
    if kind:
        query = query.where(Table.kind == kind)
    if table_status:
        query = query.where(Table.status == table_status)

    total_count = session.exec(select(func.count()).select_from(query.subquery())).one()
    tables = session.exec(query.order_by(Table.kind, Table.number).offset(offset).limit(limit)).all()

    return TableListResponse(
        items=[TableRead.model_validate(t) for t in tables],
        total_count=total_count,
        offset=offset,
        limit=limit,
        total_pages=(total_count + limit - 1) // limit,
        current_page=(offset // limit) + 1,
    )


# ======================================================================
# GET /api/tables/stats - Estadísticas de mesas activas
# ======================================================================
@router.get("/stats", response_model=TableStats, summary="Conteos por tipo y estado, capacidad total y promedio")
def table_stats(session: SessionDep):
    active = (Table.deleted == False, Table.active == True)

    by_kind = {k.value: 0 for k in TableKind}
    for kind, count in session.exec(select(Table.kind, func.count(Table.id)).where(*active).group_by(Table.kind)).all():
        by_kind[TableKind(kind).value] = count

    by_status = {s.value: 0 for s in TableStatus}
    for st, count in session.exec(select(Table.status, func.count(Table.id)).where(*active).group_by(Table.status)).all():
        by_status[TableStatus(st).value] = count

    total_tables, total_capacity, average_capacity = session.exec(
        select(func.count(Table.id), func.coalesce(func.sum(Table.capacity), 0), func.avg(Table.capacity)).where(*active)
    ).one()

    return TableStats(
        total_tables=total_tables,
        by_kind=by_kind,
        by_status=by_status,
        total_capacity=total_capacity,
        average_capacity=round(float(average_capacity or 0), 2),
    )


# ======================================================================
# GET /api/tables/{table_id} - Obtener mesa por ID
# ======================================================================
@router.get("/{table_id}", response_model=TableRead, summary="Obtener detalles de una mesa por ID")
def get_table(table_id: int, session: SessionDep):
    return _get_table_or_404(session, table_id)


# ======================================================================
# POST /api/tables - Crear nueva mesa
# ======================================================================
@router.post("", response_model=TableRead, status_code=status.HTTP_201_CREATED,
             summary="Crear una nueva mesa", dependencies=admin_only)
def create_table(table_data: TableCreate, session: SessionDep):
    new_table = Table.model_validate(table_data)
    session.add(new_table)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Ya existe una mesa con el número {table_data.number}")
    session.refresh(new_table)
    return new_table


# ======================================================================
# PATCH /api/tables/{table_id} - Actualizar mesa
# ======================================================================
@router.patch("/{table_id}", response_model=TableRead, summary="Actualizar datos de una mesa", dependencies=admin_only)
def update_table(table_id: int, table_data: TableUpdate, session: SessionDep):
    table = _get_table_or_404(session, table_id)

    update_data = table_data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No se enviaron campos para actualizar")

    table.sqlmodel_update(update_data)
    table.updated_at = utc_now()
    session.add(table)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Ya existe una mesa con ese número")
    session.refresh(table)
    return table


# ======================================================================
# DELETE /api/tables/{table_id} - Soft delete
# ======================================================================
@router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Eliminar (soft delete) una mesa", dependencies=admin_only)
def delete_table(table_id: int, session: SessionDep):
    table = _get_table_or_404(session, table_id)
    now = utc_now()
    table.deleted = True
    table.active = False
    table.deleted_on = now
    table.updated_at = now
    session.add(table)
    session.commit()


# ======================================================================
# PATCH /api/tables/{table_id}/status - Actualizar solo el estado de una mesa
# ======================================================================
@router.patch("/{table_id}/status", response_model=TableRead, summary="Actualizar estado de una mesa",
              dependencies=staff)
def update_table_status(table_id: int, status_data: TableStatusUpdate, session: SessionDep, current_user: CurrentUser):
    table = _get_table_or_404(session, table_id)

    if not change_table_status(session, table, status_data.status, current_user.username, status_data.reason):
        raise HTTPException(
            status_code=400,
            detail="El estado ya es el mismo, no hay cambios que aplicar."
        )

    session.commit()
    session.refresh(table)
    return table


# ======================================================================
# GET /api/tables/{table_id}/history - Historial de estados
# ======================================================================
@router.get("/{table_id}/history", response_model=List[TableStatusHistoryRead])
def table_history(
    table_id: int,
    session: SessionDep,
    limit: int = Query(50, ge=1, le=200),
):
    _get_table_or_404(session, table_id)
    return session.exec(
        select(TableStatusHistory)
        .where(TableStatusHistory.id_table == table_id)
        .order_by(col(TableStatusHistory.changed_at).desc(), col(TableStatusHistory.id).desc())
        .limit(limit)
    ).all()


# ======================================================================
# POST /api/tables/{table_id}/close - Cerrar mesa (cobrar y entregar)
# ======================================================================
@router.post("/{table_id}/close", response_model=CloseTableResponse, summary="Cerrar mesa", dependencies=staff)
def close_table(
    table_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    close_data: Optional[CloseTableRequest] = None,
):
    close_data = close_data or CloseTableRequest()
    closing = OrderLifecycle(session, actor=current_user.username).close_table(
        table_id,
        payment_method=close_data.payment_method,
        tip=close_data.tip,
        discount=close_data.discount,
    )
    return CloseTableResponse(
        id_table=closing.table.id,
        orders_closed=len(closing.orders),
        total_base=closing.total_base,
        tip=closing.tip,
        discount=closing.discount,
        total_final=closing.total_final,
        payment_method=closing.payment_method,
        table_status=closing.table.status.value,
    )
