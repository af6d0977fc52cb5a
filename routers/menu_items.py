from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlmodel import select, func
from typing import Optional

from core.clock import utc_now
from core.database import SessionDep
from core.security import decode_token, require_roles
from models.enums import UserRole
from models.menu_items import MenuItem
from schemas.menu_items_schema import MenuItemCreate, MenuItemRead, MenuItemUpdate, MenuItemListResponse
from routers.categories import check_category

# --- Configuración del Router ---
router = APIRouter(
    prefix="/api/menu_items",
    tags=["MENU ITEMS"],
    dependencies=[Depends(decode_token)]
)
admin_only = [Depends(require_roles(UserRole.ADMIN))]

SORTABLE_FIELDS = {"name", "price", "estimated_time", "created_at"}


def _get_item_or_404(session, item_id: int) -> MenuItem:
    item = session.get(MenuItem, item_id)
    if not item or item.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plato no encontrado.")
    return item

# ======================================================================
# LISTAR Y FILTRAR ÍTEMS DE MENÚ (GET /api/menu_items)
# ======================================================================

@router.get("", response_model=MenuItemListResponse, summary="Listar y filtrar ítems de menú con paginación")
def read_menu_items(
    session: SessionDep,

    # Paginación
    page: int = Query(default=1, ge=1, description="Número de página."),
    page_size: int = Query(default=10, ge=1, le=100, description="Tamaño de la página."),

    # Filtros
    category_id: Optional[int] = Query(default=None, description="Filtrar por ID de categoría."),
    available: Optional[bool] = Query(default=None, description="Filtrar por disponibilidad."),
    vegetarian: Optional[bool] = Query(default=None, description="Filtrar platos vegetarianos."),
    spicy: Optional[bool] = Query(default=None, description="Filtrar platos picantes."),
    min_price: Optional[float] = Query(default=None, ge=0, description="Precio mínimo."),
    max_price: Optional[float] = Query(default=None, ge=0, description="Precio máximo."),
    search_term: Optional[str] = Query(default=None, description="Buscar por nombre o ingredientes (parcial)."),

    # Ordenamiento
    sort_by: str = Query("name", description="Campo para ordenar (name, price, estimated_time, created_at)"),
    sort_order: str = Query("asc", description="Orden de clasificación (asc, desc)")
) -> MenuItemListResponse:
    """
    Lista los ítems del menú aplicando filtros, paginación y ordenamiento.
    Retorna solo los ítems no eliminados.
    """
    query = select(MenuItem).where(MenuItem.deleted == False)

    if category_id is not None:
        query = query.where(MenuItem.id_category == category_id)
    if available is not None:
        query = query.where(MenuItem.available == available)
    if vegetarian is not None:
        query = query.where(MenuItem.vegetarian == vegetarian)
    if spicy is not None:
        query = query.where(MenuItem.spicy == spicy)
    if min_price is not None:
        query = query.where(MenuItem.price >= min_price)
    if max_price is not None:
        query = query.where(MenuItem.price <= max_price)
    if search_term:
        query = query.where(
            (MenuItem.name.ilike(f"%{search_term}%"))
            | (MenuItem.ingredients.ilike(f"%{search_term}%"))
        )

    # Total de registros con los mismos filtros
    total_items = session.exec(select(func.count()).select_from(query.subquery())).one()

    sort_column = getattr(MenuItem, sort_by if sort_by in SORTABLE_FIELDS else "name")
    query = query.order_by(sort_column.desc() if sort_order.lower() == "desc" else sort_column.asc())

    offset = (page - 1) * page_size
    menu_items_db = session.exec(query.offset(offset).limit(page_size)).all()

    total_pages = (total_items + page_size - 1) // page_size if total_items > 0 else 0

    return MenuItemListResponse(
        items=[MenuItemRead.model_validate(item) for item in menu_items_db],
        total_items=total_items,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{item_id}", response_model=MenuItemRead)
def read_menu_item(item_id: int, session: SessionDep):
    return _get_item_or_404(session, item_id)


@router.post("", response_model=MenuItemRead, status_code=status.HTTP_201_CREATED, dependencies=admin_only)
def create_menu_item(item_data: MenuItemCreate, session: SessionDep):
    check_category(session, item_data.id_category)
    item = MenuItem.model_validate(item_data)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


@router.patch("/{item_id}", response_model=MenuItemRead, dependencies=admin_only)
def update_menu_item(item_id: int, item_data: MenuItemUpdate, session: SessionDep):
    """Los cambios de precio no alteran órdenes existentes: cada ítem guarda su precio."""
    item = _get_item_or_404(session, item_id)
    update_data = item_data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No se enviaron campos para actualizar")
    if "id_category" in update_data:
        check_category(session, update_data["id_category"])

    item.sqlmodel_update(update_data)
    item.updated_at = utc_now()
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=admin_only)
def delete_menu_item(item_id: int, session: SessionDep):
    item = _get_item_or_404(session, item_id)
    now = utc_now()
    item.deleted = True
    item.deleted_on = now
    item.updated_at = now
    session.add(item)
    session.commit()
