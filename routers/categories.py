from collections import Counter
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, status, HTTPException, Query
from sqlmodel import col, func, select

from core.clock import utc_now
from core.database import SessionDep
from core.security import decode_token, require_roles
from models.categories import Category
from models.enums import UserRole
from models.menu_items import MenuItem
from models.special_dishes import SpecialDish
from schemas.categories_schema import CategoryCreate, CategoryListResponse, CategoryRead, CategoryUpdate

# Lectura para cualquier usuario autenticado; escritura solo administradores
router = APIRouter(
    prefix="/api/categories",
    tags=["CATEGORIES"],
    dependencies=[Depends(decode_token)]
)
admin_only = [Depends(require_roles(UserRole.ADMIN))]


def _get_category_or_404(session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category or category.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoría no encontrada.")
    return category


def check_category(session, id_category: Optional[int]) -> None:
    """404 si la categoría indicada no existe o fue eliminada; `None` es válido (sin categoría)."""
    if id_category is None:
        return
    category = session.get(Category, id_category)
    if not category or category.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Categoría {id_category} no encontrada.")


def _dish_counts(session, model, category_ids: Iterable[int]) -> Counter:
    rows = session.exec(
        select(model.id_category, func.count(model.id))
        .where(col(model.id_category).in_(list(category_ids)), model.deleted == False)
        .group_by(model.id_category)
    ).all()
    return Counter(dict(rows))


def _to_read(session, categories: List[Category]) -> List[CategoryRead]:
    ids = [c.id for c in categories]
    menu_counts = _dish_counts(session, MenuItem, ids)
    special_counts = _dish_counts(session, SpecialDish, ids)
    return [
        CategoryRead.model_validate(c, update={
            "menu_items_count": menu_counts[c.id],
            "specials_count": special_counts[c.id],
        })
        for c in categories
    ]


@router.get("", response_model=CategoryListResponse, summary="Listar, filtrar y paginar categorías")
def list_categories(
    session: SessionDep,
    offset: int = Query(default=0, ge=0, description="Número de registros a omitir (offset)."),
    limit: int = Query(default=20, ge=1, le=100, description="Máxima cantidad de categorías a retornar (limit)."),
    name_search: Optional[str] = Query(default=None, description="Buscar por nombre de categoría (parcialmente)."),
):
    """Lista paginada de categorías activas con el conteo de platos de cada una."""
    query = select(Category).where(Category.deleted == False)
    if name_search:
        query = query.where(col(Category.name).ilike(f"%{name_search}%"))

    total_count = session.exec(select(func.count()).select_from(query.subquery())).one()
    categories = session.exec(query.order_by(Category.name).limit(limit).offset(offset)).all()

    return CategoryListResponse(
        data=_to_read(session, list(categories)),
        total_count=total_count,
        limit=limit,
        offset=offset,
    )


@router.get("/{category_id}", response_model=CategoryRead)
def read_category(category_id: int, session: SessionDep):
    return _to_read(session, [_get_category_or_404(session, category_id)])[0]


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED, dependencies=admin_only)
def create_category(category_data: CategoryCreate, session: SessionDep):
    category = Category.model_validate(category_data)
    session.add(category)
    session.commit()
    session.refresh(category)
    return _to_read(session, [category])[0]


@router.patch("/{category_id}", response_model=CategoryRead, dependencies=admin_only)
def update_category(category_id: int, category_data: CategoryUpdate, session: SessionDep):
    category = _get_category_or_404(session, category_id)
    update_data = category_data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No se enviaron campos para actualizar")

    category.sqlmodel_update(update_data)
    category.updated_at = utc_now()
    session.add(category)
    session.commit()
    session.refresh(category)
    return _to_read(session, [category])[0]


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=admin_only)
def delete_category(category_id: int, session: SessionDep):
    """Soft delete. No se permite mientras la categoría tenga platos sin eliminar."""
    category = _get_category_or_404(session, category_id)
    [read] = _to_read(session, [category])
    if read.menu_items_count or read.specials_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="La categoría tiene platos asociados; reasígnelos o elimínelos primero.",
        )

    now = utc_now()
    category.deleted = True
    category.deleted_on = now
    category.updated_at = now
    session.add(category)
    session.commit()
