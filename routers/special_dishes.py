from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import col, select

from core.clock import utc_now
from core.database import SessionDep
from core.security import decode_token, require_roles
from models.enums import UserRole
from models.special_dishes import SpecialDish
from schemas.special_dishes_schema import (
    SpecialDishAvailability,
    SpecialDishCreate,
    SpecialDishRead,
    SpecialDishUpdate,
)
from routers.categories import check_category

router = APIRouter(
    prefix="/api/specials",
    tags=["PLATOS ESPECIALES"],
    dependencies=[Depends(decode_token)]
)
admin_only = [Depends(require_roles(UserRole.ADMIN))]


def _to_read(dish: SpecialDish, today: date) -> SpecialDishRead:
    return SpecialDishRead.model_validate(dish, update={"is_current": dish.is_current(today)})


def _get_dish_or_404(session, dish_id: int) -> SpecialDish:
    dish = session.get(SpecialDish, dish_id)
    if not dish or dish.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plato especial no encontrado.")
    return dish


# ======================================================================
# GET /api/specials - Listar platos especiales
# ======================================================================
@router.get("", response_model=List[SpecialDishRead])
def list_specials(
    session: SessionDep,
    current_only: bool = Query(False, description="Solo los vigentes hoy"),
    category_id: Optional[int] = Query(None, description="Filtrar por categoría"),
):
    query = select(SpecialDish).where(SpecialDish.deleted == False)
    if category_id is not None:
        query = query.where(SpecialDish.id_category == category_id)
    dishes = session.exec(query.order_by(col(SpecialDish.created_at).desc())).all()

    today = utc_now().date()
    if current_only:
        dishes = [d for d in dishes if d.is_current(today)]
    return [_to_read(d, today) for d in dishes]


# GET /api/specials/available - Disponibles y vigentes (lo que puede pedir el mesero)
@router.get("/available", response_model=List[SpecialDishRead])
def list_available_specials(session: SessionDep):
    dishes = session.exec(
        select(SpecialDish)
        .where(SpecialDish.deleted == False, SpecialDish.available == True)
        .order_by(SpecialDish.name)
    ).all()
    today = utc_now().date()
    return [_to_read(d, today) for d in dishes if d.is_current(today)]


@router.get("/{dish_id}", response_model=SpecialDishRead)
def read_special(dish_id: int, session: SessionDep):
    return _to_read(_get_dish_or_404(session, dish_id), utc_now().date())


@router.post("", response_model=SpecialDishRead, status_code=status.HTTP_201_CREATED, dependencies=admin_only)
def create_special(dish_data: SpecialDishCreate, session: SessionDep):
    check_category(session, dish_data.id_category)
    dish = SpecialDish.model_validate(dish_data)
    session.add(dish)
    session.commit()
    session.refresh(dish)
    return _to_read(dish, utc_now().date())


@router.patch("/{dish_id}", response_model=SpecialDishRead, dependencies=admin_only)
def update_special(dish_id: int, dish_data: SpecialDishUpdate, session: SessionDep):
    dish = _get_dish_or_404(session, dish_id)
    update_data = dish_data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No se enviaron campos para actualizar")
    if "id_category" in update_data:
        check_category(session, update_data["id_category"])

    dish.sqlmodel_update(update_data)
    if dish.starts_on and dish.ends_on and dish.ends_on < dish.starts_on:
        session.rollback()
        raise HTTPException(status_code=400, detail="ends_on no puede ser anterior a starts_on")

    dish.updated_at = utc_now()
    session.add(dish)
    session.commit()
    session.refresh(dish)
    return _to_read(dish, utc_now().date())


# PATCH /api/specials/{id}/availability - Solo cambia la disponibilidad
@router.patch("/{dish_id}/availability", response_model=SpecialDishRead, dependencies=admin_only)
def update_special_availability(dish_id: int, availability: SpecialDishAvailability, session: SessionDep):
    dish = _get_dish_or_404(session, dish_id)
    dish.available = availability.available
    dish.updated_at = utc_now()
    session.add(dish)
    session.commit()
    session.refresh(dish)
    return _to_read(dish, utc_now().date())


@router.delete("/{dish_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=admin_only)
def delete_special(dish_id: int, session: SessionDep):
    dish = _get_dish_or_404(session, dish_id)
    now = utc_now()
    dish.deleted = True
    dish.deleted_on = now
    dish.updated_at = now
    session.add(dish)
    session.commit()
