from typing import List, Optional

from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlmodel import select

from core.clock import utc_now
from core.database import SessionDep
from core.security import hash_password, require_roles
from models.enums import UserRole
from models.users import User
from schemas.users_schema import UserRead, UserCreate, UserUpdate, PasswordUpdate

router = APIRouter(
    prefix="/api/users",
    tags=["Usuarios"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


def _get_user_or_404(session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user or user.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return user


@router.get("", response_model=List[UserRead], summary="Listar usuarios activos")
def read_users(
    session: SessionDep,
    role: Optional[UserRole] = Query(default=None, description="Filtrar por rol."),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
):
    query = select(User).where(User.deleted == False)
    if role:
        query = query.where(User.role == role)
    return session.exec(query.order_by(User.username).offset(offset).limit(limit)).all()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED, summary="Crear usuario")
def create_user(user_data: UserCreate, session: SessionDep):
    existing = session.exec(select(User).where(User.username == user_data.username)).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="El nombre de usuario ya existe.")

    user = User(**user_data.model_dump(exclude={"password"}), password=hash_password(user_data.password))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@router.patch("/{user_id}", response_model=UserRead, summary="Actualizar usuario")
def update_user(user_id: int, user_data: UserUpdate, session: SessionDep):
    user = _get_user_or_404(session, user_id)
    update_data = user_data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No se enviaron campos para actualizar")

    user.sqlmodel_update(update_data)
    user.updated_at = utc_now()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@router.patch("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT, summary="Cambiar contraseña")
def update_password(user_id: int, password_data: PasswordUpdate, session: SessionDep):
    user = _get_user_or_404(session, user_id)
    user.password = hash_password(password_data.password)
    user.updated_at = utc_now()
    session.add(user)
    session.commit()


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Eliminar (soft delete) usuario")
def delete_user(user_id: int, session: SessionDep):
    user = _get_user_or_404(session, user_id)
    now = utc_now()
    user.deleted = True
    user.deleted_on = now
    user.updated_at = now
    session.add(user)
    session.commit()
