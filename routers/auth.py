import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.clock import utc_now
from core.database import SessionDep # Dependencia de sesión de la base de datos
from core.security import CurrentUser, encode_token, oauth2_scheme, verify_password
from models.tokens import Token as DBToken
from models.users import User
from schemas.tokens_schema import AccessTokenResponse
from schemas.users_schema import UserLogin, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["AUTH"])

# Definición de la excepción de seguridad para consistencia
INVALID_CREDENTIALS = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Credenciales inválidas (usuario/contraseña)",
    headers={"WWW-Authenticate": "Bearer"},
)


def _issue_token(session: Session, username: str, password: str) -> dict:
    """Valida credenciales, invalida los tokens anteriores y emite uno nuevo."""
    try:
        user_db = session.exec(select(User).where(User.username == username)).first()

        if not user_db or not verify_password(password, user_db.password):
            raise INVALID_CREDENTIALS

        if user_db.deleted or not user_db.active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="User is inactive. Contact your system manager.")

        # Invalidar tokens existentes
        existing_tokens = session.exec(
            select(DBToken).where(DBToken.id_user == user_db.id, DBToken.status_token == True)
        ).all()
        for token_entry in existing_tokens:
            token_entry.status_token = False
            session.add(token_entry)

        payload = {
            "username": user_db.username,
            "user_id": user_db.id,
            "role": user_db.role.value,
            "jti": uuid.uuid4().hex,
        }
        encoded_jwt, expires_at = encode_token(payload)

        now = utc_now()
        session.add(DBToken(
            token=encoded_jwt,
            id_user=user_db.id,
            expiration=expires_at,
            status_token=True,
            date_token=now,
        ))
        user_db.last_connection = now
        session.add(user_db)
        session.commit()

    except HTTPException:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Error de base de datos en login: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor al gestionar la sesión de seguridad (DB).",
        )

    logger.info("Login de %s (%s)", user_db.username, user_db.role.value)
    return {"access_token": encoded_jwt, "token_type": "bearer", "role": user_db.role}


@router.post("/login", response_model=AccessTokenResponse, status_code=status.HTTP_200_OK)
def login_user(user_data: UserLogin, session: SessionDep):
    return _issue_token(session, user_data.username, user_data.password)


@router.post("/token", response_model=AccessTokenResponse, include_in_schema=False)
def login_form(form_data: Annotated[OAuth2PasswordRequestForm, Depends()], session: SessionDep):
    """Variante con formulario OAuth2 (la usa el botón 'Authorize' de la documentación)."""
    return _issue_token(session, form_data.username, form_data.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout_user(
    current_user: CurrentUser,
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep,
):
    """Invalida el token con el que se hizo la petición."""
    db_token = session.exec(
        select(DBToken).where(DBToken.token == token, DBToken.id_user == current_user.id)
    ).first()
    if db_token:
        db_token.status_token = False
        session.add(db_token)
        session.commit()


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: CurrentUser):
    return current_user
