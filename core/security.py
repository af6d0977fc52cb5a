# core/security.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, status, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
import bcrypt

from core.config import settings
from core.database import SessionDep
from models.enums import UserRole
from models.tokens import Token as DBToken
from models.users import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/token")

# ----------------------------------------------------------------------
# FUNCIONES DE CONTRASEÑA
# ----------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hashea una contraseña utilizando bcrypt."""
    hashed_password = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
    return hashed_password.decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña plana contra su versión hasheada."""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False

# ----------------------------------------------------------------------
# FUNCIONES DE TOKEN (JWT)
# ----------------------------------------------------------------------

def encode_token(data: dict):
    """Crea y codifica un token JWT. Devuelve (token, expiración en UTC)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire.timestamp()})

    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, expire

def decode_token(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep
) -> User:
    """
    Decodifica el token, valida al usuario y verifica que el token siga activo en DB.
    """
    try:
        data = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Invalid or expired token.",
                            headers={"WWW-Authenticate": "Bearer"})

    username = data.get('username')
    if username is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="The token data is incomplete (missing username)")

    try:
        user_db = session.exec(select(User).where(User.username == username)).first()

        if user_db is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if user_db.deleted or not user_db.active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="User is deleted or inactive. Contact system manager.")

        # COMPROBACIÓN DEL TOKEN EN LA BASE DE DATOS
        db_token = session.exec(
            select(DBToken)
            .where(DBToken.token == token,
                   DBToken.id_user == user_db.id,
                   DBToken.status_token == True)
        ).first()
    except SQLAlchemyError as e:
        logger.error("Error de base de datos validando el token: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="An unexpected error occurred while validating the token.")

    if not db_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Token has been invalidated or not found/active in database.")

    return user_db


CurrentUser = Annotated[User, Depends(decode_token)]

# ----------------------------------------------------------------------
# DEPENDENCIA DE AUTORIZACIÓN (Roles)
# ----------------------------------------------------------------------

def require_roles(*roles: UserRole):
    """
    Dependencia de FastAPI: el usuario autenticado debe tener uno de los roles.
    El rol `admin` siempre tiene acceso.
    """
    allowed = {UserRole(r) for r in roles} | {UserRole.ADMIN}

    def role_verifier(current_user: CurrentUser) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permiso denegado: su rol ({current_user.role.value}) no tiene acceso a este recurso."
            )
        return current_user

    return role_verifier
