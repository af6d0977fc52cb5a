import logging

from sqlmodel import Session, select

from core.config import settings
from core.security import hash_password
from models.enums import UserRole
from models.users import User

logger = logging.getLogger(__name__)


def ensure_admin_user(engine, username: str = None, password: str = None) -> bool:
    """Crea el administrador configurado si aún no existe. True si lo creó."""
    username = username or settings.ADMIN_USERNAME
    password = password or settings.ADMIN_PASSWORD
    if not username or not password:
        return False

    with Session(engine) as session:
        if session.exec(select(User).where(User.username == username)).first():
            return False
        session.add(User(
            name="Administrador",
            username=username,
            password=hash_password(password),
            role=UserRole.ADMIN,
        ))
        session.commit()
    logger.info("Usuario administrador '%s' creado", username)
    return True
