import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from core.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str, echo: bool = False):
    """
    Crea el motor. En SQLite, `FOR UPDATE` no existe: cada transacción abre con
    `BEGIN IMMEDIATE` para tomar el bloqueo de escritura desde el inicio y
    serializar las actualizaciones de una misma orden.
    """
    is_sqlite = url.startswith("sqlite")
    # SQLite necesita compartir la conexión entre hilos (TestClient / uvicorn)
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    new_engine = create_engine(url, echo=echo, connect_args=connect_args)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _disable_driver_begin(dbapi_connection, connection_record):
            # El BEGIN lo emite el evento "begin", no pysqlite
            dbapi_connection.isolation_level = None

        @event.listens_for(new_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return new_engine


# El motor de la base de datos
engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)


def create_db_and_tables(bind=None):
    """Crea todas las tablas definidas en los modelos si no existen."""
    # Asegúrate de importar TODOS los modelos aquí
    from models.users import User
    from models.tokens import Token
    from models.categories import Category
    from models.menu_items import MenuItem
    from models.special_dishes import SpecialDish
    from models.tables import Table, TableStatusHistory
    from models.orders import Order
    from models.order_items import OrderItem

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Generador para obtener la sesión de la base de datos."""
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]


def ping_database(engine) -> bool:
    """
    Intenta una consulta simple para despertar la base de datos,
    especialmente útil para servicios que hibernan.
    """
    try:
        with Session(engine) as session:
            session.execute(text("SELECT 1"))
        logger.info("Ping a la base de datos exitoso")
        return True
    except SQLAlchemyError as e:
        logger.warning("Fallo el ping a la base de datos: %s", e)
        return False
