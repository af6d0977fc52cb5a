import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

# --- Configuración de Path para Módulos Hermanos ---
ROOT_DIR = Path(__file__).parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))
# ------------------------------------------------------------------------

from core.config import settings
from core.database import SessionDep, create_db_and_tables, engine, ping_database
from core.logging_config import setup_logging
from services.bootstrap import ensure_admin_user
from services.errors import OrderError

# --- Importación de Routers ---
from routers import auth
from routers import users
from routers import categories
from routers import menu_items
from routers import special_dishes
from routers import tables
from routers import orders
from routers import kitchen

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Al iniciar:
    1. Crea las tablas.
    2. Realiza un 'ping' a la DB para despertar la conexión.
    3. Crea el usuario administrador configurado (si no existe).
    """
    setup_logging()
    create_db_and_tables()
    ping_database(engine)
    ensure_admin_user(engine)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Backend para la gestión de pedidos, mesas, menú y panel de cocina.",
    lifespan=lifespan,
)

# --- Configuración de CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Errores de negocio del ciclo de vida de órdenes ---
@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "error": exc.kind})


# --- Inclusión de Routers (Rutas de la API) ---
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(menu_items.router)
app.include_router(special_dishes.router)
app.include_router(tables.router)
app.include_router(orders.router)
app.include_router(kitchen.router)


# --- Rutas de salud ---
@app.get("/", tags=["API Health"])
def read_root():
    """Verifica que la API está en línea."""
    return {"message": "API de gestión de pedidos en línea"}


@app.get("/api/health", tags=["API Health"])
def health(session: SessionDep):
    """Estado de la API y de la conexión a la base de datos."""
    db_ok = ping_database(session.get_bind())
    return {"status": "ok" if db_ok else "degraded", "database": db_ok}


# --- Ejecución Local ---
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True)
