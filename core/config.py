from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Configuración del backend, leída desde variables de entorno o `.env`."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Servicio ---
    APP_NAME: str = "API Restaurante - Gestión de Pedidos"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # --- Base de datos ---
    DATABASE_URL: str = "sqlite:///./restaurante.db"
    DB_ECHO: bool = False

    # --- Seguridad (JWT) ---
    SECRET_KEY: str = "cambiar-esta-clave-en-produccion"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Usuario administrador creado al iniciar (si no existe)
    ADMIN_USERNAME: str = ""
    ADMIN_PASSWORD: str = ""

    # --- Reglas de negocio ---
    # Al cerrar la mesa: True -> queda 'available'; False -> conserva su estado actual
    RELEASE_TABLE_ON_CLOSE: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
