import secrets
import os
from typing import List, Union
from functools import lru_cache
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configurar el logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Permitir campos extra en .env
    )

    # Configuración básica
    API_V1_STR: str = "/api"
    # Sin SECRET_KEY en el entorno se genera uno por proceso (tokens no sobreviven reinicios)
    SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"
    # 60 minutos * 24 horas = 1 día
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    # Información del proyecto
    PROJECT_NAME: str = "SurveyAPI"
    PROJECT_DESCRIPTION: str = "API con FastAPI para creación y análisis de encuestas"
    VERSION: str = "1.0.0"

    # Debug mode
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "False").lower() in ("true", "1", "t")

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    DATABASE_URL: str = "sqlite:///./surveys.db"

    @field_validator("DATABASE_URL", mode="before")
    def ensure_proper_url_format(cls, v: str) -> str:
        """Normaliza el esquema postgres:// que algunos proveedores todavía exponen."""
        if v and v.startswith("postgres://"):
            logger.info("Corrigiendo formato de postgres:// a postgresql://")
            return "postgresql://" + v[len("postgres://"):]
        return v

    # Mantenimiento
    CLEANUP_DAYS_OLD: int = 30

    # Logs
    LOG_DIR: str = "logs"


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info("Configuración cargada correctamente")
    return settings
