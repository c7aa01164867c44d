"""
Paramètres de l'application, lus depuis l'environnement puis le fichier .env.
"""

from typing import List, Set
from pydantic_settings import BaseSettings
from pydantic import field_validator


def _split_csv(v):
    if isinstance(v, str) and not v.startswith("["):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    DATABASE_URL: str
    # Trace chaque requête SQL dans logs/database.log
    LOG_SQL_QUERIES: bool = False
    SLOW_QUERY_MS: int = 500

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Clinic Franchise Manager"
    PROJECT_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_DIR: str = "logs"

    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Fichiers uploadés (dossiers patients, comptes rendus)
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 10
    IMAGE_EXTENSIONS: Set[str] = {"jpg", "jpeg", "png", "webp"}
    DOCUMENT_EXTENSIONS: Set[str] = {"pdf", "doc", "docx"}

    # Règles de stock (en jours)
    MIN_SALEABLE_EXPIRY_DAYS: int = 90
    RECALL_WINDOW_DAYS: int = 45

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        v = _split_csv(v)
        if isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("IMAGE_EXTENSIONS", "DOCUMENT_EXTENSIONS", mode="before")
    @classmethod
    def normalize_extensions(cls, v):
        return {ext.lower().lstrip(".") for ext in _split_csv(v)}

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
