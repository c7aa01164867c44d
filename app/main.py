from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.core.middleware import HTTPLoggingMiddleware
from app.core.exceptions import (
    validation_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler,
)
from app.api.v1 import api_router
from app.db.base import Base, engine
import app.models  # noqa: F401

setup_logging(environment=settings.ENVIRONMENT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Les migrations Alembic gèrent le schéma hors développement
    if settings.ENVIRONMENT == "development":
        Base.metadata.create_all(bind=engine)
    for kind in ("images", "documents"):
        (Path(settings.UPLOAD_DIR) / kind).mkdir(parents=True, exist_ok=True)

    logger.info(
        "Démarrage de l'API",
        extra={"extra_data": {"environment": settings.ENVIRONMENT, "version": settings.PROJECT_VERSION}},
    )
    yield
    logger.info("Arrêt de l'API")
    engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Le logging HTTP enveloppe toutes les autres couches
app.add_middleware(HTTPLoggingMiddleware)


@app.middleware("http")
async def forwarded_proto_middleware(request: Request, call_next):
    """Respecte l'en-tête x-forwarded-proto posé par le proxy HTTPS."""
    if request.headers.get("x-forwarded-proto") == "https":
        request.scope["scheme"] = "https"
    return await call_next(request)


if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        # Nom des exports Excel/PDF
        expose_headers=["Content-Disposition", "X-Process-Time", "X-Request-ID"],
    )

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.PROJECT_VERSION,
        "docs": "/docs",
        "api": settings.API_V1_STR,
    }


@app.get("/health")
def health_check():
    """Vérifie aussi que la base répond."""
    with engine.connect() as connection:
        connection.exec_driver_sql("SELECT 1")
    return {"status": "healthy", "environment": settings.ENVIRONMENT}
