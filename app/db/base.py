from typing import Any, Dict

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings
from app.db.logging import install_query_logging


def _engine_options() -> Dict[str, Any]:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 10, "max_overflow": 20}


engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, **_engine_options())
install_query_logging(engine, settings.LOG_SQL_QUERIES, settings.SLOW_QUERY_MS)

if settings.is_sqlite:
    # Suppression en cascade des lignes de facture, reçus et lignes de stock
    @event.listens_for(engine, "connect")
    def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency: une session par requête, annulée si une erreur remonte."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
