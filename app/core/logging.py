"""
Configuration du logging de l'API.

Console colorée en développement, JSON ailleurs. Fichiers dans LOG_DIR:
app.log et errors.log pour tout le monde, puis un fichier par logger
dédié (http, database, validation) qui ne remonte pas au root.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from app.core.config import settings

LOG_DIR = Path(settings.LOG_DIR)

# Attributs standard d'un LogRecord, exclus des champs JSON libres
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "extra_data", "taskName"}

DEDICATED_LOGGERS = {
    "http": ("http.log", logging.INFO),
    "database": ("database.log", logging.INFO),
    "validation": ("validation.log", logging.WARNING),
}


class JSONFormatter(logging.Formatter):
    """Une ligne JSON par enregistrement, extra_data sous la clé "extra"."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "environment": settings.ENVIRONMENT,
        }
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry["extra"] = extra_data
        entry.update({k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Console de développement."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{self.DIM}{time_str}{self.RESET} {color}{record.levelname:<8}{self.RESET} "
        if not record.name.startswith("uvicorn"):
            line += f"{self.DIM}{record.name}:{record.lineno}{self.RESET} "
        line += record.getMessage()

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            line += f" {self.DIM}" + " ".join(f"{k}={v}" for k, v in extra_data.items()) + self.RESET
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(filename: str, level: int) -> logging.FileHandler:
    handler = logging.FileHandler(LOG_DIR / filename, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(environment: str = "development") -> None:
    """
    Configure le logging de l'API.

    Args:
        environment: development, production ou test; en test aucun
            fichier n'est écrit.
    """
    is_dev = environment == "development"
    level = logging.DEBUG if is_dev else logging.INFO
    write_files = environment != "test"
    if write_files:
        LOG_DIR.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter() if is_dev else JSONFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(console)
    if write_files:
        root.addHandler(_file_handler("app.log", logging.INFO))
        root.addHandler(_file_handler("errors.log", logging.ERROR))

    for name, (filename, dedicated_level) in DEDICATED_LOGGERS.items():
        dedicated = logging.getLogger(name)
        dedicated.handlers.clear()
        dedicated.setLevel(dedicated_level)
        dedicated.propagate = False
        if write_files:
            dedicated.addHandler(_file_handler(filename, dedicated_level))
        else:
            dedicated.addHandler(logging.NullHandler())

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.addHandler(console)
        server_logger.propagate = False
    # HTTPLoggingMiddleware trace déjà chaque requête
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # Le traçage SQL passe par app.db.logging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


http_logger = logging.getLogger("http")
db_logger = logging.getLogger("database")
validation_logger = logging.getLogger("validation")
