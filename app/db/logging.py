"""
Traçage SQL dans le logger database: requêtes lentes toujours, chaque
requête si LOG_SQL_QUERIES est activé.
"""

import time

from sqlalchemy import event
from sqlalchemy.engine import Engine

from app.core.logging import db_logger


def install_query_logging(engine: Engine, trace_all: bool, slow_query_ms: int) -> None:
    """Branche les listeners sur le moteur fourni."""

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start", []).append(time.perf_counter())
        if trace_all:
            db_logger.debug(
                "SQL query",
                extra={"extra_data": {"statement": statement, "executemany": executemany}},
            )

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = round((time.perf_counter() - conn.info["query_start"].pop()) * 1000, 2)
        if elapsed_ms >= slow_query_ms:
            db_logger.warning(
                "Requête SQL lente",
                extra={"extra_data": {"statement": statement, "duration_ms": elapsed_ms}},
            )
        elif trace_all:
            db_logger.debug(
                "SQL query executed",
                extra={"extra_data": {"duration_ms": elapsed_ms, "rowcount": cursor.rowcount}},
            )

    @event.listens_for(engine, "handle_error")
    def handle_error(exception_context):
        starts = exception_context.connection.info.get("query_start") if exception_context.connection else None
        if starts:
            starts.pop()
        db_logger.warning(
            "SQL error",
            extra={
                "extra_data": {
                    "statement": exception_context.statement,
                    "error": str(exception_context.original_exception),
                }
            },
        )
