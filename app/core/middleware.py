"""
Middleware de logging HTTP.

Chaque requête reçoit un identifiant (X-Request-ID repris du client ou
généré) renvoyé dans la réponse avec X-Process-Time.
"""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import http_logger

logger = logging.getLogger(__name__)


def _response_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class HTTPLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            context["process_time"] = round(time.perf_counter() - started, 3)
            logger.error(
                f"Requête en échec - {request.method} {request.url.path}: {type(exc).__name__}",
                exc_info=True,
                extra={"extra_data": context},
            )
            raise

        context.update({
            "status_code": response.status_code,
            "process_time": round(time.perf_counter() - started, 3),
            # Posés par get_current_user une fois le jeton validé
            "user_id": getattr(request.state, "user_id", None),
            "role": getattr(request.state, "role", None),
        })
        if request.query_params:
            context["query_params"] = dict(request.query_params)

        http_logger.log(
            _response_level(response.status_code),
            f"{request.method} {request.url.path} - {response.status_code}",
            extra={"extra_data": context},
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(context["process_time"])
        return response
