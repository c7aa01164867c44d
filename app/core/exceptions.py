"""
Gestionnaires d'exceptions globaux pour FastAPI.
"""

import logging
from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DatabaseError, IntegrityError, SQLAlchemyError

from app.core.logging import db_logger, validation_logger

logger = logging.getLogger(__name__)

# Fragment de contrainte unique -> message renvoyé au client
UNIQUE_FIELD_MESSAGES = {
    "email": "Email already exists",
    "invoice_no": "Invoice number already exists",
    "bill_number": "Bill number already exists",
    "receipt_number": "Receipt number already exists",
    "txn_no": "Stock transaction number already exists",
    "patient_no": "Patient number already exists",
    "appointment_id": "Consultation already exists for this appointment",
    "franchises.name": "Franchise name already exists",
    "medicines.name": "Medicine name already exists",
    "brands.name": "Brand name already exists",
    "services.name": "Service name already exists",
    "packages.name": "Package name already exists",
    "labs.name": "Lab name already exists",
    "states.name": "State already exists",
    "uq_city_state": "City already exists in this state",
    "uq_room_franchise": "Room already exists in this franchise",
}


def make_json_serializable(obj: Any) -> Any:
    """Convertit les objets non sérialisables en JSON (bytes, etc.) en chaînes."""
    if isinstance(obj, bytes):
        try:
            return obj.decode("utf-8")
        except UnicodeDecodeError:
            return str(obj)
    elif isinstance(obj, dict):
        return {k: make_json_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [make_json_serializable(item) for item in obj]
    elif isinstance(obj, Exception):
        return str(obj)
    return obj


def _request_context(request: Request, **extra: Any) -> dict:
    context = {
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
    }
    context.update(extra)
    return context


def unique_violation_message(error_message: str) -> Optional[str]:
    """Message lisible pour une violation de contrainte unique, sinon None."""
    lowered = error_message.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return None
    for fragment, message in UNIQUE_FIELD_MESSAGES.items():
        if fragment in lowered:
            return message
    return "A record with the same unique value already exists"


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Erreurs de validation Pydantic -> 422."""
    errors = make_json_serializable(exc.errors())
    summary = "\n".join(
        f"  • {' -> '.join(str(loc) for loc in error.get('loc', []))}: {error.get('msg')}"
        for error in errors
    )
    body = make_json_serializable(exc.body) if hasattr(exc, "body") else None

    logger.warning(
        f"Validation Error (422) - {request.method} {request.url.path}\n{summary}",
        extra={"extra_data": _request_context(request, status_code=422, errors=errors)},
    )
    validation_logger.error(
        f"Validation error - {request.method} {request.url.path}",
        extra={
            "extra_data": _request_context(
                request, status_code=422, errors=errors, error_summary=summary, body=body
            )
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": errors},
    )


async def sqlalchemy_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Erreurs SQLAlchemy: 409 sur doublon, 400 sur intégrité, 500 sinon."""
    error_type = type(exc).__name__
    error_message = str(exc)

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, IntegrityError):
        user_message = unique_violation_message(error_message)
        if user_message:
            status_code = status.HTTP_409_CONFLICT
        else:
            status_code = status.HTTP_400_BAD_REQUEST
            user_message = "Data integrity error. Check referenced records."
    elif isinstance(exc, DatabaseError):
        user_message = "Database error. Please try again later."
    else:
        user_message = "A database error occurred."

    context = _request_context(
        request,
        error_type=error_type,
        error_message=error_message,
        status_code=status_code,
    )
    log_level = logging.ERROR if status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"Database Error ({status_code}) - {request.method} {request.url.path}: {error_type}",
        exc_info=status_code >= 500,
        extra={"extra_data": context},
    )
    db_logger.log(
        log_level,
        f"Database error - {request.method} {request.url.path}",
        exc_info=True,
        extra={"extra_data": context},
    )

    return JSONResponse(
        status_code=status_code,
        content={"detail": user_message, "error_type": error_type},
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Exceptions non gérées -> 500, avec l'identifiant de requête pour le support."""
    error_type = type(exc).__name__
    context = _request_context(
        request,
        user_id=getattr(request.state, "user_id", None),
        error_type=error_type,
        error_message=str(exc),
        status_code=500,
    )
    logger.error(
        f"Unhandled Exception (500) - {request.method} {request.url.path}: {error_type}: {exc}",
        exc_info=exc,
        extra={"extra_data": context},
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal error occurred. Please contact the administrator.",
            "error_type": error_type,
            "request_id": context["request_id"],
        },
    )
