from typing import Any, Dict, Optional
import logging
import traceback

from sqlalchemy.orm import Session

from app.models.error_log import ErrorLog

logger = logging.getLogger(__name__)

DESCRIPTION_MAX = 1000


def log_error(
    db: Session,
    *,
    description: Optional[str] = None,
    error_source: str = "backend",
    endpoint: Optional[str] = None,
    module: Optional[str] = None,
    function: Optional[str] = None,
    http_status: Optional[int] = None,
    request_payload: Optional[Dict[str, Any]] = None,
    stack_trace: Optional[str] = None,
) -> None:
    """
    Record a failed receta request in error_logs.

        log_error(
            db,
            description="SMTP caído",
            endpoint="POST /api/crear-y-enviar-receta",
            function="crear_y_enviar_receta",
            http_status=500,
            request_payload={"paciente_id": "pac-1", "doctor_id": "doc-9"},
            stack_trace=format_exception(e),
        )

    The session is rolled back first so a half-done insert cannot ride
    along. Failing to write the log row is only reported on the logger;
    the caller's own error is what the client sees.
    """
    try:
        db.rollback()
        db.add(
            ErrorLog(
                error_source=error_source,
                description=(description or "")[:DESCRIPTION_MAX] or None,
                endpoint=endpoint,
                module=module,
                function=function,
                http_status=http_status,
                request_payload=request_payload,
                stack_trace=stack_trace,
            ))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Could not write error_logs row for %s", endpoint)


def format_exception(exc: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__))
