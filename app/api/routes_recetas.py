# FILE: app/api/routes_recetas.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.api.exception_handlers import GENERIC_ERROR_MSG
from app.schemas.receta import CrearRecetaIn, CrearRecetaOut, MessageOut
from app.services.error_logger import format_exception, log_error
from app.services.receta_service import crear_y_enviar_receta

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Recetas"])


@router.post(
    "/crear-y-enviar-receta",
    response_model=CrearRecetaOut,
    responses={
        400: {"model": MessageOut},
        500: {"model": MessageOut},
    },
)
def crear_y_enviar_receta_route(
    payload: CrearRecetaIn,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Persist the receta, render its PDF and mail it to the patient.
    """
    try:
        receta_id = crear_y_enviar_receta(db, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error en el proceso de creación/envío de receta")
        log_error(
            db,
            description=str(e) or type(e).__name__,
            endpoint=f"{request.method} {request.url.path}",
            module=crear_y_enviar_receta.__module__,
            function=crear_y_enviar_receta.__name__,
            http_status=500,
            request_payload={
                "paciente_id": payload.paciente.id if payload.paciente else None,
                "doctor_id": payload.doctor.id if payload.doctor else None,
            },
            stack_trace=format_exception(e),
        )
        raise HTTPException(status_code=500,
                            detail=str(e) or GENERIC_ERROR_MSG) from e

    return CrearRecetaOut(
        message="Receta creada y enviada por correo al paciente.",
        receta_id=receta_id,
    )
