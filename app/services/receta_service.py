# FILE: app/services/receta_service.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core import emailer
from app.models.receta import Receta
from app.schemas.receta import CrearRecetaIn
from app.services.pdf_receta import build_receta_pdf
from app.services.receta_email import build_receta_email

logger = logging.getLogger(__name__)

INCOMPLETE_MSG = "Datos incompletos para procesar la receta o enviar el correo."


def validate_request(payload: CrearRecetaIn) -> None:
    """
    Presence checks only. Raises 400 before anything is written or sent.
    """
    if (payload.receta_data is None or payload.paciente is None
            or payload.doctor is None or not payload.paciente.email):
        raise HTTPException(status_code=400, detail=INCOMPLETE_MSG)


def insert_receta(db: Session, payload: CrearRecetaIn) -> Receta:
    data = payload.receta_data.model_dump(exclude_none=True)
    row = Receta(
        **data,
        paciente_id=payload.paciente.id,
        doctor_id=payload.doctor.id,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Receta guardada con ID: %s", row.id)
    return row


def receta_pdf_record(row: Receta, payload: CrearRecetaIn) -> Dict[str, Any]:
    """Stored row + the names that only travel in the request."""
    rec = {c.name: getattr(row, c.name) for c in Receta.__table__.columns}
    farmacia = payload.receta_data.farmacia_info
    rec.update(
        paciente_nombre=payload.paciente.name,
        doctor_nombre=payload.doctor.nombre,
        doctor_cedula=payload.doctor.cedula_prof,
        farmacia_info=farmacia.model_dump() if farmacia else None,
    )
    return rec


def crear_y_enviar_receta(db: Session, payload: CrearRecetaIn) -> str:
    """
    insert -> render -> email, strictly in that order.

    A failure at any step aborts the remaining ones; an already
    committed row is left as is.
    """
    validate_request(payload)

    row = insert_receta(db, payload)

    logger.info("Generando PDF de la receta %s...", row.id)
    pdf_bytes = build_receta_pdf(receta_pdf_record(row, payload))
    logger.info("PDF de la receta generado (%d bytes).", len(pdf_bytes))

    mail = build_receta_email(
        to_email=payload.paciente.email,
        paciente_nombre=payload.paciente.name or "",
        doctor_nombre=payload.doctor.nombre or "",
        receta_id=row.id,
        pdf_bytes=pdf_bytes,
    )
    logger.info("Enviando correo con la receta a: %s...", mail.to_email)
    emailer.send_email(
        mail.to_email,
        mail.subject,
        mail.body,
        html=mail.html,
        attachments=mail.attachments,
    )
    logger.info("Correo de la receta enviado con éxito.")

    return row.id
