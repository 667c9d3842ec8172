# FILE: app/models/receta.py
from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    JSON,
    func,
)

from app.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Receta(Base):
    """
    One issued prescription.

    The row is write-once from the API's point of view: inserted by
    POST /api/crear-y-enviar-receta and then rendered + mailed.
    Dates are kept as the strings the front-end sends (ISO date or
    datetime); the PDF layer parses them for display.
    """

    __tablename__ = "recetas"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(36), primary_key=True, default=_new_id)
    numero_recibo = Column(String(64), nullable=True, index=True)

    paciente_id = Column(String(64), nullable=True, index=True)
    doctor_id = Column(String(64), nullable=True, index=True)

    fecha_emision = Column(String(40), nullable=True)
    proxima_consulta = Column(String(40), nullable=True)

    # --- Vitals ---
    # form values as sent: "36.5", "70 kg", "120/80"
    temperatura_corporal = Column(String(32), nullable=True)
    frecuencia_cardiaca = Column(String(32), nullable=True)
    frecuencia_respiratoria = Column(String(32), nullable=True)
    tension_arterial = Column(String(32), nullable=True)
    peso = Column(String(32), nullable=True)
    altura = Column(String(32), nullable=True)
    imc = Column(String(32), nullable=True)
    blood_type = Column(String(16), nullable=True)
    allergies = Column(Text, nullable=True)

    # [{nombre, dosis, frecuencia, duracion}, ...] in prescribed order
    medicamentos = Column(JSON, nullable=True)

    # --- Clinical ---
    motivo_consulta = Column(Text, nullable=True)
    antecedentes = Column(Text, nullable=True)
    diagnostico = Column(Text, nullable=True)
    exploracion_fisica = Column(Text, nullable=True)
    plan_tratamiento = Column(Text, nullable=True)

    # --- Pharmacist notes ---
    indicaciones = Column(Text, nullable=True)
    recomendaciones = Column(Text, nullable=True)
    observaciones = Column(Text, nullable=True)

    # --- Dispensation ---
    estado_dispensacion = Column(String(32), nullable=True)
    fecha_dispensacion = Column(String(40), nullable=True)
    medicamentos_dispensados_detalle = Column(Text, nullable=True)

    # {nombre, ubicacion, telefono}
    farmacia_info = Column(JSON, nullable=True)

    created_at = Column(DateTime,
                        nullable=False,
                        server_default=func.now(),
                        index=True)
