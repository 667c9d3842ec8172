# FILE: app/schemas/receta.py
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------- Nested pieces ----------


class MedicamentoIn(BaseModel):
    nombre: Optional[str] = None
    dosis: Optional[str] = None
    frecuencia: Optional[str] = None
    duracion: Optional[str] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class FarmaciaInfoIn(BaseModel):
    nombre: Optional[str] = None
    ubicacion: Optional[str] = None
    telefono: Optional[str] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


# ---------- Receta payload ----------


class RecetaDataIn(BaseModel):
    """
    Prescription body as sent by the front-end form.
    Keys not listed here are ignored.
    """
    numero_recibo: Optional[str] = None

    fecha_emision: Optional[str] = None
    proxima_consulta: Optional[str] = None

    # vitals arrive as numbers or free text ("70 kg", "36,5"); kept as sent
    temperatura_corporal: Optional[str] = None
    frecuencia_cardiaca: Optional[str] = None
    frecuencia_respiratoria: Optional[str] = None
    tension_arterial: Optional[str] = None
    peso: Optional[str] = None
    altura: Optional[str] = None
    imc: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[str] = None

    medicamentos: List[MedicamentoIn] = Field(default_factory=list)

    motivo_consulta: Optional[str] = None
    antecedentes: Optional[str] = None
    diagnostico: Optional[str] = None
    exploracion_fisica: Optional[str] = None
    plan_tratamiento: Optional[str] = None

    indicaciones: Optional[str] = None
    recomendaciones: Optional[str] = None
    observaciones: Optional[str] = None

    estado_dispensacion: Optional[str] = None
    fecha_dispensacion: Optional[str] = None
    medicamentos_dispensados_detalle: Optional[str] = None

    farmacia_info: Optional[FarmaciaInfoIn] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)

    @field_validator(
        "temperatura_corporal",
        "frecuencia_cardiaca",
        "frecuencia_respiratoria",
        "peso",
        "altura",
        "imc",
        "tension_arterial",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        # HTML number inputs post "" when left empty
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("medicamentos", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class PacienteIn(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class DoctorIn(BaseModel):
    id: Optional[str] = None
    nombre: Optional[str] = None
    cedula_prof: Optional[str] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class CrearRecetaIn(BaseModel):
    """
    POST /api/crear-y-enviar-receta body.

    Every top-level key is optional at the schema level; presence is
    checked by the route so a missing key answers 400 with a message
    instead of a field-by-field validation report.
    """
    receta_data: Optional[RecetaDataIn] = Field(None, alias="recetaData")
    paciente: Optional[PacienteIn] = None
    doctor: Optional[DoctorIn] = None

    model_config = ConfigDict(populate_by_name=True)


# ---------- Responses ----------


class MessageOut(BaseModel):
    message: str


class CrearRecetaOut(MessageOut):
    receta_id: str = Field(..., serialization_alias="recetaId")
