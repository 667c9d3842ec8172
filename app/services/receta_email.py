# FILE: app/services/receta_email.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings
from app.core.emailer import Attachment

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

PDF_MIME = "application/pdf"


@dataclass
class RecetaEmail:
    to_email: str
    subject: str
    body: str
    html: str
    attachments: List[Attachment] = field(default_factory=list)


def receta_filename(receta_id: str) -> str:
    return f"receta-{receta_id}.pdf"


def build_receta_email(
    *,
    to_email: str,
    paciente_nombre: str,
    doctor_nombre: str,
    receta_id: str,
    pdf_bytes: bytes,
) -> RecetaEmail:
    paciente_nombre = (paciente_nombre or "").strip()
    doctor_nombre = (doctor_nombre or "").strip()

    html = _env.get_template("email/receta.html").render(
        paciente_nombre=paciente_nombre,
        doctor_nombre=doctor_nombre,
        portal_url=settings.PORTAL_URL,
        sign_off="Carelux Point",
        powered_by="Powered By Cynosure.",
    )
    body = (
        f"Hola {paciente_nombre},\n\n"
        "Adjunto a este correo encontrarás una copia de tu receta médica "
        f"generada por el Dr(a). {doctor_nombre}.\n\n"
        f"Regístrate como paciente en {settings.PORTAL_URL}\n\n"
        "Atentamente,\nCarelux Point\n")

    return RecetaEmail(
        to_email=to_email,
        subject=f"Tu Receta Médica - {paciente_nombre}",
        body=body,
        html=html,
        attachments=[(receta_filename(receta_id), pdf_bytes, PDF_MIME)],
    )
