import os

# Must be set before app.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SMTP_FROM", "recetas@carelux.test")

from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.api.deps import get_db
from app.db.base import Base
from app.main import app as fastapi_app


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, future=True)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sent_emails(monkeypatch) -> List[Dict[str, Any]]:
    sent: List[Dict[str, Any]] = []

    def fake_send(to_email, subject, body="", *, html=None, attachments=None):
        sent.append({
            "to": to_email,
            "subject": subject,
            "body": body,
            "html": html,
            "attachments": list(attachments or []),
        })

    monkeypatch.setattr("app.core.emailer.send_email", fake_send)
    return sent


@pytest.fixture
def client(session_factory, sent_emails):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    with TestClient(fastapi_app, raise_server_exceptions=False) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def receta_record() -> Dict[str, Any]:
    """A fully populated record as the PDF layer receives it."""
    return {
        "id": "3f2b8c1e-9a7d-4e11-b2c3-5d6e7f809a1b",
        "numero_recibo": "REC-000123",
        "paciente_nombre": "María López",
        "doctor_nombre": "Juan Pérez",
        "doctor_cedula": "12345678",
        "fecha_emision": "2025-03-07T10:15:00Z",
        "proxima_consulta": "2025-04-07",
        "fecha_dispensacion": "2025-03-08",
        "temperatura_corporal": 36.5,
        "frecuencia_cardiaca": 72,
        "frecuencia_respiratoria": 16,
        "tension_arterial": "120/80",
        "peso": 70.0,
        "altura": 168,
        "imc": 24.8016,
        "blood_type": "O+",
        "allergies": "Penicilina",
        "medicamentos": [
            {
                "nombre": "Paracetamol",
                "dosis": "500 mg",
                "frecuencia": "cada 8 horas",
                "duracion": "5 días",
            },
            {
                "nombre": "Ibuprofeno",
                "dosis": "400 mg",
                "duracion": "3 días",
            },
        ],
        "motivo_consulta": "Cefalea y fiebre",
        "antecedentes": "Sin antecedentes relevantes",
        "diagnostico": "Faringitis aguda",
        "exploracion_fisica": "Faringe hiperémica",
        "plan_tratamiento": "Analgésicos y reposo",
        "indicaciones": "Tomar con alimentos",
        "recomendaciones": "Hidratación abundante",
        "observaciones": "Control en un mes",
        "estado_dispensacion": "pendiente",
        "medicamentos_dispensados_detalle": "Paracetamol x1 caja",
        "farmacia_info": {
            "nombre": "Farmacia Central",
            "ubicacion": "Av. Reforma 100",
            "telefono": "5551234567",
        },
    }


@pytest.fixture
def crear_payload() -> Dict[str, Any]:
    return {
        "recetaData": {
            "numero_recibo": "REC-000777",
            "fecha_emision": "2025-03-07",
            "temperatura_corporal": "36.8",
            "frecuencia_cardiaca": 80,
            "peso": "",
            "medicamentos": [
                {
                    "nombre": "Amoxicilina",
                    "dosis": "500 mg",
                    "frecuencia": "cada 8 horas",
                    "duracion": "7 días",
                },
            ],
            "diagnostico": "Otitis media",
            "farmacia_info": {
                "nombre": "Farmacia Central",
                "telefono": 5551234567,
            },
        },
        "paciente": {
            "id": "pac-1",
            "name": "María López",
            "email": "maria@example.com",
        },
        "doctor": {
            "id": "doc-9",
            "nombre": "Juan Pérez",
            "cedula_prof": "12345678",
        },
    }
