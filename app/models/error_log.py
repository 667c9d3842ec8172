from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    JSON,
)

from app.db.base import Base


class ErrorLog(Base):
    """
    Failed receta requests.

    Written by POST /api/crear-y-enviar-receta when the receta could not be
    rendered or mailed, so support can tell the patient whose email never
    arrived which step broke. The receta row itself is kept.
    """
    __tablename__ = "error_logs"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(Integer, primary_key=True, index=True)

    error_source = Column(String(50), nullable=False, default="backend")
    description = Column(String(1000), nullable=True)

    # "POST /api/crear-y-enviar-receta"
    endpoint = Column(String(255), nullable=True)
    # service function that raised, e.g. receta_service.crear_y_enviar_receta
    module = Column(String(255), nullable=True)
    function = Column(String(255), nullable=True)

    http_status = Column(Integer, nullable=True)

    # {paciente_id, doctor_id}; the clinical payload is not copied here
    request_payload = Column(JSON, nullable=True)
    stack_trace = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
