# app/models/__init__.py
from .receta import Receta
from .error_log import ErrorLog

__all__ = [
    "Receta",
    "ErrorLog",
]
