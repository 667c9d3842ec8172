# FILE: app/core/logging_config.py
from __future__ import annotations

import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Root logger -> stderr. Safe to call more than once (uvicorn reload,
    test sessions): existing handlers are kept.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL or "INFO").upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
