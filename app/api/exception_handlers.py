# FILE: app/api/exception_handlers.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.receta_service import INCOMPLETE_MSG

logger = logging.getLogger(__name__)

GENERIC_ERROR_MSG = "Error interno del servidor al procesar la receta."


def message(msg: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": msg})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # exc.detail can be str/dict/list
        msg = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, msg)
        else:
            logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, msg)
        return message(msg, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("%s %s -> 400: %s", request.method, request.url.path, exc.errors())
        return message(INCOMPLETE_MSG, 400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return message(GENERIC_ERROR_MSG, 500)
