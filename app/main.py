# app/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging_config import configure_logging
from app.api.exception_handlers import register_exception_handlers
from app.api.router import api_router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get("/")
def root():
    return {"message": f"{settings.PROJECT_NAME} API running", "version": "v1"}


if __name__ == "__main__":
    import uvicorn

    logger.info("Servidor escuchando en http://localhost:%s", settings.PORT)
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
