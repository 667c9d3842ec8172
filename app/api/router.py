# app/api/router.py
from fastapi import APIRouter

from app.api import routes_recetas

api_router = APIRouter()

api_router.include_router(routes_recetas.router)
