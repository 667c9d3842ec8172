# app/core/config.py
import os
from typing import List
from pydantic import BaseModel
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Carelux Recetas")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api")
    PORT: int = int(os.getenv("PORT", "4000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS (env takes priority)
    BACKEND_CORS_ORIGINS: List[str] = _split_csv(
        os.getenv("CORS_ORIGINS", "http://localhost:5173"))

    # ---------- Database ----------
    MYSQL_HOST: str = os.getenv("MYSQL_HOST", "localhost")
    MYSQL_PORT: int = int(os.getenv("MYSQL_PORT", "3306"))
    MYSQL_USER: str = os.getenv("MYSQL_USER", "carelux")
    MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "")
    MYSQL_DB: str = os.getenv("MYSQL_DB", "carelux_recetas")
    DB_DRIVER: str = os.getenv("DB_DRIVER", "pymysql")

    # DATABASE_URL wins over the MYSQL_* pieces
    SQLALCHEMY_DATABASE_URI: str = os.getenv("DATABASE_URL") or (
        f"mysql+{DB_DRIVER}://{quote_plus(MYSQL_USER)}:{quote_plus(MYSQL_PASSWORD)}"
        f"@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DB}")

    # ---------- Email (Gmail app-password defaults) ----------
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", os.getenv("EMAIL_USER", ""))
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD",
                                   os.getenv("EMAIL_APP_PASSWORD", ""))
    SMTP_FROM: str = os.getenv("SMTP_FROM", "")
    SMTP_FROM_NAME: str = os.getenv("SMTP_FROM_NAME", "Recetas de Carelux")
    SMTP_TLS: bool = _flag("SMTP_TLS", "true")

    # ---------- Document branding ----------
    PORTAL_URL: str = os.getenv("PORTAL_URL", "https://carelux.netlify.app/")
    BRAND_POWERED_BY: str = os.getenv("BRAND_POWERED_BY",
                                      "POWERED BY CYNOSURE")
    BRAND_ORG_NAME: str = os.getenv("BRAND_ORG_NAME",
                                    "DIRECCIÓN DE SALUD CARELUX")


settings = Settings()
