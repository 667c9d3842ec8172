# FILE: app/utils/text.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional


def field(obj: Any, key: str, default: Any = None) -> Any:
    """Read `key` from a dict, a pydantic model or an ORM row alike."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def safe(v: Any) -> str:
    return "" if v is None else str(v)


def present(v: Any) -> bool:
    """None, or blank after str() + strip(), counts as absent."""
    return v is not None and bool(str(v).strip())


def fmt_number(v: Any) -> str:
    """
    36.5 -> "36.5", 70.0 / "70.0" -> "70", "120/80" -> "120/80"
    """
    if isinstance(v, bool):
        return str(v)
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    s = safe(v).strip()
    if s.endswith(".0") and s[:-2].lstrip("-").isdigit():
        return s[:-2]
    return s


def fmt_fixed2(v: Any) -> str:
    try:
        return f"{float(v):.2f}"
    except (TypeError, ValueError):
        return safe(v).strip()


def to_date(v: Any) -> Optional[date]:
    if not v:
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    s = str(v).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(s[:10], fmt).date()
        except ValueError:
            continue
    return None


def fmt_date_short(v: Any) -> str:
    """DD/MM/YYYY (es-ES short date) or "N/A"."""
    d = to_date(v)
    return d.strftime("%d/%m/%Y") if d else "N/A"
