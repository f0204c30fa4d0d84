"""
Utilidades de fecha/hora.

Todas las fechas se guardan como UTC sin tzinfo para que SQLite y PostgreSQL
comparen igual.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Hora actual en UTC, sin tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
