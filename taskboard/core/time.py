"""
Utilidades de fecha/hora.

Mongo guarda fechas en UTC y pymongo las devuelve naive; en el proyecto todas
las fechas que tocan la base son datetimes naive en UTC. Las respuestas JSON
se emiten con zona (UTC) vía `as_utc`.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Hora actual en UTC, naive y truncada a milisegundos (precisión de BSON)."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Convierte un datetime (aware o naive) a naive UTC para guardarlo/consultarlo."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Marca un datetime naive (UTC) como aware para serializarlo con zona."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def day_bounds(d: date) -> Tuple[datetime, datetime]:
    """Devuelve [00:00:00.000, 23:59:59.999] del día dado (ambos inclusivos)."""
    start = start_of_day(d)
    return start, start + timedelta(days=1) - timedelta(milliseconds=1)


def parse_date_param(value: str) -> Tuple[datetime, bool]:
    """Parsea un parámetro de fecha ISO-8601 de la query string.

    Devuelve (datetime naive UTC, es_solo_fecha). Lanza ValueError si el valor
    no es una fecha válida.
    """
    raw = (value or "").strip()
    if not raw:
        raise ValueError("empty date")
    if len(raw) == 10:
        return start_of_day(date.fromisoformat(raw)), True
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    return to_storage(datetime.fromisoformat(raw)), False
