"""
Dependencias reutilizables para routers (FastAPI Depends).

- Autenticación: extrae y valida el bearer token, devuelve la cuenta activa.
- Paginación: lee `page`/`limit` de la query string con los límites configurados.
- Mantener esta capa delgada: sin lógica de negocio.
"""
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId
from fastapi import Depends, Header, Query

from taskboard.core.config import settings
from taskboard.core.exceptions import FieldError, ValidationError
from taskboard.core.time import day_bounds, parse_date_param
from taskboard.domain.filters import PageSpec, SortSpec
from taskboard.services.auth_validator import resolve_account

# skip de Mongo es un int64
MAX_SKIP = 2**63 - 1


def get_current_user(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    return resolve_account(authorization)


def get_current_user_id(user: Dict[str, Any] = Depends(get_current_user)) -> ObjectId:
    return user["_id"]


def get_page(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
) -> PageSpec:
    size = limit or settings.default_page_size
    if size > settings.max_page_size:
        raise ValidationError([FieldError("limit", f"limit cannot exceed {settings.max_page_size}")])
    if (page - 1) * size > MAX_SKIP:
        raise ValidationError([FieldError("page", "page is out of range")])
    return PageSpec(page=page, limit=size)


def date_param(field: str, value: str) -> Tuple[datetime, bool]:
    """Parsea una fecha de la query string; error de validación si no es ISO-8601."""
    try:
        return parse_date_param(value)
    except ValueError:
        raise ValidationError([FieldError(field, f"{field} must be an ISO-8601 date")])


def date_range(start: Optional[str], end: Optional[str]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Rango inclusivo; un `endDate` sin hora cubre el día completo."""
    lo = date_param("startDate", start)[0] if start else None
    hi = None
    if end:
        hi, date_only = date_param("endDate", end)
        if date_only:
            hi = day_bounds(hi.date())[1]
    return lo, hi


def sort_spec(sort_by: str, sort_order: str, allowed: Dict[str, str]) -> SortSpec:
    """Traduce sortBy/sortOrder públicos a un `SortSpec` sobre el campo almacenado."""
    field = allowed.get(sort_by)
    if field is None:
        raise ValidationError([FieldError("sortBy", f"sortBy must be one of: {', '.join(allowed)}")])
    return SortSpec(field=field, direction=1 if sort_order == "asc" else -1)
