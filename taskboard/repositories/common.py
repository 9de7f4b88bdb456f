"""Helpers compartidos por los repositorios (ids, búsqueda, paginación)."""
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo.collection import Collection

from taskboard.domain.filters import PageSpec


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Convierte a ObjectId; devuelve None si el valor no es un id válido."""
    if isinstance(value, ObjectId):
        return value
    if value is not None and ObjectId.is_valid(str(value)):
        return ObjectId(str(value))
    return None


def to_object_ids(values: Iterable[Any]) -> List[ObjectId]:
    """Convierte una lista de ids descartando los que no son válidos."""
    out = []
    for v in values or []:
        oid = to_object_id(v)
        if oid is not None:
            out.append(oid)
    return out


def search_clause(search: Optional[str], fields: Tuple[str, ...]) -> Optional[Dict[str, Any]]:
    """`$or` de substring case-insensitive sobre los campos dados."""
    text = (search or "").strip()
    if not text:
        return None
    pattern = re.escape(text)
    return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in fields]}


def find_page(
    coll: Collection, query: Dict[str, Any], sort: List[Tuple[str, int]], page: PageSpec
) -> Tuple[List[Dict[str, Any]], int]:
    """Devuelve (documentos de la página, total de coincidencias)."""
    items = list(coll.find(query).sort(sort).skip(page.skip).limit(page.limit))
    total = coll.count_documents(query)
    return items, total
