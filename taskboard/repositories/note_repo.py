"""Repo de la colección `note`."""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument

from taskboard.core.time import utcnow
from taskboard.domain.filters import NoteFilter, PageSpec, SortSpec
from taskboard.infrastructure.db.mongo import get_db
from taskboard.repositories.common import find_page, search_clause, to_object_id, to_object_ids

COLLECTION = "note"


def _coll():
    return get_db()[COLLECTION]


def _scope(user_id: Any, note_id: Any) -> Optional[Dict[str, Any]]:
    oid = to_object_id(note_id)
    if oid is None:
        return None
    return {"_id": oid, "user_id": to_object_id(user_id)}


def build_query(user_id: Any, flt: NoteFilter) -> Dict[str, Any]:
    """Traduce un `NoteFilter` al documento de consulta de Mongo."""
    query: Dict[str, Any] = {"user_id": to_object_id(user_id)}
    if flt.tag:
        query["tags"] = flt.tag
    if flt.color:
        query["color"] = flt.color
    if flt.is_pinned is not None:
        query["is_pinned"] = flt.is_pinned
    text = search_clause(flt.search, ("title", "content"))
    if text:
        query.update(text)
    return query


def build_sort(sort: SortSpec) -> List[Tuple[str, int]]:
    """Campo pedido, luego fijadas primero, luego creación descendente."""
    keys = [(sort.field, sort.direction)]
    if sort.field != "is_pinned":
        keys.append(("is_pinned", -1))
    if sort.field != "created_at":
        keys.append(("created_at", -1))
    keys.append(("_id", -1))
    return keys


def list_notes(user_id: Any, flt: NoteFilter, sort: SortSpec, page: PageSpec) -> Tuple[List[Dict[str, Any]], int]:
    return find_page(_coll(), build_query(user_id, flt), build_sort(sort), page)


def list_notes_between(user_id: Any, start: datetime, end: datetime, sort: List[Tuple[str, int]]) -> List[Dict[str, Any]]:
    """Notas con `date` en [start, end] (ambos inclusivos) en el orden dado."""
    query = {"user_id": to_object_id(user_id), "date": {"$gte": start, "$lte": end}}
    return list(_coll().find(query).sort(sort))


def get_note(user_id: Any, note_id: Any) -> Optional[Dict[str, Any]]:
    scope = _scope(user_id, note_id)
    if scope is None:
        return None
    return _coll().find_one(scope)


def insert_note(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Inserta la nota y devuelve el documento guardado (con `_id`)."""
    data = dict(doc)
    now = utcnow()
    data.setdefault("created_at", now)
    data.setdefault("updated_at", now)
    data.setdefault("date", data["created_at"])
    res = _coll().insert_one(data)
    data["_id"] = res.inserted_id
    return data


def update_note(user_id: Any, note_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    scope = _scope(user_id, note_id)
    if scope is None:
        return None
    return _coll().find_one_and_update(
        scope,
        {"$set": {**fields, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def set_pinned_if(user_id: Any, note_id: Any, current: bool, pinned: bool) -> Optional[Dict[str, Any]]:
    """Compare-and-set sobre `is_pinned`: solo escribe si sigue valiendo `current`."""
    scope = _scope(user_id, note_id)
    if scope is None:
        return None
    scope["is_pinned"] = current
    return _coll().find_one_and_update(
        scope,
        {"$set": {"is_pinned": pinned, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def delete_note(user_id: Any, note_id: Any) -> bool:
    scope = _scope(user_id, note_id)
    if scope is None:
        return False
    return _coll().delete_one(scope).deleted_count == 1


def delete_notes(user_id: Any, note_ids: List[Any]) -> int:
    """Borra las notas del dueño entre `note_ids`; devuelve cuántas se borraron."""
    oids = to_object_ids(note_ids)
    if not oids:
        return 0
    res = _coll().delete_many({"_id": {"$in": oids}, "user_id": to_object_id(user_id)})
    return res.deleted_count
