"""
Casos de uso de notas: consultas por fecha, listado paginado, CRUD y pin.

Las tareas enlazadas (`linked_tasks`) se guardan como lista de ids sin validar
que existan ni que pertenezcan a la misma cuenta.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Tuple

from bson import ObjectId

from taskboard.core.exceptions import NotFoundError
from taskboard.core.time import as_utc, day_bounds, utcnow
from taskboard.domain.filters import NoteFilter, PageSpec, SortSpec
from taskboard.repositories import note_repo as repo
from taskboard.services import derived_fields
from taskboard.services.validation import clean_note_payload

_log = logging.getLogger("taskboard.notes")

DAY_SORT = [("is_pinned", -1), ("created_at", -1), ("_id", -1)]
RANGE_SORT = [("date", 1), ("is_pinned", -1), ("created_at", -1), ("_id", -1)]


def note_view(doc: Dict[str, Any]) -> Dict[str, Any]:
    view = {
        "id": str(doc["_id"]),
        "user": str(doc["user_id"]),
        "title": doc.get("title"),
        "content": doc.get("content"),
        "date": as_utc(doc.get("date")),
        "tags": doc.get("tags") or [],
        "color": doc.get("color") or "default",
        "is_pinned": bool(doc.get("is_pinned")),
        "linked_tasks": [str(t) for t in doc.get("linked_tasks") or []],
        "created_at": as_utc(doc.get("created_at")),
        "updated_at": as_utc(doc.get("updated_at")),
    }
    view.update(derived_fields.note_fields(doc))
    return view


def notes_for_day(user_id: Any, day: datetime) -> List[Dict[str, Any]]:
    """Notas del día [00:00:00.000, 23:59:59.999]: fijadas primero, luego recientes."""
    start, end = day_bounds(day.date())
    return [note_view(d) for d in repo.list_notes_between(user_id, start, end, DAY_SORT)]


def notes_for_range(user_id: Any, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    """Notas con fecha en [start, end]: por fecha ascendente, fijadas, recientes."""
    return [note_view(d) for d in repo.list_notes_between(user_id, start, end, RANGE_SORT)]


def list_notes(user_id: Any, flt: NoteFilter, sort: SortSpec, page: PageSpec) -> Dict[str, Any]:
    items, total = repo.list_notes(user_id, flt, sort, page)
    return {"notes": [note_view(d) for d in items], "pagination": page.summary(total)}


def get_note(user_id: Any, note_id: str) -> Dict[str, Any]:
    doc = repo.get_note(user_id, note_id)
    if not doc:
        raise NotFoundError("Note not found")
    return note_view(doc)


def create_note(user_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Crea la nota; sin `date` explícita la fecha lógica es la de creación."""
    data = clean_note_payload(payload, partial=False)
    now = utcnow()
    doc = {
        "user_id": user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id)),
        "title": data["title"],
        "content": data["content"],
        "date": data.get("date") or now,
        "tags": data.get("tags") or [],
        "color": data.get("color") or "default",
        "is_pinned": bool(data.get("is_pinned")),
        "linked_tasks": data.get("linked_tasks") or [],
        "created_at": now,
        "updated_at": now,
    }
    saved = repo.insert_note(doc)
    _log.info("note creada id=%s user=%s", saved["_id"], user_id)
    return note_view(saved)


def update_note(user_id: Any, note_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Actualización parcial; `date: null` explícito la reinicia a ahora."""
    data = clean_note_payload(payload, partial=True)
    if "date" in data and data["date"] is None:
        data["date"] = utcnow()
    doc = repo.update_note(user_id, note_id, data)
    if not doc:
        raise NotFoundError("Note not found")
    return note_view(doc)


def toggle_pin(user_id: Any, note_id: str) -> Tuple[Dict[str, Any], str]:
    """Invierte `is_pinned`; devuelve (nota, "pinned" | "unpinned").

    La escritura es condicional al valor leído. Si otro escritor cambió el pin
    entretanto, se devuelve el estado vigente (gana la última escritura).
    """
    current = repo.get_note(user_id, note_id)
    if not current:
        raise NotFoundError("Note not found")
    was_pinned = bool(current.get("is_pinned"))
    doc = repo.set_pinned_if(user_id, note_id, was_pinned, not was_pinned)
    if doc is None:
        doc = repo.get_note(user_id, note_id)
        if doc is None:
            raise NotFoundError("Note not found")
    state = "pinned" if doc.get("is_pinned") else "unpinned"
    return note_view(doc), state


def delete_note(user_id: Any, note_id: str) -> None:
    if not repo.delete_note(user_id, note_id):
        raise NotFoundError("Note not found")


def bulk_delete(user_id: Any, note_ids: List[str]) -> int:
    return repo.delete_notes(user_id, note_ids)
