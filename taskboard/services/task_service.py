"""
Casos de uso de tareas: listado paginado, estadísticas, CRUD, reordenamiento y
sincronización del estado con las subtareas.

Los documentos se devuelven como "vistas" (dicts snake_case con ids en str y
campos derivados) listas para los esquemas de respuesta.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from bson import ObjectId

from taskboard.core.exceptions import NotFoundError
from taskboard.core.time import as_utc, start_of_day, utcnow
from taskboard.domain.filters import TASK_PRIORITIES, TASK_STATUSES, PageSpec, SortSpec, TaskFilter
from taskboard.repositories import task_repo as repo
from taskboard.services import derived_fields
from taskboard.services.validation import clean_task_payload

_log = logging.getLogger("taskboard.tasks")


def task_view(doc: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Documento de Mongo -> vista con ids en str y campos derivados."""
    view = {
        "id": str(doc["_id"]),
        "user": str(doc["user_id"]),
        "title": doc.get("title"),
        "description": doc.get("description"),
        "status": doc.get("status"),
        "priority": doc.get("priority"),
        "tags": doc.get("tags") or [],
        "due_date": as_utc(doc.get("due_date")),
        "subtasks": [
            {
                "id": str(s["_id"]) if s.get("_id") else None,
                "title": s.get("title"),
                "completed": bool(s.get("completed")),
                "completed_at": as_utc(s.get("completed_at")),
            }
            for s in doc.get("subtasks") or []
        ],
        "order": doc.get("order", 0),
        "completed_at": as_utc(doc.get("completed_at")),
        "created_at": as_utc(doc.get("created_at")),
        "updated_at": as_utc(doc.get("updated_at")),
    }
    view.update(derived_fields.task_fields(doc, now))
    return view


def _completion_fields(previous: Optional[str], status: str, now: datetime) -> Dict[str, Any]:
    if status == "completed" and previous != "completed":
        return {"completed_at": now}
    if status != "completed":
        return {"completed_at": None}
    return {}


def _merge_subtasks(existing: List[Dict[str, Any]], incoming: List[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
    """Asigna ids y `completed_at` a las subtareas entrantes.

    Una subtarea que conserva su id y ya estaba completada mantiene su
    `completed_at` original.
    """
    known = {s.get("_id"): s for s in existing if s.get("_id")}
    out = []
    for sub in incoming:
        prev = known.get(sub.get("_id"))
        completed_at = None
        if sub["completed"]:
            completed_at = prev.get("completed_at") if prev and prev.get("completed") else None
            completed_at = completed_at or now
        out.append({
            "_id": sub.get("_id") or ObjectId(),
            "title": sub["title"],
            "completed": sub["completed"],
            "completed_at": completed_at,
        })
    return out


def _sync_status(user_id: Any, doc: Dict[str, Any]) -> Dict[str, Any]:
    """Recalcula el estado agregado tras escribir subtareas.

    La escritura del nuevo estado es condicional a que las subtareas no hayan
    cambiado desde la lectura; si perdió la carrera, el otro escritor aplica
    el recálculo sobre la versión final y aquí solo se relee.
    """
    status = derived_fields.aggregate_status(doc.get("status"), doc.get("subtasks") or [])
    if status == doc.get("status"):
        return doc
    fields = {"status": status, **_completion_fields(doc.get("status"), status, utcnow())}
    updated = repo.set_status_if_subtasks(doc["_id"], doc.get("subtasks") or [], fields)
    if updated is None:
        _log.info("estado de task=%s recalculado por otro escritor", doc["_id"])
        updated = repo.get_task(user_id, doc["_id"])
    if updated is None:
        raise NotFoundError("Task not found")
    return updated


def list_tasks(user_id: Any, flt: TaskFilter, sort: SortSpec, page: PageSpec) -> Dict[str, Any]:
    items, total = repo.list_tasks(user_id, flt, sort, page)
    now = utcnow()
    return {"tasks": [task_view(d, now) for d in items], "pagination": page.summary(total)}


def task_stats(user_id: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Conteos planos por estado y prioridad, vencidas y con vencimiento hoy (UTC).

    Las claves de estado van en snake_case (`in-progress` -> `in_progress`).
    """
    now = now or utcnow()
    by_status = repo.count_by_field(user_id, "status")
    by_priority = repo.count_by_field(user_id, "priority")
    today = start_of_day(now.date())
    return {
        "total": sum(by_status.values()),
        **{s.replace("-", "_"): by_status.get(s, 0) for s in TASK_STATUSES},
        **{p: by_priority.get(p, 0) for p in TASK_PRIORITIES},
        "overdue": repo.count_open_due(user_id, lt=now),
        "due_today": repo.count_open_due(user_id, gte=today, lt=today + timedelta(days=1)),
    }


def get_task(user_id: Any, task_id: str) -> Dict[str, Any]:
    doc = repo.get_task(user_id, task_id)
    if not doc:
        raise NotFoundError("Task not found")
    return task_view(doc, utcnow())


def create_task(user_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Crea la tarea con defaults; `order` = mayor order de la cuenta + 1 (0 si no hay)."""
    data = clean_task_payload(payload, partial=False)
    now = utcnow()

    order = data.get("order")
    if order is None:
        highest = repo.max_order(user_id)
        order = 0 if highest is None else highest + 1

    status = data.get("status") or "pending"
    doc = {
        "user_id": user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id)),
        "title": data["title"],
        "description": data.get("description"),
        "status": status,
        "priority": data.get("priority") or "medium",
        "tags": data.get("tags") or [],
        "due_date": data.get("due_date"),
        "subtasks": _merge_subtasks([], data.get("subtasks") or [], now),
        "order": order,
        "completed_at": now if status == "completed" else None,
        "created_at": now,
        "updated_at": now,
    }
    saved = repo.insert_task(doc)
    _log.info("task creada id=%s user=%s order=%s", saved["_id"], user_id, order)
    return task_view(saved, now)


def update_task(user_id: Any, task_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Actualización parcial: solo cambian los campos enviados."""
    data = clean_task_payload(payload, partial=True)
    current = repo.get_task(user_id, task_id)
    if not current:
        raise NotFoundError("Task not found")

    now = utcnow()
    if "subtasks" in data:
        data["subtasks"] = _merge_subtasks(current.get("subtasks") or [], data["subtasks"], now)
    if "status" in data:
        data.update(_completion_fields(current.get("status"), data["status"], now))

    updated = repo.update_task(user_id, task_id, data)
    if not updated:
        raise NotFoundError("Task not found")
    if "subtasks" in data and "status" not in data:
        updated = _sync_status(user_id, updated)
    return task_view(updated, utcnow())


def toggle_subtask(user_id: Any, task_id: str, index: int, completed: bool) -> Dict[str, Any]:
    """Marca una subtarea y sincroniza el estado de la tarea."""
    doc = repo.set_subtask_completed(user_id, task_id, index, completed)
    if doc is None:
        if repo.get_task(user_id, task_id) is None:
            raise NotFoundError("Task not found")
        raise NotFoundError("Subtask not found")
    doc = _sync_status(user_id, doc)
    return task_view(doc, utcnow())


def reorder_task(user_id: Any, task_id: str, new_order: int) -> Dict[str, Any]:
    """Fija `order` de una tarea; no renormaliza las demás."""
    doc = repo.set_order(user_id, task_id, new_order)
    if not doc:
        raise NotFoundError("Task not found")
    return task_view(doc, utcnow())


def bulk_reorder(user_id: Any, task_ids: List[str]) -> int:
    matched = repo.bulk_set_order(user_id, task_ids)
    if matched != len(task_ids):
        _log.info("bulk reorder user=%s: %s de %s ids aplicados", user_id, matched, len(task_ids))
    return matched


def delete_task(user_id: Any, task_id: str) -> None:
    if not repo.delete_task(user_id, task_id):
        raise NotFoundError("Task not found")


def bulk_delete(user_id: Any, task_ids: List[str]) -> int:
    return repo.delete_tasks(user_id, task_ids)
