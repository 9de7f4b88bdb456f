"""Repo de la colección `task`.

Todas las operaciones van acotadas por dueño (`user_id`) y id de la tarea: una
tarea de otra cuenta es indistinguible de una inexistente.
"""
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument, UpdateOne

from taskboard.core.time import utcnow
from taskboard.domain.filters import PageSpec, SortSpec, TaskFilter
from taskboard.infrastructure.db.mongo import get_db
from taskboard.repositories.common import find_page, search_clause, to_object_id, to_object_ids

COLLECTION = "task"


def _coll():
    return get_db()[COLLECTION]


def _scope(user_id: Any, task_id: Any) -> Optional[Dict[str, Any]]:
    """Filtro dueño + id; None si el id no es válido (equivale a no encontrado)."""
    oid = to_object_id(task_id)
    if oid is None:
        return None
    return {"_id": oid, "user_id": to_object_id(user_id)}


def build_query(user_id: Any, flt: TaskFilter) -> Dict[str, Any]:
    """Traduce un `TaskFilter` al documento de consulta de Mongo."""
    query: Dict[str, Any] = {"user_id": to_object_id(user_id)}
    if flt.status:
        query["status"] = flt.status
    if flt.priority:
        query["priority"] = flt.priority
    if flt.tag:
        query["tags"] = flt.tag
    if flt.due_from is not None or flt.due_to is not None:
        rng: Dict[str, Any] = {}
        if flt.due_from is not None:
            rng["$gte"] = flt.due_from
        if flt.due_to is not None:
            rng["$lte"] = flt.due_to
        query["due_date"] = rng
    text = search_clause(flt.search, ("title", "description"))
    if text:
        query.update(text)
    return query


def build_sort(sort: SortSpec) -> List[Tuple[str, int]]:
    """Orden pedido + desempate por creación descendente (y por _id)."""
    keys = [(sort.field, sort.direction)]
    if sort.field != "created_at":
        keys.append(("created_at", -1))
    keys.append(("_id", -1))
    return keys


def list_tasks(user_id: Any, flt: TaskFilter, sort: SortSpec, page: PageSpec) -> Tuple[List[Dict[str, Any]], int]:
    return find_page(_coll(), build_query(user_id, flt), build_sort(sort), page)


def count_by_field(user_id: Any, field: str) -> Dict[str, int]:
    """Conteo de tareas agrupado por un campo escalar (status, priority)."""
    pipeline = [
        {"$match": {"user_id": to_object_id(user_id)}},
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
    ]
    return {row["_id"]: row["count"] for row in _coll().aggregate(pipeline)}


def count_open_due(user_id: Any, *, gte=None, lt=None) -> int:
    """Cuenta tareas no completadas con due_date en [gte, lt)."""
    rng: Dict[str, Any] = {"$ne": None}
    if gte is not None:
        rng["$gte"] = gte
    if lt is not None:
        rng["$lt"] = lt
    query = {"user_id": to_object_id(user_id), "status": {"$ne": "completed"}, "due_date": rng}
    return _coll().count_documents(query)


def get_task(user_id: Any, task_id: Any) -> Optional[Dict[str, Any]]:
    scope = _scope(user_id, task_id)
    if scope is None:
        return None
    return _coll().find_one(scope)


def max_order(user_id: Any) -> Optional[int]:
    """Mayor `order` de la cuenta, o None si no tiene tareas."""
    doc = _coll().find_one({"user_id": to_object_id(user_id)}, {"order": 1}, sort=[("order", -1)])
    if not doc:
        return None
    return doc.get("order")


def insert_task(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Inserta la tarea y devuelve el documento guardado (con `_id`)."""
    data = dict(doc)
    now = utcnow()
    data.setdefault("created_at", now)
    data.setdefault("updated_at", now)
    res = _coll().insert_one(data)
    data["_id"] = res.inserted_id
    return data


def update_task(user_id: Any, task_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """`$set` parcial acotado por dueño; devuelve el documento actualizado o None."""
    scope = _scope(user_id, task_id)
    if scope is None:
        return None
    return _coll().find_one_and_update(
        scope,
        {"$set": {**fields, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def set_subtask_completed(user_id: Any, task_id: Any, index: int, completed: bool) -> Optional[Dict[str, Any]]:
    """Marca/desmarca una subtarea en una sola actualización atómica del documento.

    Devuelve el documento tras la escritura, o None si la tarea (o el índice)
    no existe para ese dueño.
    """
    scope = _scope(user_id, task_id)
    if scope is None or index < 0:
        return None
    now = utcnow()
    key = f"subtasks.{index}"
    scope[key] = {"$exists": True}
    return _coll().find_one_and_update(
        scope,
        {"$set": {
            f"{key}.completed": completed,
            f"{key}.completed_at": now if completed else None,
            "updated_at": now,
        }},
        return_document=ReturnDocument.AFTER,
    )


def set_status_if_subtasks(task_id: Any, subtasks: List[Dict[str, Any]], fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Compare-and-set: aplica `fields` solo si las subtareas siguen como se leyeron.

    Si otro escritor cambió las subtareas entretanto, no escribe y devuelve
    None; ese escritor recalcula el estado con la versión más reciente.
    """
    return _coll().find_one_and_update(
        {"_id": to_object_id(task_id), "subtasks": subtasks},
        {"$set": {**fields, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def set_order(user_id: Any, task_id: Any, order: int) -> Optional[Dict[str, Any]]:
    return update_task(user_id, task_id, {"order": order})


def bulk_set_order(user_id: Any, task_ids: List[Any]) -> int:
    """Asigna `order = índice` a cada id en un lote no transaccional.

    Ids inválidos o de otra cuenta se saltan sin error (conservan su índice).
    El lote es ordenado: un error de escritura detiene el resto y se propaga.
    Devuelve cuántas tareas coincidieron.
    """
    owner = to_object_id(user_id)
    now = utcnow()
    ops = []
    for index, raw in enumerate(task_ids):
        oid = to_object_id(raw)
        if oid is None:
            continue
        ops.append(UpdateOne({"_id": oid, "user_id": owner}, {"$set": {"order": index, "updated_at": now}}))
    if not ops:
        return 0
    res = _coll().bulk_write(ops, ordered=True)
    return res.matched_count


def delete_task(user_id: Any, task_id: Any) -> bool:
    scope = _scope(user_id, task_id)
    if scope is None:
        return False
    return _coll().delete_one(scope).deleted_count == 1


def delete_tasks(user_id: Any, task_ids: List[Any]) -> int:
    """Borra las tareas del dueño entre `task_ids`; devuelve cuántas se borraron."""
    oids = to_object_ids(task_ids)
    if not oids:
        return 0
    res = _coll().delete_many({"_id": {"$in": oids}, "user_id": to_object_id(user_id)})
    return res.deleted_count
