"""Validación explícita de campos antes de cualquier escritura.

Cada función recibe el payload ya tipado por Pydantic (claves snake_case, solo
los campos enviados), normaliza valores (trim, dedupe de tags) y acumula todas
las violaciones como `FieldError` para reportarlas juntas.
"""
from typing import Any, Dict, List, Optional

from bson import ObjectId

from taskboard.core.exceptions import FieldError, ValidationError
from taskboard.core.time import to_storage

TITLE_MAX = 100
TAG_MAX = 20
NOTE_CONTENT_MAX = 2000
NAME_MAX = 50
PASSWORD_MIN = 6
AVATAR_MAX = 500

# Claves de `preferences` en el JSON (para los mensajes de error)
PREFERENCE_FIELDS = {"theme": "theme", "default_view": "defaultView", "task_sort_by": "taskSortBy"}


def _required_text(data: Dict[str, Any], key: str, label: str, limit: int, errors: List[FieldError]) -> None:
    value = data.get(key)
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        errors.append(FieldError(key, f"{label} is required"))
        return
    if len(text) > limit:
        errors.append(FieldError(key, f"{label} cannot exceed {limit} characters"))
    data[key] = text


def _not_null(data: Dict[str, Any], key: str, label: str, errors: List[FieldError]) -> None:
    if key in data and data[key] is None:
        errors.append(FieldError(key, f"{label} cannot be null"))


def clean_tags(tags: Optional[List[str]], errors: List[FieldError]) -> List[str]:
    out: List[str] = []
    for raw in tags or []:
        tag = (raw or "").strip()
        if not tag or tag in out:
            continue
        if len(tag) > TAG_MAX:
            errors.append(FieldError("tags", f"Tag cannot exceed {TAG_MAX} characters"))
            continue
        out.append(tag)
    return out


def _clean_subtasks(items: Optional[List[Dict[str, Any]]], errors: List[FieldError]) -> List[Dict[str, Any]]:
    out = []
    for i, item in enumerate(items or []):
        title = (item.get("title") or "").strip()
        if not title:
            errors.append(FieldError(f"subtasks.{i}.title", "Subtask title is required"))
            continue
        if len(title) > TITLE_MAX:
            errors.append(FieldError(f"subtasks.{i}.title", f"Subtask title cannot exceed {TITLE_MAX} characters"))
            continue
        sub: Dict[str, Any] = {"title": title, "completed": bool(item.get("completed"))}
        sid = item.get("id")
        if sid is not None:
            if not ObjectId.is_valid(str(sid)):
                errors.append(FieldError(f"subtasks.{i}.id", "Invalid subtask id"))
                continue
            sub["_id"] = ObjectId(str(sid))
        out.append(sub)
    return out


def clean_task_payload(payload: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
    """Valida y normaliza los campos de una tarea.

    Con `partial=False` (creación) el título es obligatorio; con `partial=True`
    solo se validan los campos presentes. `None` explícito limpia los campos
    opcionales (descripción, fecha límite, tags, subtareas).
    """
    data = dict(payload)
    errors: List[FieldError] = []

    if not partial or "title" in data:
        _required_text(data, "title", "Task title", TITLE_MAX, errors)
    if "description" in data:
        desc = data["description"]
        data["description"] = desc.strip() if isinstance(desc, str) else None
    _not_null(data, "status", "Task status", errors)
    _not_null(data, "priority", "Task priority", errors)
    _not_null(data, "order", "Task order", errors)
    if "tags" in data:
        data["tags"] = clean_tags(data["tags"], errors)
    if "due_date" in data:
        data["due_date"] = to_storage(data["due_date"])
    if "subtasks" in data:
        data["subtasks"] = _clean_subtasks(data["subtasks"], errors)

    if errors:
        raise ValidationError(errors)
    return data


def clean_note_payload(payload: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
    """Valida y normaliza los campos de una nota (misma convención que tareas)."""
    data = dict(payload)
    errors: List[FieldError] = []

    if not partial or "title" in data:
        _required_text(data, "title", "Note title", TITLE_MAX, errors)
    if not partial or "content" in data:
        _required_text(data, "content", "Note content", NOTE_CONTENT_MAX, errors)
    _not_null(data, "color", "Note color", errors)
    if "is_pinned" in data and data["is_pinned"] is None:
        data["is_pinned"] = False
    if "tags" in data:
        data["tags"] = clean_tags(data["tags"], errors)
    if "date" in data:
        data["date"] = to_storage(data["date"])
    if "linked_tasks" in data:
        linked = []
        for i, raw in enumerate(data["linked_tasks"] or []):
            if not ObjectId.is_valid(str(raw)):
                errors.append(FieldError(f"linkedTasks.{i}", "Invalid task id"))
                continue
            oid = ObjectId(str(raw))
            if oid not in linked:
                linked.append(oid)
        data["linked_tasks"] = linked

    if errors:
        raise ValidationError(errors)
    return data


def clean_account_payload(payload: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
    data = dict(payload)
    errors: List[FieldError] = []
    if not partial or "name" in data:
        _required_text(data, "name", "Name", NAME_MAX, errors)
    if "password" in data:
        check_password(data.get("password"), "password", errors)
    if "avatar" in data:
        avatar = data["avatar"].strip() if isinstance(data["avatar"], str) else ""
        if len(avatar) > AVATAR_MAX:
            errors.append(FieldError("avatar", f"Avatar cannot exceed {AVATAR_MAX} characters"))
        data["avatar"] = avatar or None
    if "preferences" in data:
        prefs = data["preferences"]
        if prefs is None:
            errors.append(FieldError("preferences", "Preferences cannot be null"))
        else:
            for key, value in prefs.items():
                if value is None:
                    errors.append(FieldError(f"preferences.{PREFERENCE_FIELDS[key]}", "Preference cannot be null"))
    if errors:
        raise ValidationError(errors)
    return data


def check_password(value: Optional[str], field: str, errors: List[FieldError]) -> None:
    if not value or len(value) < PASSWORD_MIN:
        errors.append(FieldError(field, f"Password must be at least {PASSWORD_MIN} characters long"))
