"""Campos derivados de tareas y notas, calculados en cada lectura.

Son funciones puras de (hora actual, documento); nunca se persisten ni se
cachean porque dependen de `now`.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from taskboard.core.time import to_storage

MONTHS_EN = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def is_overdue(task: Dict[str, Any], now: datetime) -> bool:
    due = task.get("due_date")
    return due is not None and to_storage(due) < to_storage(now) and task.get("status") != "completed"


def days_until_due(task: Dict[str, Any], now: datetime) -> Optional[int]:
    """Diferencia en días de calendario (UTC) entre due_date y hoy; puede ser negativa."""
    due = task.get("due_date")
    if due is None:
        return None
    return (to_storage(due).date() - to_storage(now).date()).days


def completion_percentage(subtasks: List[Dict[str, Any]]) -> int:
    """round(100 * completadas / total), redondeando .5 hacia arriba; 0 sin subtareas."""
    total = len(subtasks or [])
    if total == 0:
        return 0
    done = sum(1 for s in subtasks if s.get("completed"))
    return (200 * done + total) // (2 * total)


def aggregate_status(current: str, subtasks: List[Dict[str, Any]]) -> str:
    """Estado de la tarea tras un cambio en sus subtareas.

    - Todas completadas (y al menos una) -> `completed`.
    - Estaba `completed` y alguna quedó pendiente -> `in-progress`.
    - En otro caso se conserva el estado actual.
    """
    if subtasks and all(s.get("completed") for s in subtasks):
        return "completed"
    if current == "completed" and subtasks:
        return "in-progress"
    return current


def task_fields(task: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    return {
        "is_overdue": is_overdue(task, now),
        "days_until_due": days_until_due(task, now),
        "completion_percentage": completion_percentage(task.get("subtasks") or []),
    }


def formatted_date(value: datetime) -> str:
    """Fecha legible estilo "May 1, 2024"."""
    return f"{MONTHS_EN[value.month - 1]} {value.day}, {value.year}"


def day_of_year(value: datetime) -> int:
    return value.timetuple().tm_yday


def note_fields(note: Dict[str, Any]) -> Dict[str, Any]:
    d = note.get("date") or note.get("created_at")
    if d is None:
        return {"formatted_date": None, "day_of_year": None}
    d = to_storage(d)
    return {"formatted_date": formatted_date(d), "day_of_year": day_of_year(d)}


def initials(name: Optional[str]) -> str:
    """Iniciales del nombre en mayúsculas ("ana maria" -> "AM")."""
    return "".join(part[0] for part in (name or "").split()).upper()
