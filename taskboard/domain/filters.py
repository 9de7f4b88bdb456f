"""Criterios de consulta explícitos para tareas y notas.

Los routers construyen estos modelos a partir de la query string y los
repositorios los traducen a documentos de consulta de Mongo; así la semántica
del filtrado no depende del motor de almacenamiento.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

TaskStatus = Literal["pending", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]
NoteColor = Literal["default", "blue", "green", "yellow", "red", "purple", "pink"]

# Variantes para la query string: "all" equivale a no filtrar
TaskStatusParam = Literal["pending", "in-progress", "completed", "all"]
TaskPriorityParam = Literal["low", "medium", "high", "urgent", "all"]
NoteColorParam = Literal["default", "blue", "green", "yellow", "red", "purple", "pink", "all"]

TASK_STATUSES = ["pending", "in-progress", "completed"]
TASK_PRIORITIES = ["low", "medium", "high", "urgent"]
NOTE_COLORS = ["default", "blue", "green", "yellow", "red", "purple", "pink"]

# Nombre público (camelCase) -> campo almacenado
TASK_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "completedAt": "completed_at",
    "dueDate": "due_date",
    "title": "title",
    "status": "status",
    "priority": "priority",
    "order": "order",
}

NOTE_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "date": "date",
    "title": "title",
    "color": "color",
    "isPinned": "is_pinned",
}


class SortSpec(BaseModel):
    field: str = "created_at"
    direction: Literal[1, -1] = -1


class PageSpec(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def summary(self, total: int) -> dict:
        """Metadatos de paginación para la respuesta (página 1-indexada)."""
        pages = (total + self.limit - 1) // self.limit
        return {
            "current": self.page,
            "pages": pages,
            "total": total,
            "has_next": self.page < pages,
            "has_prev": self.page > 1,
        }


class TaskFilter(BaseModel):
    """Filtro de tareas; `None` significa "sin filtro" para cada campo."""

    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    tag: Optional[str] = None
    search: Optional[str] = None
    due_from: Optional[datetime] = None
    due_to: Optional[datetime] = None


class NoteFilter(BaseModel):
    tag: Optional[str] = None
    color: Optional[NoteColor] = None
    is_pinned: Optional[bool] = None
    search: Optional[str] = None
