"""
Esquemas Pydantic para `tasks`.

La validación de reglas (título obligatorio tras trim, longitudes, tags) vive
en `services/validation.py`; aquí solo tipos, enums y rangos numéricos.

Los ids de tareas y subtareas salen como `_id` (el cliente los usa como clave).
"""
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field, StrictBool, StrictInt

from taskboard.api.schemas.common import CamelModel, PaginationOut
from taskboard.domain.filters import TaskPriority, TaskStatus

# `order` se guarda como int32 de BSON
ORDER_MIN = -(2**31)
ORDER_MAX = 2**31 - 1


class SubtaskIn(CamelModel):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = None
    completed: bool = False


class TaskCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    subtasks: Optional[List[SubtaskIn]] = None
    order: Optional[StrictInt] = Field(default=None, ge=ORDER_MIN, le=ORDER_MAX)


class TaskUpdate(TaskCreate):
    """Mismos campos que la creación; solo se aplican los enviados."""


class OrderPayload(CamelModel):
    new_order: StrictInt = Field(ge=ORDER_MIN, le=ORDER_MAX)


class TaskOrderItem(CamelModel):
    id: str


class BulkReorderPayload(CamelModel):
    task_orders: List[TaskOrderItem]


class BulkDeletePayload(CamelModel):
    task_ids: List[str] = Field(min_length=1)


class SubtaskTogglePayload(CamelModel):
    completed: StrictBool


class SubtaskOut(CamelModel):
    id: Optional[str] = Field(default=None, serialization_alias="_id")
    title: str
    completed: bool
    completed_at: Optional[datetime] = None


class TaskOut(CamelModel):
    id: str = Field(serialization_alias="_id")
    user: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    tags: List[str]
    due_date: Optional[datetime] = None
    subtasks: List[SubtaskOut]
    order: int
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    # Derivados (se recalculan en cada lectura)
    is_overdue: bool
    days_until_due: Optional[int] = None
    completion_percentage: int


class TaskEnvelope(CamelModel):
    message: str
    task: TaskOut


class TaskListOut(CamelModel):
    tasks: List[TaskOut]
    pagination: PaginationOut


class TaskStatsOut(CamelModel):
    """Conteos planos: total, uno por estado y por prioridad, vencidas y de hoy."""
    total: int
    pending: int
    in_progress: int
    completed: int
    low: int
    medium: int
    high: int
    urgent: int
    overdue: int
    due_today: int


class BulkReorderOut(CamelModel):
    message: str
    matched_count: int
