"""
Endpoints para `tasks` (acotados a la cuenta autenticada).
"""
from typing import Literal, Optional

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, Query, status

from taskboard.api.deps import date_param, date_range, get_current_user_id, get_page, sort_spec
from taskboard.api.schemas.common import BulkDeleteOut, MessageOut
from taskboard.api.schemas.task import (
    BulkDeletePayload,
    BulkReorderOut,
    BulkReorderPayload,
    OrderPayload,
    SubtaskTogglePayload,
    TaskCreate,
    TaskEnvelope,
    TaskListOut,
    TaskOut,
    TaskStatsOut,
    TaskUpdate,
)
from taskboard.core.time import day_bounds
from taskboard.domain.filters import TASK_SORT_FIELDS, PageSpec, TaskFilter, TaskPriorityParam, TaskStatusParam
from taskboard.services import task_service as service

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=TaskListOut, summary="Listar tareas")
def list_tasks(
    status_f: Optional[TaskStatusParam] = Query(default=None, alias="status"),
    priority: Optional[TaskPriorityParam] = Query(default=None),
    tag: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    due_date: Optional[str] = Query(default=None, alias="dueDate"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    page: PageSpec = Depends(get_page),
    user_id: ObjectId = Depends(get_current_user_id),
):
    if due_date:
        day = date_param("dueDate", due_date)[0]
        due_from, due_to = day_bounds(day.date())
    else:
        due_from, due_to = date_range(start_date, end_date)
    flt = TaskFilter(
        status=None if status_f == "all" else status_f,
        priority=None if priority == "all" else priority,
        tag=tag or None,
        search=search or None,
        due_from=due_from,
        due_to=due_to,
    )
    return service.list_tasks(user_id, flt, sort_spec(sort_by, sort_order, TASK_SORT_FIELDS), page)


@router.get("/stats", response_model=TaskStatsOut, summary="Estadísticas de tareas")
def task_stats(user_id: ObjectId = Depends(get_current_user_id)):
    return service.task_stats(user_id)


@router.put("/bulk/reorder", response_model=BulkReorderOut, summary="Reordenar tareas en lote")
def bulk_reorder(payload: BulkReorderPayload, user_id: ObjectId = Depends(get_current_user_id)):
    matched = service.bulk_reorder(user_id, [item.id for item in payload.task_orders])
    return {"message": "Task orders updated successfully", "matched_count": matched}


@router.delete("/bulk/delete", response_model=BulkDeleteOut, summary="Borrar tareas en lote")
def bulk_delete(payload: BulkDeletePayload = Body(...), user_id: ObjectId = Depends(get_current_user_id)):
    deleted = service.bulk_delete(user_id, payload.task_ids)
    return {"message": f"{deleted} tasks deleted successfully", "deleted_count": deleted}


@router.get("/{task_id}", response_model=TaskOut, summary="Obtener tarea")
def get_task(task_id: str, user_id: ObjectId = Depends(get_current_user_id)):
    return service.get_task(user_id, task_id)


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED, summary="Crear tarea")
def create_task(payload: TaskCreate, user_id: ObjectId = Depends(get_current_user_id)):
    task = service.create_task(user_id, payload.model_dump(exclude_unset=True))
    return {"message": "Task created successfully", "task": task}


@router.put("/{task_id}", response_model=TaskEnvelope, summary="Actualizar tarea (parcial)")
def update_task(task_id: str, payload: TaskUpdate, user_id: ObjectId = Depends(get_current_user_id)):
    task = service.update_task(user_id, task_id, payload.model_dump(exclude_unset=True))
    return {"message": "Task updated successfully", "task": task}


@router.put("/{task_id}/order", response_model=TaskEnvelope, summary="Cambiar posición de una tarea")
def update_task_order(task_id: str, payload: OrderPayload, user_id: ObjectId = Depends(get_current_user_id)):
    task = service.reorder_task(user_id, task_id, payload.new_order)
    return {"message": "Task order updated successfully", "task": task}


@router.patch("/{task_id}/subtasks/{index}", response_model=TaskEnvelope, summary="Marcar subtarea")
def toggle_subtask(
    task_id: str,
    index: int,
    payload: SubtaskTogglePayload,
    user_id: ObjectId = Depends(get_current_user_id),
):
    task = service.toggle_subtask(user_id, task_id, index, payload.completed)
    return {"message": "Subtask updated successfully", "task": task}


@router.delete("/{task_id}", response_model=MessageOut, summary="Borrar tarea")
def delete_task(task_id: str, user_id: ObjectId = Depends(get_current_user_id)):
    service.delete_task(user_id, task_id)
    return {"message": "Task deleted successfully"}
