"""
Endpoints para `notes` (acotados a la cuenta autenticada).

`date` o `startDate`+`endDate` tienen prioridad sobre los filtros genéricos y
devuelven la lista sin paginar.
"""
from typing import Literal, Optional

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, Query, status

from taskboard.api.deps import date_param, date_range, get_current_user_id, get_page, sort_spec
from taskboard.api.schemas.common import BulkDeleteOut, MessageOut
from taskboard.api.schemas.note import BulkDeletePayload, NoteCreate, NoteEnvelope, NoteListOut, NoteOut, NoteUpdate
from taskboard.domain.filters import NOTE_SORT_FIELDS, NoteColorParam, NoteFilter, PageSpec
from taskboard.services import note_service as service

router = APIRouter(prefix="/notes", tags=["Notes"])


@router.get("", response_model=NoteListOut, response_model_exclude_unset=True, summary="Listar notas")
def list_notes(
    date: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    tag: Optional[str] = Query(default=None),
    color: Optional[NoteColorParam] = Query(default=None),
    is_pinned: Optional[bool] = Query(default=None, alias="isPinned"),
    search: Optional[str] = Query(default=None),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    page: PageSpec = Depends(get_page),
    user_id: ObjectId = Depends(get_current_user_id),
):
    if date:
        day = date_param("date", date)[0]
        return {"notes": service.notes_for_day(user_id, day)}
    if start_date and end_date:
        lo, hi = date_range(start_date, end_date)
        return {"notes": service.notes_for_range(user_id, lo, hi)}

    flt = NoteFilter(
        tag=tag or None,
        color=None if color == "all" else color,
        is_pinned=is_pinned,
        search=search or None,
    )
    return service.list_notes(user_id, flt, sort_spec(sort_by, sort_order, NOTE_SORT_FIELDS), page)


@router.delete("/bulk/delete", response_model=BulkDeleteOut, summary="Borrar notas en lote")
def bulk_delete(payload: BulkDeletePayload = Body(...), user_id: ObjectId = Depends(get_current_user_id)):
    deleted = service.bulk_delete(user_id, payload.note_ids)
    return {"message": f"{deleted} notes deleted successfully", "deleted_count": deleted}


@router.get("/{note_id}", response_model=NoteOut, summary="Obtener nota")
def get_note(note_id: str, user_id: ObjectId = Depends(get_current_user_id)):
    return service.get_note(user_id, note_id)


@router.post("", response_model=NoteEnvelope, status_code=status.HTTP_201_CREATED, summary="Crear nota")
def create_note(payload: NoteCreate, user_id: ObjectId = Depends(get_current_user_id)):
    note = service.create_note(user_id, payload.model_dump(exclude_unset=True))
    return {"message": "Note created successfully", "note": note}


@router.put("/{note_id}", response_model=NoteEnvelope, summary="Actualizar nota (parcial)")
def update_note(note_id: str, payload: NoteUpdate, user_id: ObjectId = Depends(get_current_user_id)):
    note = service.update_note(user_id, note_id, payload.model_dump(exclude_unset=True))
    return {"message": "Note updated successfully", "note": note}


@router.patch("/{note_id}/pin", response_model=NoteEnvelope, summary="Fijar/desfijar nota")
def toggle_pin(note_id: str, user_id: ObjectId = Depends(get_current_user_id)):
    note, state = service.toggle_pin(user_id, note_id)
    return {"message": f"Note {state} successfully", "note": note}


@router.delete("/{note_id}", response_model=MessageOut, summary="Borrar nota")
def delete_note(note_id: str, user_id: ObjectId = Depends(get_current_user_id)):
    service.delete_note(user_id, note_id)
    return {"message": "Note deleted successfully"}
