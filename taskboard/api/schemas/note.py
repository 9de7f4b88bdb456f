"""
Esquemas Pydantic para `notes`.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from taskboard.api.schemas.common import CamelModel, PaginationOut
from taskboard.domain.filters import NoteColor


class NoteCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    color: Optional[NoteColor] = None
    is_pinned: Optional[bool] = None
    linked_tasks: Optional[List[str]] = None


class NoteUpdate(NoteCreate):
    """Mismos campos que la creación; solo se aplican los enviados."""


class BulkDeletePayload(CamelModel):
    note_ids: List[str] = Field(min_length=1)


class NoteOut(CamelModel):
    id: str = Field(serialization_alias="_id")
    user: str
    title: str
    content: str
    date: datetime
    tags: List[str]
    color: NoteColor
    is_pinned: bool
    linked_tasks: List[str]
    created_at: datetime
    updated_at: datetime
    formatted_date: Optional[str] = None
    day_of_year: Optional[int] = None


class NoteEnvelope(CamelModel):
    message: str
    note: NoteOut


class NoteListOut(CamelModel):
    """Listado; `pagination` solo aparece en el listado genérico."""
    notes: List[NoteOut]
    pagination: Optional[PaginationOut] = None
