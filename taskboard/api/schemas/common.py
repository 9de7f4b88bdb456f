"""
Base de esquemas: JSON en camelCase hacia fuera, nombres snake_case en Python.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageOut(CamelModel):
    message: str


class PaginationOut(CamelModel):
    current: int
    pages: int
    total: int
    has_next: bool
    has_prev: bool


class BulkDeleteOut(CamelModel):
    message: str
    deleted_count: int
