"""
Bootstrap de la base Mongo: define y aplica validadores (JSON Schema) e índices.
Se ejecuta al inicio de la app para asegurar colecciones mínimas y consistencia.
No tumba la app si algo falla; deja warnings en casos no críticos.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging

from pymongo.errors import PyMongoError

from taskboard.domain.account import DEFAULT_VIEWS, TASK_SORT_PREFERENCES, THEMES
from taskboard.domain.filters import NOTE_COLORS, TASK_PRIORITIES, TASK_STATUSES
from taskboard.infrastructure.db.mongo import get_db
from taskboard.repositories.note_repo import COLLECTION as NOTE_COLL
from taskboard.repositories.task_repo import COLLECTION as TASK_COLL
from taskboard.repositories.user_repo import COLLECTION as USER_COLL

_log = logging.getLogger("taskboard.mongo.bootstrap")


def _collmod_or_create(name: str, validator: Dict[str, Any] | None) -> None:
    db = get_db()
    try:
        if name not in db.list_collection_names():
            if validator:
                db.create_collection(name, validator={"$jsonSchema": validator})
            else:
                db.create_collection(name)
        elif validator:
            db.command({
                "collMod": name,
                "validator": {"$jsonSchema": validator},
                "validationLevel": "moderate",
            })
    except PyMongoError as e:
        # No aborta el arranque; solo deja sin validator estricto.
        _log.warning("No se pudo aplicar validator en '%s': %s", name, e)


def _ensure_indexes(name: str, indexes: List[Dict[str, Any]]) -> None:
    coll = get_db()[name]
    for ix in indexes:
        spec = dict(ix)
        keys = spec.pop("keys")
        try:
            coll.create_index(keys, **spec)
        except PyMongoError as e:
            # Ignora fallas de índice (e.g., ya existe o datos no únicos previos)
            _log.warning("No se pudo crear índice en '%s' (%s): %s", name, keys, e)


def ensure_collections() -> None:
    """
    Garantiza colecciones, validadores e índices mínimos.
    """
    user_validator = {
        "bsonType": "object",
        "required": ["name", "email", "password_hash", "is_active", "token_version", "created_at", "updated_at"],
        "properties": {
            "name": {"bsonType": "string", "minLength": 1, "maxLength": 50},
            "email": {"bsonType": "string", "minLength": 3, "description": "lowercase"},
            "password_hash": {"bsonType": "string"},
            "avatar": {"bsonType": ["string", "null"], "maxLength": 500},
            "preferences": {
                "bsonType": "object",
                "properties": {
                    "theme": {"enum": THEMES},
                    "default_view": {"enum": DEFAULT_VIEWS},
                    "task_sort_by": {"enum": TASK_SORT_PREFERENCES},
                },
            },
            "is_active": {"bsonType": "bool"},
            "token_version": {"bsonType": "int", "minimum": 0},
            "created_at": {"bsonType": "date"},
            "updated_at": {"bsonType": "date"},
        },
        "additionalProperties": True,
    }
    _collmod_or_create(USER_COLL, user_validator)
    _ensure_indexes(USER_COLL, [{"keys": [("email", 1)], "unique": True, "name": "uniq_email"}])

    subtask_schema = {
        "bsonType": "object",
        "required": ["title", "completed"],
        "properties": {
            "title": {"bsonType": "string", "minLength": 1},
            "completed": {"bsonType": "bool"},
            "completed_at": {"bsonType": ["date", "null"]},
        },
    }
    task_validator = {
        "bsonType": "object",
        "required": ["user_id", "title", "status", "priority", "tags", "subtasks", "order", "created_at", "updated_at"],
        "properties": {
            "user_id": {"bsonType": "objectId"},
            "title": {"bsonType": "string", "minLength": 1, "maxLength": 100},
            "description": {"bsonType": ["string", "null"]},
            "status": {"bsonType": "string", "enum": TASK_STATUSES},
            "priority": {"bsonType": "string", "enum": TASK_PRIORITIES},
            "tags": {"bsonType": "array", "items": {"bsonType": "string", "maxLength": 20}},
            "due_date": {"bsonType": ["date", "null"]},
            "subtasks": {"bsonType": "array", "items": subtask_schema},
            "order": {"bsonType": ["int", "long"]},
            "completed_at": {"bsonType": ["date", "null"]},
            "created_at": {"bsonType": "date"},
            "updated_at": {"bsonType": "date"},
        },
        "additionalProperties": True,
    }
    _collmod_or_create(TASK_COLL, task_validator)
    _ensure_indexes(
        TASK_COLL,
        [
            {"keys": [("user_id", 1), ("order", 1)], "name": "ix_task_user_order"},
            {"keys": [("user_id", 1), ("status", 1), ("created_at", -1)], "name": "ix_task_user_status"},
            {"keys": [("user_id", 1), ("due_date", 1)], "name": "ix_task_user_due"},
            {"keys": [("user_id", 1), ("tags", 1)], "name": "ix_task_user_tags"},
        ],
    )

    note_validator = {
        "bsonType": "object",
        "required": ["user_id", "title", "content", "date", "tags", "color", "is_pinned", "linked_tasks", "created_at", "updated_at"],
        "properties": {
            "user_id": {"bsonType": "objectId"},
            "title": {"bsonType": "string", "minLength": 1, "maxLength": 100},
            "content": {"bsonType": "string", "minLength": 1, "maxLength": 2000},
            "date": {"bsonType": "date"},
            "tags": {"bsonType": "array", "items": {"bsonType": "string", "maxLength": 20}},
            "color": {"bsonType": "string", "enum": NOTE_COLORS},
            "is_pinned": {"bsonType": "bool"},
            "linked_tasks": {"bsonType": "array", "items": {"bsonType": "objectId"}},
            "created_at": {"bsonType": "date"},
            "updated_at": {"bsonType": "date"},
        },
        "additionalProperties": True,
    }
    _collmod_or_create(NOTE_COLL, note_validator)
    _ensure_indexes(
        NOTE_COLL,
        [
            {"keys": [("user_id", 1), ("date", 1)], "name": "ix_note_user_date"},
            {"keys": [("user_id", 1), ("is_pinned", -1), ("created_at", -1)], "name": "ix_note_user_pinned"},
            {"keys": [("user_id", 1), ("tags", 1)], "name": "ix_note_user_tags"},
        ],
    )
