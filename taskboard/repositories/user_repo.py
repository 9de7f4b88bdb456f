"""Persistencia de cuentas (colección `user`)."""
from typing import Any, Dict, Optional

from pymongo import ReturnDocument

from taskboard.core.time import utcnow
from taskboard.infrastructure.db.mongo import get_db
from taskboard.repositories.common import to_object_id as _oid

COLLECTION = "user"


def insert_user(doc: Dict[str, Any]) -> str:
    """Inserta usuario con defaults y devuelve id (str)."""
    data = dict(doc)
    now = utcnow()
    data.setdefault("is_active", True)
    data.setdefault("token_version", 0)
    data.setdefault("created_at", now)
    data["updated_at"] = now
    res = get_db()[COLLECTION].insert_one(data)
    return str(res.inserted_id)


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """Busca usuario por email (email en minúsculas)."""
    return get_db()[COLLECTION].find_one({"email": email})


def get_user_by_id(user_id: Any) -> Optional[Dict[str, Any]]:
    oid = _oid(user_id)
    if oid is None:
        return None
    return get_db()[COLLECTION].find_one({"_id": oid})


def update_user(user_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Aplica `$set` parcial y devuelve el documento actualizado."""
    oid = _oid(user_id)
    if oid is None:
        return None
    return get_db()[COLLECTION].find_one_and_update(
        {"_id": oid},
        {"$set": {**fields, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def increment_token_version(user_id: Any) -> None:
    """Incrementa token_version (invalidando access tokens previos)."""
    get_db()[COLLECTION].update_one(
        {"_id": _oid(user_id)}, {"$inc": {"token_version": 1}, "$set": {"updated_at": utcnow()}}
    )
