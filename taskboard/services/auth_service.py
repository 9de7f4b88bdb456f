"""
Lógica de cuentas: registro, login, perfil, cambio de contraseña y logout.
"""
import logging
from typing import Any, Dict

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type
from pymongo.errors import DuplicateKeyError

from taskboard.core.exceptions import AuthError, ConflictError, FieldError, ValidationError
from taskboard.core.time import as_utc
from taskboard.domain.account import DEFAULT_PREFERENCES
from taskboard.repositories import user_repo as repo
from taskboard.services.derived_fields import initials
from taskboard.services.token_service import create_access_token
from taskboard.services.validation import check_password, clean_account_payload

_log = logging.getLogger("taskboard.auth")

ph = PasswordHasher(time_cost=2, memory_cost=51200, parallelism=2, hash_len=32, salt_len=16, type=Type.ID)

INVALID_LOGIN = "Invalid email or password"


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def account_view(user: Dict[str, Any]) -> Dict[str, Any]:
    """Cuenta pública (sin hash ni token_version).

    Las preferencias ausentes toman el valor por defecto; `initials` se deriva
    del nombre en cada lectura.
    """
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "avatar": user.get("avatar"),
        "preferences": {**DEFAULT_PREFERENCES, **(user.get("preferences") or {})},
        "initials": initials(user.get("name")),
        "is_active": bool(user.get("is_active")),
        "created_at": as_utc(user.get("created_at")),
        "updated_at": as_utc(user.get("updated_at")),
    }


def register(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Crea la cuenta (email único, en minúsculas) y emite su primer token."""
    data = clean_account_payload(payload, partial=False)
    email = str(data["email"]).strip().lower()
    if repo.find_user_by_email(email):
        raise ConflictError("User already exists with this email")
    try:
        user_id = repo.insert_user({
            "name": data["name"],
            "email": email,
            "password_hash": hash_password(data["password"]),
            "avatar": None,
            "preferences": dict(DEFAULT_PREFERENCES),
            "is_active": True,
        })
    except DuplicateKeyError:
        # alta concurrente con el mismo email; el índice único decide
        raise ConflictError("User already exists with this email")
    user = repo.get_user_by_id(user_id)
    _log.info("cuenta registrada id=%s", user_id)
    return {"token": create_access_token(user=user), "user": account_view(user)}


def login(email: str, password: str) -> Dict[str, Any]:
    user = repo.find_user_by_email(str(email).strip().lower())
    if not user or not verify_password(password, user.get("password_hash") or ""):
        raise AuthError(AuthError.INVALID_LOGIN, INVALID_LOGIN)
    if not user.get("is_active"):
        raise AuthError(AuthError.ACCOUNT_DEACTIVATED, "Account is deactivated. Please contact support.")
    return {"token": create_access_token(user=user), "user": account_view(user)}


def update_profile(user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Actualiza nombre, avatar y preferencias; las preferencias se fusionan por clave."""
    data = clean_account_payload(payload, partial=True)
    fields = {k: data[k] for k in ("name", "avatar") if k in data}
    for key, value in (data.get("preferences") or {}).items():
        fields[f"preferences.{key}"] = value
    if not fields:
        return account_view(user)
    updated = repo.update_user(user["_id"], fields)
    return account_view(updated or user)


def change_password(user: Dict[str, Any], current_password: str, new_password: str) -> None:
    """Cambia la contraseña y revoca todos los tokens emitidos antes."""
    if not verify_password(current_password, user.get("password_hash") or ""):
        raise ValidationError([FieldError("currentPassword", "Current password is incorrect")])
    errors = []
    check_password(new_password, "newPassword", errors)
    if errors:
        raise ValidationError(errors)
    repo.update_user(user["_id"], {"password_hash": hash_password(new_password)})
    repo.increment_token_version(user["_id"])


def logout(user: Dict[str, Any]) -> None:
    """Revoca todos los tokens de la cuenta (incrementa token_version)."""
    repo.increment_token_version(user["_id"])
