"""
Esquemas Pydantic para operaciones de autenticación y cuenta.

- El email se normaliza a minúsculas.
- Las reglas de longitud (nombre, contraseña, avatar) se validan en el servicio.
"""
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, field_validator

from taskboard.api.schemas.common import CamelModel
from taskboard.domain.account import DefaultView, TaskSortPreference, Theme


class RegisterPayload(CamelModel):
    name: Optional[str] = None
    email: EmailStr
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: EmailStr) -> str:
        return str(v).lower()


class LoginPayload(CamelModel):
    email: EmailStr
    password: str


class PreferencesIn(CamelModel):
    """Cambio parcial: solo se guardan las claves enviadas."""
    theme: Optional[Theme] = None
    default_view: Optional[DefaultView] = None
    task_sort_by: Optional[TaskSortPreference] = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    preferences: Optional[PreferencesIn] = None


class PasswordChange(CamelModel):
    current_password: str
    new_password: str


class PreferencesOut(CamelModel):
    theme: Theme
    default_view: DefaultView
    task_sort_by: TaskSortPreference


class AccountOut(CamelModel):
    """Respuesta pública de la cuenta (sin secretos)."""
    id: str
    name: str
    email: EmailStr
    avatar: Optional[str] = None
    preferences: PreferencesOut
    initials: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AuthOut(CamelModel):
    message: str
    token: str
    user: AccountOut


class MeOut(CamelModel):
    user: AccountOut


class ProfileOut(CamelModel):
    message: str
    user: AccountOut
