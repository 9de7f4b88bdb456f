"""Rutas de cuenta: registro, login, perfil, cambio de contraseña y logout."""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from taskboard.api.deps import get_current_user
from taskboard.api.schemas.auth import (
    AuthOut,
    LoginPayload,
    MeOut,
    PasswordChange,
    ProfileOut,
    ProfileUpdate,
    RegisterPayload,
)
from taskboard.api.schemas.common import MessageOut
from taskboard.core import rate_limit
from taskboard.core.config import settings
from taskboard.core.exceptions import RateLimitedError
from taskboard.services import auth_service as service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthOut,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar usuario",
    description="Crea la cuenta (email único) y devuelve un token de acceso.",
)
def register(payload: RegisterPayload):
    res = service.register(payload.model_dump())
    return {"message": "User registered successfully", **res}


@router.post("/login", response_model=AuthOut, summary="Login con email y contraseña")
def login(payload: LoginPayload, request: Request):
    # Rate limit por IP
    ip = request.client.host if request.client else ""
    wait = rate_limit.check((ip, "/auth/login"), limit=settings.login_rate_per_min, window_seconds=60)
    if wait:
        raise RateLimitedError("Too many login attempts, please try again later", retry_after=wait)
    res = service.login(payload.email, payload.password)
    return {"message": "Login successful", **res}


@router.get("/me", response_model=MeOut, summary="Cuenta autenticada")
def me(user: Dict[str, Any] = Depends(get_current_user)):
    return {"user": service.account_view(user)}


@router.put("/profile", response_model=ProfileOut, summary="Actualizar perfil")
def update_profile(payload: ProfileUpdate, user: Dict[str, Any] = Depends(get_current_user)):
    account = service.update_profile(user, payload.model_dump(exclude_unset=True))
    return {"message": "Profile updated successfully", "user": account}


@router.put("/password", response_model=MessageOut, summary="Cambiar contraseña")
def change_password(payload: PasswordChange, user: Dict[str, Any] = Depends(get_current_user)):
    service.change_password(user, payload.current_password, payload.new_password)
    return {"message": "Password changed successfully"}


@router.post("/logout", response_model=MessageOut, summary="Cerrar sesión (revoca tokens emitidos)")
def logout(user: Dict[str, Any] = Depends(get_current_user)):
    service.logout(user)
    return {"message": "Logged out successfully"}
