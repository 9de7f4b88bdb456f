"""
Creación y verificación de JWTs de acceso (PyJWT, HS256).
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import uuid4

import jwt

from taskboard.core.config import settings

REQUIRED_CLAIMS = ["sub", "exp", "iat", "iss", "aud"]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(*, user: Dict[str, Any], expires_in: timedelta | None = None) -> str:
    """
    Genera un JWT válido por ACCESS_TOKEN_EXPIRE_DAYS (7 días por defecto).
    Claims: sub(user_id), token_version, iss, aud, iat, exp, jti.
    """
    now = _now_utc()
    exp = now + (expires_in if expires_in is not None else timedelta(days=settings.access_token_expire_days))
    payload = {
        "sub": str(user["_id"]),
        "token_version": user.get("token_version", 0),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "jti": str(uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida firma, expiración, emisor y audiencia. Devuelve payload.

    Propaga las excepciones de PyJWT (`ExpiredSignatureError`, `DecodeError`,
    `InvalidTokenError`...) para que el llamador las clasifique.
    """
    return jwt.decode(
        token,
        key=settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
        options={"require": REQUIRED_CLAIMS},
    )
