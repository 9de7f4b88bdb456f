"""
Validación de credenciales bearer y resolución de la cuenta activa.

`resolve_account` es la única puerta de entrada: a partir del header
`Authorization` devuelve el documento de la cuenta o lanza `AuthError` con el
tipo de fallo. Aguas abajo solo circula el id de la cuenta, nunca el token.
"""
import logging
from typing import Any, Dict, Optional

import jwt

from taskboard.core.exceptions import AuthError
from taskboard.repositories import user_repo as repo
from taskboard.services.token_service import verify_access_token

_log = logging.getLogger("taskboard.auth")


def extract_bearer(authorization: Optional[str]) -> str:
    """Extrae el token de `Bearer <token>`."""
    if authorization is None or not authorization.strip():
        raise AuthError(AuthError.MISSING, "Access denied. No token provided.")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise AuthError(AuthError.MALFORMED, "Access denied. Invalid authorization format.")
    return token.strip()


def decode_credential(token: str) -> Dict[str, Any]:
    try:
        return verify_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthError(AuthError.EXPIRED, "Token has expired. Please login again.")
    except jwt.InvalidSignatureError:
        # subclase de DecodeError: el token está bien formado pero no lo firmamos nosotros
        raise AuthError(AuthError.INVALID, "Invalid token. Please login again.")
    except jwt.DecodeError:
        raise AuthError(AuthError.MALFORMED, "Malformed token. Please login again.")
    except jwt.InvalidTokenError as e:
        _log.debug("token rechazado: %s", e)
        raise AuthError(AuthError.INVALID, "Invalid token. Please login again.")


def resolve_account(authorization: Optional[str]) -> Dict[str, Any]:
    token = extract_bearer(authorization)
    payload = decode_credential(token)

    user = repo.get_user_by_id(payload.get("sub"))
    if not user:
        raise AuthError(AuthError.ACCOUNT_NOT_FOUND, "Token is not valid. User not found.")
    if user.get("token_version", 0) != payload.get("token_version", 0):
        raise AuthError(AuthError.INVALID, "Token has been revoked. Please login again.")
    if not user.get("is_active"):
        raise AuthError(AuthError.ACCOUNT_DEACTIVATED, "Account is deactivated. Please contact support.")
    return user
