"""
Errores de dominio y handlers globales para respuestas de error consistentes.

Todas las respuestas de error llevan un campo `message`; los errores de
validación añaden `errors` como lista de `{field, message}`.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    """Base de los errores que la API traduce a un status HTTP concreto."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthError(AppError):
    status_code = 401

    MISSING = "MissingCredential"
    MALFORMED = "MalformedCredential"
    EXPIRED = "ExpiredCredential"
    INVALID = "InvalidCredential"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    ACCOUNT_DEACTIVATED = "AccountDeactivated"
    INVALID_LOGIN = "InvalidLogin"

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class FieldError(dict):
    """Par campo/mensaje; es un dict para serializarse tal cual en JSON."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(field=field, message=message)


class ValidationError(AppError):
    status_code = 400

    def __init__(self, errors: List[FieldError], message: str = "Validation error") -> None:
        super().__init__(message)
        self.errors = list(errors)


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class RateLimitedError(AppError):
    status_code = 429

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


def _req_id(request: Request) -> Optional[str]:
    return getattr(getattr(request, "state", object()), "request_id", None)


def _body(request: Request, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message, **extra}
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return body


def _field_of(loc: tuple) -> str:
    # loc llega como ("body", "title") o ("query", "sortBy")
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("taskboard.errors")

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.detail or "HTTP error"))

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = [FieldError(_field_of(tuple(e.get("loc", ()))), e.get("msg", "Invalid value")) for e in exc.errors()]
        return JSONResponse(status_code=400, content=_body(request, "Validation error", errors=errors))

    @app.exception_handler(ValidationError)
    async def _domain_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.message, errors=exc.errors))

    @app.exception_handler(AuthError)
    async def _auth_handler(request: Request, exc: AuthError):
        log.info("auth rejected kind=%s path=%s", exc.kind, request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(request, exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(RateLimitedError)
    async def _rate_limited_handler(request: Request, exc: RateLimitedError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(request, exc.message),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.message))

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return JSONResponse(status_code=500, content=_body(request, "Internal server error"))
