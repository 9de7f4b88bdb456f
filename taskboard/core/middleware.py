"""
Middlewares de aplicación: contexto de petición (request id + access log) y CORS.
"""
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from taskboard.core.config import settings

REQUEST_ID_HEADER = "X-Request-Id"
QUIET_PATHS = ("/ping", "/health")


def _request_id(request: Request) -> str:
    # Se acepta el id del cliente solo si es razonable para un log
    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if incoming and len(incoming) <= 64 and incoming.isprintable():
        return incoming
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Asigna `request.state.request_id` y escribe una línea de acceso por petición.

    Las rutas de health solo se registran en DEBUG; los 5xx salen como WARNING.
    """

    def __init__(self, app: FastAPI) -> None:
        super().__init__(app)
        self.log = logging.getLogger("taskboard.request")

    async def dispatch(self, request: Request, call_next):
        rid = _request_id(request)
        request.state.request_id = rid
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            dt_ms = int((time.perf_counter() - start) * 1000)
            path = request.url.path
            if status >= 500:
                level = logging.WARNING
            elif path.endswith(QUIET_PATHS):
                level = logging.DEBUG
            else:
                level = logging.INFO
            self.log.log(
                level, "method=%s path=%s status=%s latency_ms=%s request_id=%s",
                request.method, path, status, dt_ms, rid,
            )


def add_middlewares(app: FastAPI) -> None:
    # Si cors_allow_any=True, habilita todos los orígenes con regex.
    cors_kwargs = dict(
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )
    if settings.cors_allow_any:
        # Con orígenes dinámicos desactiva credentials para cumplir CORS
        cors_kwargs["allow_origins"] = []
        cors_kwargs["allow_origin_regex"] = ".*"
        cors_kwargs["allow_credentials"] = False
    app.add_middleware(CORSMiddleware, **cors_kwargs)
    app.add_middleware(RequestContextMiddleware)
