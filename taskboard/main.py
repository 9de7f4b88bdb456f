"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
from fastapi import FastAPI
from taskboard.core.config import settings
from taskboard.infrastructure.db.mongo import init_mongo, close_mongo, db_ready
from taskboard.infrastructure.db.bootstrap import ensure_collections
from taskboard.api.router import api_router
from taskboard.core.logging import setup_logging
from taskboard.core.middleware import add_middlewares
from taskboard.core.exceptions import register_exception_handlers
from pymongo.errors import PyMongoError
import logging

_log = logging.getLogger("taskboard.startup")

setup_logging(settings.log_level)
app = FastAPI(title=settings.app_name)

add_middlewares(app)
register_exception_handlers(app)


@app.on_event("startup")
def on_startup():
    if settings.using_dev_secret:
        _log.warning("JWT_SECRET no configurado; usando secreto de desarrollo")
    init_mongo()
    # Garantiza colecciones/índices/validadores mínimos si hay conexión
    try:
        if db_ready():
            ensure_collections()
        else:
            _log.warning("Mongo no listo; omitiendo ensure_collections()")
    except PyMongoError as e:
        # No impedir el arranque si fallan validadores/índices
        _log.warning("ensure_collections() falló: %s", e)


@app.on_event("shutdown")
def on_shutdown():
    close_mongo()


# Monta routers bajo el prefijo configurado
app.include_router(api_router, prefix=settings.api_prefix_normalized)
