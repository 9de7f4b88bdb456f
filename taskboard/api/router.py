"""Agregador de routers de la API."""
from fastapi import APIRouter
from taskboard.api.routers import auth, health, notes, tasks

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(tasks.router)
api_router.include_router(notes.router)
