"""
Routers API du moteur Ready.

Ce module regroupe tous les sous-routers et expose un router principal
a inclure dans l'application FastAPI.
"""
from fastapi import APIRouter

from ready.api.routers.readiness_router import router as readiness_router
from ready.api.routers.settings_router import router as settings_router
from ready.api.routers.metrics_router import router as metrics_router
from ready.api.routers._shared import limiter, readiness_error_handler

router = APIRouter()

router.include_router(readiness_router)
router.include_router(settings_router)
router.include_router(metrics_router)

__all__ = ["router", "limiter", "readiness_error_handler"]
