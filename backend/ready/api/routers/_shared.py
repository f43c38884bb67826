"""
Utilitaires partages entre les routers API.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from ready.core.wiring import ReadinessServices
from ready.domain.errors import ReadinessError

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"], headers_enabled=True)


def get_services(request: Request) -> ReadinessServices:
    """Services construits au demarrage (lifespan), exposes via app.state."""
    return request.app.state.services


async def readiness_error_handler(request: Request, exc: ReadinessError) -> JSONResponse:
    """Erreur metier : message affichable + suggestion de resolution."""
    logger.info(f"{type(exc).__name__} sur {request.url.path}: {exc.message}")
    return JSONResponse(status_code=422, content=exc.to_dict())
