"""
Application FastAPI principale du moteur Ready
Point d'entrée de l'API backend
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.requests import Request
from slowapi.errors import RateLimitExceeded
import sentry_sdk

from ready.core.settings import get_settings
from ready.core.logging_config import configure_logging
from ready.core.database import engine, create_db_and_tables
from ready.core.wiring import build_biometric_source, build_services
from ready.api.routers import router, limiter, readiness_error_handler
from ready.domain.errors import ReadinessError

settings = get_settings()

# Initialiser Sentry (uniquement si SENTRY_DSN est configure)
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )

configure_logging(settings)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestionnaire de cycle de vie de l'application"""
    # Startup
    logger.info(f"🚀 Démarrage de Ready API v{VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Initialiser la base de données
    create_db_and_tables()
    logger.info("✅ Base de données initialisée")

    services = build_services(engine, settings, source=build_biometric_source(settings))
    app.state.services = services
    if services.service.source is None:
        logger.warning("⚠️  Aucune source biometrique, les metriques doivent etre saisies via l'API")

    # Politique de retention
    if settings.RETENTION_DAYS > 0:
        services.store.delete_older_than(settings.RETENTION_DAYS, services.service.today())

    yield

    # Shutdown
    if services.coordinator.cancel():
        await services.coordinator.wait()
        logger.info("🛑 Recalcul en cours annule")


app = FastAPI(
    title="Ready API",
    description="API de calcul du score de disponibilite (HRV, FC repos, sommeil)",
    version=VERSION,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan
)

# Rate limiting
app.state.limiter = limiter


async def _custom_rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Retourne un 429 propre avec headers Retry-After et X-RateLimit-*."""
    response = JSONResponse(
        status_code=429,
        content={
            "detail": "Trop de requetes",
            "message": f"Rate limit exceeded: {exc.detail}",
        },
    )
    response = request.app.state.limiter._inject_headers(
        response, request.state.view_rate_limit
    )
    return response


app.add_exception_handler(RateLimitExceeded, _custom_rate_limit_handler)
app.add_exception_handler(ReadinessError, readiness_error_handler)

# Configuration CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Inclure les routes
app.include_router(router, prefix="/api/v1")


@app.get("/health")
@limiter.exempt
async def health_check(request: Request):
    """Point de santé de l'API"""
    services = request.app.state.services
    return JSONResponse(
        content={
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
            "services": {
                "biometric_source": "garmin" if services.service.source is not None else "manual",
                "recalculation": services.coordinator.state.value,
            },
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc):
    """Gestionnaire global des exceptions"""
    logger.error(f"Erreur non gérée: {type(exc).__name__}: {str(exc)}", exc_info=True)
    if settings.DEBUG:
        content = {
            "detail": "Erreur interne du serveur",
            "type": type(exc).__name__,
            "message": str(exc),
        }
    else:
        content = {
            "detail": "Erreur interne du serveur",
            "message": "Une erreur s'est produite",
        }
    return JSONResponse(status_code=500, content=content)

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Lancement de l'application sur le port 8000")
    uvicorn.run(
        "ready.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
