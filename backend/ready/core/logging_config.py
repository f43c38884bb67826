"""
Configuration du logging partagee entre l'API et la CLI.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler

from ready.core.settings import Settings


def configure_logging(settings: Settings, log_file: str = "ready.log") -> None:
    """Configure le logging racine selon ENVIRONMENT et LOG_LEVEL."""
    _log_level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

    _handler = logging.StreamHandler(sys.stdout)

    if settings.ENVIRONMENT == "production":
        from pythonjsonlogger import jsonlogger
        _handler.setFormatter(jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        ))
    else:
        _handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    _handlers: list[logging.Handler] = [_handler]
    if settings.ENVIRONMENT != "production" and log_file:
        _handlers.append(RotatingFileHandler(
            log_file, maxBytes=5_000_000, backupCount=3,
        ))

    logging.basicConfig(
        level=_log_level,
        handlers=_handlers,
        force=True,
    )

    # En production, réduire le bruit des modules tiers
    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
