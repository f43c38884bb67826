"""
Assemblage des composants au demarrage (API et CLI).
Aucune instance globale : chaque point d'entree construit ses services ici.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from ready.core.settings import Settings
from ready.domain.services.biometric_source import BiometricDataSource, GarminBiometricSource
from ready.domain.services.day_record_store import DayRecordStore
from ready.domain.services.readiness_service import ReadinessService
from ready.domain.services.recalculation_coordinator import RecalculationCoordinator
from ready.domain.services.settings_store import SettingsStore
from ready.domain.services.widget_publisher import JsonFileWidgetPublisher, WidgetPublisher

logger = logging.getLogger(__name__)


@dataclass
class ReadinessServices:
    settings: Settings
    store: DayRecordStore
    settings_store: SettingsStore
    service: ReadinessService
    coordinator: RecalculationCoordinator


def build_biometric_source(settings: Settings) -> Optional[BiometricDataSource]:
    """Source Garmin si GARMIN_TOKEN_DIR est configure, sinon None (metriques via l'API)."""
    if not settings.GARMIN_TOKEN_DIR:
        return None
    try:
        source = GarminBiometricSource.from_token_dir(settings.GARMIN_TOKEN_DIR)
    except Exception as e:
        logger.error(f"Tokens Garmin illisibles ({settings.GARMIN_TOKEN_DIR}): {e}")
        return None
    logger.info("Source biometrique Garmin configuree")
    return source


def build_services(
    engine: Engine,
    settings: Settings,
    source: Optional[BiometricDataSource] = None,
    publisher: Optional[WidgetPublisher] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> ReadinessServices:
    store = DayRecordStore(engine)
    settings_store = SettingsStore(engine)
    service = ReadinessService(store, source=source, clock=clock)
    if publisher is None and settings.WIDGET_SNAPSHOT_PATH:
        publisher = JsonFileWidgetPublisher(settings.WIDGET_SNAPSHOT_PATH)
    coordinator = RecalculationCoordinator(
        service,
        store,
        settings_store,
        publisher=publisher,
        debounce_seconds=settings.RECALC_DEBOUNCE_SECONDS,
        lookback_days=settings.HISTORICAL_LOOKBACK_DAYS,
        widget_history_days=settings.WIDGET_HISTORY_DAYS,
    )
    return ReadinessServices(
        settings=settings,
        store=store,
        settings_store=settings_store,
        service=service,
        coordinator=coordinator,
    )
