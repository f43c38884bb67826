"""
Fixtures partagees : base SQLite en memoire, horloge figee, source biometrique factice.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Optional

import pytest

from ready.core.database import build_engine, create_db_and_tables
from ready.core.settings import Settings
from ready.core.wiring import build_services
from ready.domain.errors import NoBiometricData
from ready.domain.services.biometric_source import SleepSample
from ready.domain.services.day_record_store import DayRecordStore
from ready.domain.services.settings_store import SettingsStore

NOW = datetime(2026, 3, 15, 10, 30, 0)
TODAY = NOW.date()


def day_offset(days: int) -> date:
    """TODAY - days."""
    return TODAY - timedelta(days=days)


class FixedClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeBiometricSource:
    """Source en memoire. Une date absente leve NoBiometricData, une date en echec leve ConnectionError."""

    def __init__(
        self,
        hrv: Optional[Dict[date, float]] = None,
        rhr: Optional[Dict[date, float]] = None,
        sleep: Optional[Dict[date, SleepSample]] = None,
        failing_days: Iterable[date] = (),
    ):
        self.hrv = hrv or {}
        self.rhr = rhr or {}
        self.sleep = sleep or {}
        self.failing_days = set(failing_days)
        self.calls = []

    def _get(self, metric, values, window):
        self.calls.append((metric, window))
        if window.day in self.failing_days:
            raise ConnectionError("Garmin Connect timeout")
        if window.day not in values:
            raise NoBiometricData(metric)
        return values[window.day]

    async def fetch_hrv(self, window):
        return self._get("HRV", self.hrv, window)

    async def fetch_resting_heart_rate(self, window):
        return self._get("Resting Heart Rate", self.rhr, window)

    async def fetch_sleep(self, window):
        return self._get("Sleep", self.sleep, window)


def seed_hrv(store: DayRecordStore, values: Dict[int, float], **extra) -> None:
    """Enregistre des HRV indexees par decalage en jours depuis TODAY."""
    for offset, hrv in values.items():
        store.upsert_metrics(day_offset(offset), hrv=hrv, **extra)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return DayRecordStore(engine)


@pytest.fixture
def settings_store(engine):
    return SettingsStore(engine)


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        DATABASE_URL="sqlite://",
        RECALC_DEBOUNCE_SECONDS=0.01,
        HISTORICAL_LOOKBACK_DAYS=10,
        WIDGET_SNAPSHOT_PATH=str(tmp_path / "widget.json"),
        GARMIN_TOKEN_DIR="",
        ENVIRONMENT="test",
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def services(engine, app_settings, clock):
    return build_services(engine, app_settings, clock=clock)
