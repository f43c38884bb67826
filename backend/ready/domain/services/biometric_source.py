"""
Sources biometriques (HRV, FC repos, sommeil) pour une fenetre horaire.

Une source leve NoBiometricData quand elle n'a rien pour la fenetre ; toute
autre exception est un echec de la source.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol

import garth

from ready.domain.entities.readiness_settings import TimeWindow
from ready.domain.errors import NoBiometricData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SleepSample:
    hours: Optional[float]
    quality: Optional[int] = None


class BiometricDataSource(Protocol):
    async def fetch_hrv(self, window: TimeWindow) -> float: ...

    async def fetch_resting_heart_rate(self, window: TimeWindow) -> float: ...

    async def fetch_sleep(self, window: TimeWindow) -> SleepSample: ...


class GarminBiometricSource:
    """Source Garmin Connect via garth.

    Garmin n'expose que des agregats quotidiens : la fenetre sert uniquement a
    determiner la date interrogee. Le client garth est bloquant, chaque appel
    part dans un thread.
    """

    def __init__(self, client: garth.Client):
        self.client = client

    @classmethod
    def from_token_dir(cls, token_dir: str) -> "GarminBiometricSource":
        """Reconstruit un client a partir des tokens garth sauvegardes, sans re-login."""
        client = garth.Client(domain="garmin.com")
        client.load(token_dir)
        return cls(client)

    async def fetch_hrv(self, window: TimeWindow) -> float:
        return await asyncio.to_thread(self._hrv, window.day)

    async def fetch_resting_heart_rate(self, window: TimeWindow) -> float:
        return await asyncio.to_thread(self._resting_heart_rate, window.day)

    async def fetch_sleep(self, window: TimeWindow) -> SleepSample:
        return await asyncio.to_thread(self._sleep, window.day)

    def _hrv(self, day: date) -> float:
        hrv = garth.HRVData.get(day, client=self.client)
        if hrv and hrv.hrv_summary and hrv.hrv_summary.last_night_avg:
            return float(hrv.hrv_summary.last_night_avg)
        raise NoBiometricData("HRV", day.isoformat())

    def _resting_heart_rate(self, day: date) -> float:
        hr = garth.DailyHeartRate.get(day, client=self.client)
        if hr and hr.resting_heart_rate:
            return float(hr.resting_heart_rate)
        raise NoBiometricData("Resting Heart Rate", day.isoformat())

    def _sleep(self, day: date) -> SleepSample:
        sleep = garth.SleepData.get(day, client=self.client)
        if not sleep or not sleep.daily_sleep_dto or not sleep.daily_sleep_dto.sleep_time_seconds:
            raise NoBiometricData("Sleep", day.isoformat())

        dto = sleep.daily_sleep_dto
        quality = None
        if dto.sleep_scores:
            overall = getattr(dto.sleep_scores, "overall", None)
            quality = getattr(overall, "value", overall)
        logger.debug(f"Sommeil Garmin {day}: {dto.sleep_time_seconds}s, score={quality}")
        return SleepSample(hours=dto.sleep_time_seconds / 3600, quality=quality)
