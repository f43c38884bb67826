"""
Service ReadinessService - calcul du score d'une journee.

Pipeline : rafraichissement optionnel depuis la source biometrique,
lecture des metriques, baselines sur les N jours precedents, score, upsert.
Les ecritures d'une meme date sont serialisees par un verrou par date.
"""
import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ready.domain.entities.daily_metrics import DailyMetrics
from ready.domain.entities.readiness_score import ReadinessScore
from ready.domain.entities.readiness_settings import ReadinessSettings
from ready.domain.errors import (
    BaselineUnavailable,
    DataProcessingFailed,
    HistoricalDataIncomplete,
    HistoricalDataMissing,
    InsufficientData,
    NoBiometricData,
    ReadinessError,
)
from ready.domain.services.baseline_calculator import (
    HRV_VALID_RANGE,
    RHR_VALID_RANGE,
    baseline_window,
    compute_baseline,
    hrv_samples,
    rhr_samples,
)
from ready.domain.services.biometric_source import BiometricDataSource
from ready.domain.services.day_record_store import DayRecordStore
from ready.domain.services.score_engine import ScoreResult, compute_score

logger = logging.getLogger(__name__)


@dataclass
class DayOutcome:
    """Resultat du calcul d'une journee."""
    date: date
    score: ReadinessScore
    result: ScoreResult
    changed: bool
    notices: List[ReadinessError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "score": self.score.score,
            "category": self.score.category.value,
            "hrv_baseline": self.score.hrv_baseline,
            "hrv_deviation_percent": self.score.hrv_deviation_percent,
            "rhr_adjustment": self.score.rhr_adjustment,
            "sleep_adjustment": self.score.sleep_adjustment,
            "changed": self.changed,
            "notices": [notice.to_dict() for notice in self.notices],
        }


class ReadinessService:
    """Calcule et persiste le score d'une date."""

    def __init__(
        self,
        store: DayRecordStore,
        source: Optional[BiometricDataSource] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.source = source
        self.clock = clock
        # Verrou par date, libere des que plus aucun calcul ne le reference
        self._locks: "weakref.WeakValueDictionary[date, asyncio.Lock]" = weakref.WeakValueDictionary()

    def today(self) -> date:
        return self.clock().date()

    def _lock_for(self, day: date) -> asyncio.Lock:
        lock = self._locks.get(day)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[day] = lock
        return lock

    async def calculate_day(
        self,
        day: date,
        settings: ReadinessSettings,
        refresh: bool = True,
        now: Optional[datetime] = None,
    ) -> DayOutcome:
        """Calcule le score de `day` avec l'instantane `settings`.

        Raises:
            InsufficientData: aujourd'hui, HRV absente ou invalide.
            HistoricalDataMissing: jour passe sans metriques.
            HistoricalDataIncomplete: jour passe sans HRV exploitable (partial=False).
            BaselineUnavailable: pas assez de jours valides avant `day`.
            DataProcessingFailed: echec de la source biometrique.
        """
        now = now or self.clock()
        async with self._lock_for(day):
            if refresh and self.source is not None:
                await self._refresh_metrics(day, settings, now)
            return self._score_day(day, settings, is_today=(day == now.date()))

    # ============ RAFRAICHISSEMENT ============

    async def _refresh_metrics(self, day: date, settings: ReadinessSettings, now: datetime) -> None:
        window = settings.time_window(day, now)
        updates: Dict[str, Any] = {}

        hrv = await self._fetch("HRV", self.source.fetch_hrv(window))
        if hrv is None:
            logger.info(f"Pas de HRV source pour {day}, valeur stockee conservee")
        else:
            updates["hrv"] = hrv

        if settings.use_rhr_adjustment:
            rhr = await self._fetch("Resting Heart Rate", self.source.fetch_resting_heart_rate(window))
            if rhr is not None:
                updates["resting_heart_rate"] = rhr

        if settings.use_sleep_adjustment:
            sleep = await self._fetch("Sleep", self.source.fetch_sleep(window))
            if sleep is not None:
                updates["sleep_hours"] = sleep.hours
                if sleep.quality is not None:
                    updates["sleep_quality"] = sleep.quality

        if updates:
            self.store.upsert_metrics(day, **updates)

    @staticmethod
    async def _fetch(metric: str, pending: Awaitable[Any]) -> Optional[Any]:
        """None si la source n'a pas de donnee, DataProcessingFailed sur toute autre erreur."""
        try:
            return await pending
        except NoBiometricData as e:
            logger.debug(f"{metric}: {e.message}")
            return None
        except ReadinessError:
            raise
        except Exception as e:
            logger.warning(f"Echec de la source biometrique ({metric}): {type(e).__name__}: {e}")
            raise DataProcessingFailed(metric, str(e)) from e

    # ============ CALCUL ============

    def _score_day(self, day: date, settings: ReadinessSettings, is_today: bool) -> DayOutcome:
        metrics = self.store.get_metrics(day)
        if metrics is None:
            if is_today:
                raise InsufficientData(missing=["HRV"])
            raise HistoricalDataMissing(day)
        if metrics.valid_hrv() is None:
            if is_today:
                raise InsufficientData(missing=["HRV"], available=metrics.available_metrics())
            raise HistoricalDataIncomplete(day, missing=["HRV"], partial=False)

        start, end = baseline_window(day, settings.window_length_days)
        history = self.store.get_metrics_range(start, end)
        hrv_baseline = compute_baseline(
            hrv_samples(history),
            HRV_VALID_RANGE,
            settings.minimum_samples_for_baseline,
        )
        rhr_baseline = self._rhr_baseline(day, history, settings)

        result = compute_score(metrics, hrv_baseline, rhr_baseline, settings)
        record, changed = self.store.upsert_score(day, result.record_fields(settings))

        logger.info(
            f"Score {day}: {result.score:.1f} ({result.category.value}), "
            f"baseline HRV {hrv_baseline:.1f}ms, deviation {result.hrv_deviation_percent:+.1f}%"
        )
        return DayOutcome(
            date=day,
            score=record,
            result=result,
            changed=changed,
            notices=self._partial_notices(day, metrics, settings),
        )

    @staticmethod
    def _rhr_baseline(
        day: date,
        history: List[DailyMetrics],
        settings: ReadinessSettings,
    ) -> Optional[float]:
        if not settings.use_rhr_adjustment:
            return None
        try:
            return compute_baseline(
                rhr_samples(history),
                RHR_VALID_RANGE,
                settings.minimum_samples_for_baseline,
                metric="Resting Heart Rate",
            )
        except BaselineUnavailable as e:
            logger.info(f"Ajustement FC repos ignore pour {day}: {e.message}")
            return None

    @staticmethod
    def _partial_notices(
        day: date,
        metrics: DailyMetrics,
        settings: ReadinessSettings,
    ) -> List[ReadinessError]:
        missing = metrics.missing_metrics(
            use_rhr=settings.use_rhr_adjustment,
            use_sleep=settings.use_sleep_adjustment,
        )
        if not missing:
            return []
        return [HistoricalDataIncomplete(day, missing=missing, partial=True)]
