"""
Coordinateur de recalcul des scores.

Classe les changements de reglages (aujourd'hui seulement ou historique
complet), regroupe les declenchements rapproches (debounce), garantit un seul
recalcul actif a la fois et rejoue l'historique jour par jour, du plus ancien
au plus recent, avec progression et annulation cooperative.

Etats : IDLE -> DEBOUNCING -> RUNNING_TODAY | RUNNING_HISTORICAL -> IDLE,
CANCELLED atteignable depuis tout etat actif.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ready.domain.entities.readiness_settings import (
    ReadinessSettings,
    SettingsChange,
    SettingsField,
)
from ready.domain.errors import DataProcessingFailed, ReadinessError
from ready.domain.services.day_record_store import DayRecordStore
from ready.domain.services.readiness_service import DayOutcome, ReadinessService
from ready.domain.services.settings_store import SettingsStore
from ready.domain.services.widget_publisher import WidgetPublisher

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_LOOKBACK_DAYS = 90
DEFAULT_WIDGET_HISTORY_DAYS = 7
PROGRESS_SWEEP_SHARE = 0.99

# Champs qui invalident la baseline de tous les scores passes
HISTORICAL_FIELDS = frozenset({
    SettingsField.WINDOW_LENGTH_DAYS,
    SettingsField.MINIMUM_SAMPLES_FOR_BASELINE,
    SettingsField.USE_RHR_ADJUSTMENT,
    SettingsField.USE_SLEEP_ADJUSTMENT,
})
# Champs qui ne changent que la definition de "aujourd'hui"
TODAY_FIELDS = frozenset({
    SettingsField.MODE,
    SettingsField.WINDOW_END_HOUR,
})


class CoordinatorState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RUNNING_TODAY = "running_today"
    RUNNING_HISTORICAL = "running_historical"
    CANCELLED = "cancelled"


class RecalculationScope(str, Enum):
    TODAY = "today"
    HISTORICAL = "historical"

    def merge(self, other: Optional["RecalculationScope"]) -> "RecalculationScope":
        """Un replay historique recalcule aussi aujourd'hui : il absorbe TODAY."""
        if RecalculationScope.HISTORICAL in (self, other):
            return RecalculationScope.HISTORICAL
        return RecalculationScope.TODAY


class RunStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


def classify(change: SettingsChange) -> Optional[RecalculationScope]:
    """Portee du recalcul requise par un diff de reglages (None = rien a faire)."""
    if change.fields & HISTORICAL_FIELDS:
        return RecalculationScope.HISTORICAL
    if change.fields & TODAY_FIELDS:
        return RecalculationScope.TODAY
    return None


class CancellationToken:
    """Jeton d'annulation cooperative, consulte entre deux jours."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, seconds: float) -> bool:
        """Attend `seconds`. Retourne False si le jeton est annule avant l'echeance."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False


@dataclass(frozen=True)
class Progress:
    fraction: float = 0.0
    label: str = ""


@dataclass
class RunResult:
    scope: RecalculationScope
    status: RunStatus
    started_at: datetime
    finished_at: Optional[datetime] = None
    processed: List[date] = field(default_factory=list)
    failures: Dict[date, ReadinessError] = field(default_factory=dict)
    error: Optional[ReadinessError] = None
    outcome: Optional[DayOutcome] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope.value,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "processed": [d.isoformat() for d in self.processed],
            "failures": {d.isoformat(): e.to_dict() for d, e in self.failures.items()},
            "error": self.error.to_dict() if self.error else None,
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }


class RecalculationCoordinator:
    """Orchestre les recalculs : un seul actif, debounce, annulation."""

    def __init__(
        self,
        service: ReadinessService,
        store: DayRecordStore,
        settings_store: SettingsStore,
        publisher: Optional[WidgetPublisher] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        widget_history_days: int = DEFAULT_WIDGET_HISTORY_DAYS,
        on_progress: Optional[Callable[[Progress], None]] = None,
    ):
        self.service = service
        self.store = store
        self.settings_store = settings_store
        self.publisher = publisher
        self.debounce_seconds = debounce_seconds
        self.lookback_days = lookback_days
        self.widget_history_days = widget_history_days
        self.on_progress = on_progress

        self._state = CoordinatorState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._token: Optional[CancellationToken] = None
        self._scope: Optional[RecalculationScope] = None
        self._days: Optional[int] = None
        self._quick_runs = 0
        self._progress = Progress()
        self._last_result: Optional[RunResult] = None

    # ============ ETAT ============

    @property
    def state(self) -> CoordinatorState:
        if self._state in (CoordinatorState.IDLE, CoordinatorState.CANCELLED) and self._quick_runs:
            return CoordinatorState.RUNNING_TODAY
        return self._state

    @property
    def progress(self) -> Progress:
        return self._progress

    @property
    def last_result(self) -> Optional[RunResult]:
        return self._last_result

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "scope": self._scope.value if self.is_active and self._scope else None,
            "progress": {"fraction": self._progress.fraction, "label": self._progress.label},
            "last_run": self._last_result.to_dict() if self._last_result else None,
        }

    # ============ POINTS D'ENTREE ============

    async def handle_settings_change(self, change: SettingsChange) -> Optional[DayOutcome]:
        """Reagit a un diff de reglages.

        Aujourd'hui est toujours recalcule immediatement (chemin rapide). Si le
        diff invalide l'historique, ou si un replay historique est deja en
        attente ou en cours, un replay debounce est programme ensuite en tache
        de fond avec les nouveaux reglages.
        """
        scope = classify(change)
        if scope is None:
            return None

        needs_sweep = (
            scope is RecalculationScope.HISTORICAL
            or (self.is_active and self._scope is RecalculationScope.HISTORICAL)
        )
        logger.info(
            f"Changement de reglages {sorted(f.value for f in change.fields)} -> recalcul {scope.value}"
        )
        try:
            return await self.run_today(change.current)
        finally:
            if needs_sweep:
                self.request_recalculation(RecalculationScope.HISTORICAL)

    def request_recalculation(
        self,
        scope: RecalculationScope = RecalculationScope.TODAY,
        days: Optional[int] = None,
    ) -> asyncio.Task:
        """Programme un recalcul debounce en tache de fond.

        Un declenchement remplace celui en attente ou en cours : l'ancien est
        annule, sa portee fusionnee avec la nouvelle, et le nouveau ne demarre
        qu'une fois l'ancien termine.
        """
        if days is not None and days < 1:
            raise ValueError(f"days doit etre >= 1 (recu {days})")
        previous = self._task
        if previous is not None and not previous.done():
            scope = scope.merge(self._scope)
            if self._days is not None or days is not None:
                days = max(days or self.lookback_days, self._days or self.lookback_days)
            self._token.cancel()
        else:
            previous = None

        token = CancellationToken()
        self._token = token
        self._scope = scope
        self._days = days
        self._state = CoordinatorState.DEBOUNCING
        self._task = asyncio.create_task(self._run(scope, token, days, previous))
        return self._task

    def cancel(self) -> bool:
        """Annule le recalcul en attente ou en cours. Les jours deja ecrits restent valides."""
        if not self.is_active:
            return False
        logger.info("Annulation du recalcul demandee")
        self._token.cancel()
        return True

    async def wait(self) -> Optional[RunResult]:
        """Attend la fin du recalcul actif (et de ceux qui l'ont remplace)."""
        while self.is_active:
            await asyncio.wait([self._task])
        return self._last_result

    # ============ CHEMIN RAPIDE ============

    async def run_today(self, settings: Optional[ReadinessSettings] = None) -> DayOutcome:
        """Recalcule aujourd'hui et retourne le resultat. Les erreurs remontent a l'appelant."""
        settings = settings or self.settings_store.get()
        self._quick_runs += 1
        try:
            outcome = await self.service.calculate_day(self.service.today(), settings)
        finally:
            self._quick_runs -= 1
        self._publish()
        return outcome

    # ============ REPLAY HISTORIQUE ============

    async def run_historical(
        self,
        settings: Optional[ReadinessSettings] = None,
        days: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> RunResult:
        """Rejoue l'historique au premier plan.

        Raises:
            ReadinessError: derniere erreur rencontree si tous les jours ont echoue.
            ValueError: `days` inferieur a 1.
        """
        result = await self._sweep(
            settings or self.settings_store.get(),
            self.lookback_days if days is None else days,
            token or CancellationToken(),
        )
        if result.status is RunStatus.FAILED:
            raise result.error
        return result

    async def _sweep(
        self,
        settings: ReadinessSettings,
        days: int,
        token: CancellationToken,
    ) -> RunResult:
        if days < 1:
            raise ValueError(f"days doit etre >= 1 (recu {days})")
        started = self.service.clock()
        result = RunResult(scope=RecalculationScope.HISTORICAL, status=RunStatus.COMPLETED, started_at=started)
        end = started.date()
        start = end - timedelta(days=days - 1)
        dates = [start + timedelta(days=i) for i in range(days)]

        if token.cancelled:
            result.status = RunStatus.CANCELLED
            result.finished_at = self.service.clock()
            return result

        deleted = self.store.delete_scores(start, end)
        logger.info(f"Recalcul historique {start} -> {end}: {deleted} scores reinitialises")

        last_error: Optional[ReadinessError] = None
        total = len(dates)
        for index, day in enumerate(dates):
            # Point de suspension entre deux jours
            await asyncio.sleep(0)
            if token.cancelled:
                result.status = RunStatus.CANCELLED
                logger.info(f"Recalcul historique annule apres {index}/{total} jours")
                break

            try:
                await self.service.calculate_day(day, settings, now=started)
                result.processed.append(day)
            except ReadinessError as e:
                last_error = e
                result.failures[day] = e
                logger.warning(f"Jour {day} ignore: {e.message}")
            except Exception as e:
                logger.error(f"Erreur inattendue pour {day}: {type(e).__name__}: {e}", exc_info=True)
                last_error = DataProcessingFailed("readiness calculation", str(e))
                result.failures[day] = last_error

            self._report_progress(
                (index + 1) / total * PROGRESS_SWEEP_SHARE,
                f"Calculating {day.isoformat()} ({index + 1}/{total})...",
            )

        if result.status is not RunStatus.CANCELLED:
            if not result.processed:
                result.status = RunStatus.FAILED
                result.error = last_error
            elif result.failures:
                result.status = RunStatus.PARTIAL
            self._report_progress(1.0, "Historical recalculation complete")

        result.finished_at = self.service.clock()
        logger.info(
            f"Recalcul historique {result.status.value}: {len(result.processed)} jours calcules, "
            f"{len(result.failures)} echecs"
        )
        return result

    # ============ TACHE DE FOND ============

    async def _run(
        self,
        scope: RecalculationScope,
        token: CancellationToken,
        days: Optional[int],
        previous: Optional[asyncio.Task],
    ) -> RunResult:
        if previous is not None:
            await asyncio.wait([previous])

        started = self.service.clock()
        if not await token.sleep(self.debounce_seconds):
            return self._finish(token, RunResult(scope=scope, status=RunStatus.CANCELLED, started_at=started))

        # Instantane des reglages pris une seule fois, en debut de run
        settings = self.settings_store.get()
        try:
            if scope is RecalculationScope.HISTORICAL:
                self._set_state(token, CoordinatorState.RUNNING_HISTORICAL)
                result = await self._sweep(settings, days or self.lookback_days, token)
            else:
                self._set_state(token, CoordinatorState.RUNNING_TODAY)
                result = RunResult(scope=scope, status=RunStatus.COMPLETED, started_at=started)
                try:
                    result.outcome = await self.service.calculate_day(self.service.today(), settings)
                    result.processed.append(result.outcome.date)
                except ReadinessError as e:
                    result.status = RunStatus.FAILED
                    result.error = e
                    result.failures[self.service.today()] = e
                    logger.warning(f"Recalcul du jour en echec: {e.message}")
        except Exception as e:
            logger.error(f"Erreur inattendue du recalcul {scope.value}: {type(e).__name__}: {e}", exc_info=True)
            result = RunResult(
                scope=scope,
                status=RunStatus.FAILED,
                started_at=started,
                error=DataProcessingFailed(f"{scope.value} recalculation", str(e)),
            )

        if result.status in (RunStatus.COMPLETED, RunStatus.PARTIAL):
            self._publish()
        return self._finish(token, result)

    def _finish(self, token: CancellationToken, result: RunResult) -> RunResult:
        if result.finished_at is None:
            result.finished_at = self.service.clock()
        if token is self._token:
            self._last_result = result
            self._state = (
                CoordinatorState.CANCELLED if result.status is RunStatus.CANCELLED
                else CoordinatorState.IDLE
            )
        return result

    def _set_state(self, token: CancellationToken, state: CoordinatorState) -> None:
        if token is self._token:
            self._state = state

    def _report_progress(self, fraction: float, label: str) -> None:
        self._progress = Progress(fraction=fraction, label=label)
        if self.on_progress is not None:
            self.on_progress(self._progress)

    def _publish(self) -> None:
        """Publication widget best-effort : un echec ne fait jamais echouer le calcul."""
        if self.publisher is None:
            return
        try:
            self.publisher.publish(self.store.latest_scores(self.widget_history_days))
        except Exception as e:
            logger.warning(f"Publication widget impossible: {type(e).__name__}: {e}")
