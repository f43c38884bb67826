"""
Moteur de score de disponibilite.

score de base = clamp(50 + deviation_hrv / 2, 0, 100)
score final   = clamp(base + ajustement FC repos + ajustement sommeil, 0, 100)
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ready.domain.entities.daily_metrics import DailyMetrics
from ready.domain.entities.readiness_score import ReadinessCategory
from ready.domain.entities.readiness_settings import ReadinessSettings
from ready.domain.errors import BaselineUnavailable, InsufficientData

# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------
SCORE_MIN = 0.0
SCORE_MAX = 100.0
BASE_SCORE_CENTER = 50.0
RHR_WEIGHT = 0.5  # moins de poids que la HRV

SLEEP_OPTIMAL_MIN_H = 7.0
SLEEP_OPTIMAL_MAX_H = 9.0
SLEEP_DEFICIT_PENALTY = 5.0  # points par heure sous 7h
SLEEP_EXCESS_PENALTY = 2.0  # points par heure au-dela de 9h
SLEEP_OPTIMAL_BONUS = 3.0  # points par heure au-dela de 7h


@dataclass(frozen=True)
class ScoreResult:
    """Score final, categorie et detail des ajustements."""
    score: float
    category: ReadinessCategory
    base_score: float
    hrv_baseline: float
    hrv_deviation_percent: float
    rhr_adjustment: float
    sleep_adjustment: float

    def record_fields(self, settings: ReadinessSettings) -> Dict[str, Any]:
        """Champs a persister dans ReadinessScore."""
        return {
            "score": self.score,
            "category": self.category,
            "hrv_baseline": self.hrv_baseline,
            "hrv_deviation_percent": self.hrv_deviation_percent,
            "rhr_adjustment": self.rhr_adjustment,
            "sleep_adjustment": self.sleep_adjustment,
            "mode": settings.mode.value,
            "window_length_days": int(settings.window_length_days),
        }


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    return min(max(value, low), high)


def hrv_deviation_percent(hrv: float, hrv_baseline: float) -> float:
    return (hrv - hrv_baseline) / hrv_baseline * 100


def base_score(deviation_percent: float) -> float:
    return clamp(BASE_SCORE_CENTER + deviation_percent / 2)


def rhr_adjustment(resting_heart_rate: float, rhr_baseline: float) -> float:
    """FC repos sous la baseline = bonus, au-dessus = malus."""
    rhr_deviation = (rhr_baseline - resting_heart_rate) / rhr_baseline * 100
    return rhr_deviation * RHR_WEIGHT


def sleep_adjustment(sleep_hours: float) -> float:
    if sleep_hours < SLEEP_OPTIMAL_MIN_H:
        return -(SLEEP_OPTIMAL_MIN_H - sleep_hours) * SLEEP_DEFICIT_PENALTY
    if sleep_hours > SLEEP_OPTIMAL_MAX_H:
        return -(sleep_hours - SLEEP_OPTIMAL_MAX_H) * SLEEP_EXCESS_PENALTY
    return (sleep_hours - SLEEP_OPTIMAL_MIN_H) * SLEEP_OPTIMAL_BONUS


def compute_score(
    today: DailyMetrics,
    hrv_baseline: Optional[float],
    rhr_baseline: Optional[float],
    settings: ReadinessSettings,
) -> ScoreResult:
    """Calcule le score du jour a partir des metriques et des baselines.

    La HRV est obligatoire. La FC repos et le sommeil ne servent que si leur
    ajustement est active ; leur absence ne bloque jamais le calcul.

    Raises:
        InsufficientData: HRV du jour absente ou hors bornes.
        BaselineUnavailable: pas de baseline HRV.
    """
    hrv = today.valid_hrv()
    if hrv is None:
        raise InsufficientData(missing=["HRV"], available=today.available_metrics())
    if hrv_baseline is None or hrv_baseline <= 0:
        raise BaselineUnavailable(
            days_available=0,
            days_needed=settings.minimum_samples_for_baseline,
        )

    deviation = hrv_deviation_percent(hrv, hrv_baseline)
    base = base_score(deviation)

    rhr_adj = 0.0
    rhr = today.valid_resting_heart_rate()
    if settings.use_rhr_adjustment and rhr is not None and rhr_baseline and rhr_baseline > 0:
        rhr_adj = rhr_adjustment(rhr, rhr_baseline)

    sleep_adj = 0.0
    sleep_hours = today.valid_sleep_hours()
    if settings.use_sleep_adjustment and sleep_hours is not None:
        sleep_adj = sleep_adjustment(sleep_hours)

    final = clamp(base + rhr_adj + sleep_adj)

    return ScoreResult(
        score=final,
        category=ReadinessCategory.for_score(final),
        base_score=base,
        hrv_baseline=hrv_baseline,
        hrv_deviation_percent=deviation,
        rhr_adjustment=rhr_adj,
        sleep_adjustment=sleep_adj,
    )
