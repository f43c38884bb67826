"""
Calcul des baselines glissantes (moyenne arithmetique sur une fenetre de jours).
Fonctions pures : aucune lecture en base, aucun effet de bord.
"""
import math
import statistics
from datetime import date as date_type, timedelta
from typing import Iterable, Optional, Sequence, Tuple

from ready.domain.entities.daily_metrics import DailyMetrics, HRV_MIN_MS, RHR_MIN_BPM
from ready.domain.errors import BaselineUnavailable

# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------
ValidRange = Tuple[float, float]

HRV_VALID_RANGE: ValidRange = (HRV_MIN_MS, math.inf)
# Plus strict que la borne physiologique : une FC repos > 100 fausse la baseline
RHR_VALID_RANGE: ValidRange = (RHR_MIN_BPM, 100.0)

Sample = Tuple[date_type, Optional[float]]


def compute_baseline(
    samples: Sequence[Sample],
    valid_range: ValidRange,
    minimum_samples: int,
    metric: str = "HRV",
) -> float:
    """Moyenne des valeurs de `samples` comprises dans `valid_range` (bornes incluses).

    Raises:
        BaselineUnavailable: moins de `minimum_samples` valeurs valides.
    """
    low, high = valid_range
    valid = [
        value for _, value in samples
        if value is not None and low <= value <= high
    ]
    if not valid or len(valid) < minimum_samples:
        raise BaselineUnavailable(
            days_available=len(valid),
            days_needed=max(minimum_samples, 1),
            metric=metric,
        )
    return statistics.fmean(valid)


def baseline_window(day: date_type, window_length_days: int) -> Tuple[date_type, date_type]:
    """Fenetre [day - N, day - 1] : les N jours precedant `day`, `day` exclu."""
    return day - timedelta(days=window_length_days), day - timedelta(days=1)


def hrv_samples(metrics: Iterable[DailyMetrics]) -> list:
    return [(m.date, m.hrv) for m in metrics]


def rhr_samples(metrics: Iterable[DailyMetrics]) -> list:
    return [(m.date, m.resting_heart_rate) for m in metrics]
