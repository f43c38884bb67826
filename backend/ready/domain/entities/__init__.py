"""
Initialisation des entités du domaine
Enregistre les tables SQLModel dans les métadonnées
"""

from .daily_metrics import DailyMetrics, DailyMetricsRead, DailyMetricsWrite
from .readiness_score import ReadinessScore, ReadinessScoreRead, ReadinessCategory
from .readiness_settings import (
    BaselinePeriod,
    ReadinessMode,
    ReadinessSettings,
    ReadinessSettingsRecord,
    ReadinessSettingsUpdate,
    SettingsChange,
    SettingsField,
    TimeWindow,
)

__all__ = [
    "DailyMetrics", "DailyMetricsRead", "DailyMetricsWrite",
    "ReadinessScore", "ReadinessScoreRead", "ReadinessCategory",
    "BaselinePeriod", "ReadinessMode", "ReadinessSettings", "ReadinessSettingsRecord",
    "ReadinessSettingsUpdate", "SettingsChange", "SettingsField", "TimeWindow",
]
