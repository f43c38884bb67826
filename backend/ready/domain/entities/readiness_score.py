"""
Entite ReadinessScore - Domain Layer
Score de disponibilite quotidien derive d'un seul enregistrement DailyMetrics.
"""
from sqlmodel import SQLModel, Field, UniqueConstraint
from typing import Optional
from uuid import UUID, uuid4
from datetime import date as date_type, datetime
from enum import Enum


class ReadinessCategory(str, Enum):
    """Categories de disponibilite, derivees uniquement du score final"""
    OPTIMAL = "Optimal"
    MODERATE = "Moderate"
    LOW = "Low"
    FATIGUE = "Fatigue"
    UNKNOWN = "Unknown"

    @classmethod
    def for_score(cls, score: Optional[float]) -> "ReadinessCategory":
        """Optimal [80,100], Moderate [50,80), Low [30,50), Fatigue [0,30)."""
        if score is None:
            return cls.UNKNOWN
        if score >= 80:
            return cls.OPTIMAL
        if score >= 50:
            return cls.MODERATE
        if score >= 30:
            return cls.LOW
        return cls.FATIGUE

    @property
    def description(self) -> str:
        return _CATEGORY_DESCRIPTIONS[self]


_CATEGORY_DESCRIPTIONS = {
    ReadinessCategory.OPTIMAL: "Well recovered and ready for high-intensity training.",
    ReadinessCategory.MODERATE: "Moderately recovered. Consider moderate-intensity training.",
    ReadinessCategory.LOW: "Signs of fatigue. Consider light activity or active recovery.",
    ReadinessCategory.FATIGUE: "Your body needs rest. Focus on recovery.",
    ReadinessCategory.UNKNOWN: "Not enough data to determine readiness.",
}


class ReadinessScore(SQLModel, table=True):
    """Score quotidien, mis a jour en place a chaque recalcul (jamais duplique)."""
    __tablename__ = "readiness_score"
    __table_args__ = (
        UniqueConstraint("date", name="uq_readiness_score_date"),
    )

    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)
    date: date_type = Field(index=True)

    score: float
    category: ReadinessCategory = Field(default=ReadinessCategory.UNKNOWN)
    hrv_baseline: float
    hrv_deviation_percent: float
    rhr_adjustment: float = 0.0
    sleep_adjustment: float = 0.0

    # Reglages utilises pour ce calcul
    mode: str
    window_length_days: int

    calculated_at: datetime = Field(default_factory=datetime.utcnow)


class ReadinessScoreRead(SQLModel):
    """Schéma pour lire un score (réponse API)."""
    id: UUID
    date: date_type
    score: float
    category: ReadinessCategory
    hrv_baseline: float
    hrv_deviation_percent: float
    rhr_adjustment: float
    sleep_adjustment: float
    mode: str
    window_length_days: int
    calculated_at: datetime
