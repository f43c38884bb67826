"""
Entite DailyMetrics - Domain Layer
Metriques physiologiques quotidiennes pre-agregees (HRV, FC repos, sommeil).
"""
from sqlmodel import SQLModel, Field, UniqueConstraint
from typing import List, Optional
from uuid import UUID, uuid4
from datetime import date as date_type, datetime

# Bornes physiologiques : hors bornes = valeur absente pour le calcul
HRV_MIN_MS = 10.0
RHR_MIN_BPM = 30.0
RHR_MAX_BPM = 200.0
SLEEP_MAX_HOURS = 24.0


class DailyMetrics(SQLModel, table=True):
    """Metriques d'une journee calendaire, une seule entree par date."""
    __tablename__ = "daily_metrics"
    __table_args__ = (
        UniqueConstraint("date", name="uq_daily_metrics_date"),
    )

    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)
    date: date_type = Field(index=True)

    # Donnees physiologiques (stockees telles que fournies)
    hrv: Optional[float] = None
    resting_heart_rate: Optional[float] = None
    sleep_hours: Optional[float] = None
    sleep_quality: Optional[int] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def valid_hrv(self) -> Optional[float]:
        if self.hrv is None or self.hrv < HRV_MIN_MS:
            return None
        return self.hrv

    def valid_resting_heart_rate(self) -> Optional[float]:
        rhr = self.resting_heart_rate
        if rhr is None or rhr < RHR_MIN_BPM or rhr > RHR_MAX_BPM:
            return None
        return rhr

    def valid_sleep_hours(self) -> Optional[float]:
        """Duree de sommeil exploitable (0 = pas de donnee)."""
        hours = self.sleep_hours
        if hours is None or hours <= 0 or hours > SLEEP_MAX_HOURS:
            return None
        return hours

    def available_metrics(self) -> List[str]:
        available = []
        if self.valid_hrv() is not None:
            available.append("HRV")
        if self.valid_resting_heart_rate() is not None:
            available.append("Resting Heart Rate")
        if self.valid_sleep_hours() is not None:
            available.append("Sleep")
        return available

    def missing_metrics(self, use_rhr: bool = True, use_sleep: bool = True) -> List[str]:
        """Metriques manquantes parmi celles requises par les reglages."""
        missing = []
        if self.valid_hrv() is None:
            missing.append("HRV")
        if use_rhr and self.valid_resting_heart_rate() is None:
            missing.append("Resting Heart Rate")
        if use_sleep and self.valid_sleep_hours() is None:
            missing.append("Sleep")
        return missing


class DailyMetricsWrite(SQLModel):
    """Schema d'ecriture manuelle d'une journee (PUT /metrics/{date})."""
    hrv: Optional[float] = Field(default=None, ge=0)
    resting_heart_rate: Optional[float] = Field(default=None, ge=0)
    sleep_hours: Optional[float] = Field(default=None, ge=0)
    sleep_quality: Optional[int] = Field(default=None, ge=0, le=100)


class DailyMetricsRead(SQLModel):
    """Schéma pour lire les metriques quotidiennes (réponse API)."""
    id: UUID
    date: date_type
    hrv: Optional[float]
    resting_heart_rate: Optional[float]
    sleep_hours: Optional[float]
    sleep_quality: Optional[int]
    created_at: datetime
    updated_at: datetime
