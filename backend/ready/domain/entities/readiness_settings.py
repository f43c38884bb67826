"""
Entite ReadinessSettings - Domain Layer
Reglages utilisateur du calcul de disponibilite, persistants en base.
"""
from dataclasses import dataclass
from datetime import date as date_type, datetime, time, timedelta
from enum import Enum, IntEnum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator
from sqlmodel import SQLModel, Field

WINDOW_END_HOUR_MIN = 9
WINDOW_END_HOUR_MAX = 12
ROLLING_WINDOW_HOURS = 6


class BaselinePeriod(IntEnum):
    """Longueur de la fenetre glissante de baseline (jours)"""
    SEVEN_DAYS = 7
    FOURTEEN_DAYS = 14
    THIRTY_DAYS = 30


@dataclass(frozen=True)
class TimeWindow:
    """Fenetre horaire [start, end] d'un echantillon biometrique."""
    start: datetime
    end: datetime

    @property
    def day(self) -> date_type:
        """Jour calendaire de l'echantillon (la fenetre glissante peut commencer la veille)."""
        return self.end.date()


class ReadinessMode(str, Enum):
    """Definit quelle fenetre horaire compte comme l'echantillon HRV du jour"""
    MORNING = "morning"
    ROLLING = "rolling"

    def time_window(
        self,
        day: date_type,
        window_end_hour: int,
        now: Optional[datetime] = None,
    ) -> TimeWindow:
        """Fenetre de mesure pour `day`.

        Morning : 00:00 -> window_end_hour:00, tronquee a `now` si la journee
        est en cours. Rolling : les 6 dernieres heures pour aujourd'hui, la
        fenetre du matin pour les jours passes.
        """
        start = datetime.combine(day, time.min)
        end = start + timedelta(hours=window_end_hour)
        is_current_day = now is not None and now.date() == day

        if self is ReadinessMode.ROLLING and is_current_day:
            return TimeWindow(start=now - timedelta(hours=ROLLING_WINDOW_HOURS), end=now)
        if is_current_day and now < end:
            return TimeWindow(start=start, end=now)
        return TimeWindow(start=start, end=end)


class SettingsField(str, Enum):
    """Champs de reglage, utilises pour decrire un diff"""
    WINDOW_LENGTH_DAYS = "window_length_days"
    MINIMUM_SAMPLES_FOR_BASELINE = "minimum_samples_for_baseline"
    USE_RHR_ADJUSTMENT = "use_rhr_adjustment"
    USE_SLEEP_ADJUSTMENT = "use_sleep_adjustment"
    MODE = "mode"
    WINDOW_END_HOUR = "window_end_hour"


class ReadinessSettings(BaseModel):
    """Instantane immuable des reglages, lu en debut de calcul."""
    model_config = ConfigDict(frozen=True)

    window_length_days: BaselinePeriod = BaselinePeriod.SEVEN_DAYS
    minimum_samples_for_baseline: int = PydanticField(default=2, ge=1)
    use_rhr_adjustment: bool = False
    use_sleep_adjustment: bool = False
    mode: ReadinessMode = ReadinessMode.MORNING
    window_end_hour: int = 11

    @field_validator("window_end_hour", mode="before")
    @classmethod
    def _clamp_window_end_hour(cls, value):
        return min(max(int(value), WINDOW_END_HOUR_MIN), WINDOW_END_HOUR_MAX)

    def time_window(self, day: date_type, now: Optional[datetime] = None) -> TimeWindow:
        return self.mode.time_window(day, self.window_end_hour, now)


class ReadinessSettingsUpdate(BaseModel):
    """Mise a jour partielle des reglages (PATCH /settings)."""
    window_length_days: Optional[BaselinePeriod] = None
    minimum_samples_for_baseline: Optional[int] = PydanticField(default=None, ge=1)
    use_rhr_adjustment: Optional[bool] = None
    use_sleep_adjustment: Optional[bool] = None
    mode: Optional[ReadinessMode] = None
    window_end_hour: Optional[int] = None


class ReadinessSettingsRecord(SQLModel, table=True):
    """Ligne unique (id=1) stockant les reglages courants."""
    __tablename__ = "readiness_settings"

    id: int = Field(default=1, primary_key=True)
    window_length_days: int = 7
    minimum_samples_for_baseline: int = 2
    use_rhr_adjustment: bool = False
    use_sleep_adjustment: bool = False
    mode: str = ReadinessMode.MORNING.value
    window_end_hour: int = 11
    updated_at: datetime = Field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class SettingsChange:
    """Diff type entre deux instantanes de reglages."""
    fields: FrozenSet[SettingsField]
    previous: ReadinessSettings
    current: ReadinessSettings

    @property
    def is_empty(self) -> bool:
        return not self.fields

    @classmethod
    def between(cls, previous: ReadinessSettings, current: ReadinessSettings) -> "SettingsChange":
        changed = frozenset(
            f for f in SettingsField
            if getattr(previous, f.value) != getattr(current, f.value)
        )
        return cls(fields=changed, previous=previous, current=current)
