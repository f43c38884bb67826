"""
SettingsStore - reglages persistants du calcul de disponibilite.

Chaque mise a jour retourne un SettingsChange type (champs modifies,
instantane precedent, instantane courant) que l'appelant transmet
directement au coordinateur de recalcul.
"""
import logging
import threading
from datetime import datetime
from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session

from ready.domain.entities.readiness_settings import (
    ReadinessSettings,
    ReadinessSettingsRecord,
    SettingsChange,
    SettingsField,
)

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1
_FIELD_NAMES = frozenset(f.value for f in SettingsField)


class SettingsStore:
    """Ligne unique readiness_settings, lue sous forme d'instantane immuable."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._lock = threading.Lock()

    def get(self) -> ReadinessSettings:
        with Session(self.engine) as session:
            record = session.get(ReadinessSettingsRecord, SETTINGS_ROW_ID)
            if record is None:
                return ReadinessSettings()
            return _to_settings(record)

    def update(self, **fields: Any) -> SettingsChange:
        """Valide et persiste les champs fournis (None = inchange).

        Raises:
            ValueError: champ inconnu.
            pydantic.ValidationError: valeur invalide (fenetre hors 7/14/30, etc.).
        """
        unknown = set(fields) - _FIELD_NAMES
        if unknown:
            raise ValueError(f"Reglages inconnus: {sorted(unknown)}")

        with self._lock:
            previous = self.get()
            values = previous.model_dump()
            values.update({key: value for key, value in fields.items() if value is not None})
            current = ReadinessSettings.model_validate(values)
            return self._save(previous, current)

    def reset_to_defaults(self) -> SettingsChange:
        with self._lock:
            return self._save(self.get(), ReadinessSettings())

    def _save(self, previous: ReadinessSettings, current: ReadinessSettings) -> SettingsChange:
        change = SettingsChange.between(previous, current)
        if change.is_empty:
            return change

        with Session(self.engine) as session:
            record = session.get(ReadinessSettingsRecord, SETTINGS_ROW_ID)
            if record is None:
                record = ReadinessSettingsRecord(id=SETTINGS_ROW_ID)
            record.window_length_days = int(current.window_length_days)
            record.minimum_samples_for_baseline = current.minimum_samples_for_baseline
            record.use_rhr_adjustment = current.use_rhr_adjustment
            record.use_sleep_adjustment = current.use_sleep_adjustment
            record.mode = current.mode.value
            record.window_end_hour = current.window_end_hour
            record.updated_at = datetime.utcnow()
            session.add(record)
            session.commit()

        logger.info(f"Reglages modifies: {sorted(f.value for f in change.fields)}")
        return change


def _to_settings(record: ReadinessSettingsRecord) -> ReadinessSettings:
    return ReadinessSettings(
        window_length_days=record.window_length_days,
        minimum_samples_for_baseline=record.minimum_samples_for_baseline,
        use_rhr_adjustment=record.use_rhr_adjustment,
        use_sleep_adjustment=record.use_sleep_adjustment,
        mode=record.mode,
        window_end_hour=record.window_end_hour,
    )
