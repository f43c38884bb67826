"""
DayRecordStore - acces aux metriques et scores quotidiens.

Une seule entree par date calendaire, garantie par la contrainte UNIQUE des
tables et par des upserts transactionnels (select puis update ou insert,
rejoue en update si un insert concurrent leve une IntegrityError).
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ready.domain.entities.daily_metrics import DailyMetrics
from ready.domain.entities.readiness_score import ReadinessScore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", DailyMetrics, ReadinessScore)

METRIC_FIELDS = ("hrv", "resting_heart_rate", "sleep_hours", "sleep_quality")
SCORE_FIELDS = (
    "score",
    "category",
    "hrv_baseline",
    "hrv_deviation_percent",
    "rhr_adjustment",
    "sleep_adjustment",
    "mode",
    "window_length_days",
)
UPSERT_ATTEMPTS = 2


class DayRecordStore:
    """Repository des tables daily_metrics et readiness_score."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    # ============ METRIQUES ============

    def get_metrics(self, day: date) -> Optional[DailyMetrics]:
        with self._session() as session:
            return session.exec(
                select(DailyMetrics).where(DailyMetrics.date == day)
            ).first()

    def get_metrics_range(self, start: date, end: date) -> List[DailyMetrics]:
        """Metriques de [start, end] (bornes incluses), triees par date."""
        with self._session() as session:
            return list(session.exec(
                select(DailyMetrics)
                .where(DailyMetrics.date >= start, DailyMetrics.date <= end)
                .order_by(DailyMetrics.date)
            ).all())

    def upsert_metrics(self, day: date, **fields: Any) -> DailyMetrics:
        """Cree ou met a jour les metriques du jour. Seuls les champs fournis sont ecrits."""
        unknown = set(fields) - set(METRIC_FIELDS)
        if unknown:
            raise ValueError(f"Champs de metriques inconnus: {sorted(unknown)}")

        def apply(record: DailyMetrics) -> bool:
            for key, value in fields.items():
                setattr(record, key, value)
            record.updated_at = datetime.utcnow()
            return True

        record, _ = self._upsert(DailyMetrics, day, fields, apply)
        return record

    # ============ SCORES ============

    def get_score(self, day: date) -> Optional[ReadinessScore]:
        with self._session() as session:
            return session.exec(
                select(ReadinessScore).where(ReadinessScore.date == day)
            ).first()

    def get_scores(self, start: date, end: date) -> List[ReadinessScore]:
        with self._session() as session:
            return list(session.exec(
                select(ReadinessScore)
                .where(ReadinessScore.date >= start, ReadinessScore.date <= end)
                .order_by(ReadinessScore.date)
            ).all())

    def latest_scores(self, limit: int) -> List[ReadinessScore]:
        """Les `limit` scores les plus recents, du plus recent au plus ancien."""
        with self._session() as session:
            return list(session.exec(
                select(ReadinessScore)
                .order_by(ReadinessScore.date.desc())
                .limit(limit)
            ).all())

    def upsert_score(self, day: date, fields: Dict[str, Any]) -> Tuple[ReadinessScore, bool]:
        """Cree ou met a jour le score du jour.

        Si tous les champs derives sont identiques, l'enregistrement n'est pas
        reecrit (``calculated_at`` compris).

        Returns:
            (score, changed)
        """
        unknown = set(fields) - set(SCORE_FIELDS)
        if unknown:
            raise ValueError(f"Champs de score inconnus: {sorted(unknown)}")

        def apply(record: ReadinessScore) -> bool:
            if all(getattr(record, key) == value for key, value in fields.items()):
                return False
            for key, value in fields.items():
                setattr(record, key, value)
            record.calculated_at = datetime.utcnow()
            return True

        return self._upsert(ReadinessScore, day, fields, apply)

    def delete_scores(self, start: date, end: date) -> int:
        """Supprime les scores de [start, end]. Retourne le nombre de lignes supprimees."""
        with self._session() as session:
            result = session.execute(
                delete(ReadinessScore).where(
                    ReadinessScore.date >= start,
                    ReadinessScore.date <= end,
                )
            )
            session.commit()
            return result.rowcount or 0

    def delete_older_than(self, days: int, today: Optional[date] = None) -> Dict[str, Any]:
        """Politique de retention : supprime metriques et scores anterieurs a today - days."""
        cutoff = (today or date.today()) - timedelta(days=days)
        with self._session() as session:
            scores = session.execute(
                delete(ReadinessScore).where(ReadinessScore.date < cutoff)
            ).rowcount or 0
            metrics = session.execute(
                delete(DailyMetrics).where(DailyMetrics.date < cutoff)
            ).rowcount or 0
            session.commit()

        if scores or metrics:
            logger.info(f"Retention: {metrics} metriques et {scores} scores supprimes (avant {cutoff})")
        return {"metrics": metrics, "scores": scores, "cutoff": cutoff}

    # ============ INTERNE ============

    def _upsert(
        self,
        model: Type[ModelT],
        day: date,
        fields: Dict[str, Any],
        apply,
    ) -> Tuple[ModelT, bool]:
        for attempt in range(1, UPSERT_ATTEMPTS + 1):
            with self._session() as session:
                existing = session.exec(select(model).where(model.date == day)).first()
                if existing is not None:
                    if not apply(existing):
                        return existing, False
                    record = existing
                else:
                    record = model(date=day, **fields)
                session.add(record)
                try:
                    session.commit()
                except IntegrityError:
                    # Insert concurrent sur la meme date : on relit puis on met a jour
                    session.rollback()
                    if attempt == UPSERT_ATTEMPTS:
                        raise
                    logger.info(f"Conflit d'unicite sur {model.__tablename__} {day}, nouvel essai")
                    continue
                session.refresh(record)
                return record, True
