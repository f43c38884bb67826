"""
Tests du DayRecordStore : unicite par date, upserts idempotents, suppression, retention.
"""
from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest

from sqlmodel import Session, select

from ready.domain.entities.daily_metrics import DailyMetrics
from ready.domain.entities.readiness_score import ReadinessCategory, ReadinessScore

DAY = date(2026, 3, 15)

SCORE_FIELDS = {
    "score": 56.0,
    "category": ReadinessCategory.MODERATE,
    "hrv_baseline": 50.0,
    "hrv_deviation_percent": 6.0,
    "rhr_adjustment": 0.0,
    "sleep_adjustment": 3.0,
    "mode": "morning",
    "window_length_days": 7,
}


def count(engine, model):
    with Session(engine) as session:
        return len(session.exec(select(model)).all())


class TestMetrics:
    def test_upsert_creates_then_updates(self, store, engine):
        store.upsert_metrics(DAY, hrv=50.0)
        store.upsert_metrics(DAY, hrv=55.0)

        assert count(engine, DailyMetrics) == 1
        assert store.get_metrics(DAY).hrv == 55.0

    def test_partial_update_keeps_other_fields(self, store):
        store.upsert_metrics(DAY, hrv=50.0, sleep_hours=7.5)
        store.upsert_metrics(DAY, resting_heart_rate=58.0)

        record = store.get_metrics(DAY)
        assert record.hrv == 50.0
        assert record.sleep_hours == 7.5
        assert record.resting_heart_rate == 58.0

    def test_out_of_bounds_values_stored_as_provided(self, store):
        store.upsert_metrics(DAY, hrv=4.0, resting_heart_rate=220.0, sleep_hours=30.0)
        record = store.get_metrics(DAY)
        assert record.hrv == 4.0
        assert record.valid_hrv() is None
        assert record.valid_resting_heart_rate() is None
        assert record.valid_sleep_hours() is None

    def test_unknown_field_rejected(self, store):
        with pytest.raises(ValueError, match="steps"):
            store.upsert_metrics(DAY, steps=10000)

    def test_range_sorted(self, store):
        for offset in (3, 1, 2):
            store.upsert_metrics(DAY - timedelta(days=offset), hrv=50.0 + offset)
        result = store.get_metrics_range(DAY - timedelta(days=3), DAY - timedelta(days=2))
        assert [m.date for m in result] == [DAY - timedelta(days=3), DAY - timedelta(days=2)]

    def test_concurrent_insert_retried_as_update(self, store, engine, monkeypatch):
        """Un insert concurrent sur la meme date est rejoue en update, sans doublon."""
        store.upsert_metrics(DAY, hrv=50.0, sleep_hours=8.0)

        original_session = store._session
        calls = {"n": 0}

        def racing_session():
            session = original_session()
            if calls["n"] == 0:
                # Premier passage : la ligne existante n'est pas vue -> insert en conflit
                missing = MagicMock()
                missing.first.return_value = None
                session.exec = MagicMock(return_value=missing)
            calls["n"] += 1
            return session

        monkeypatch.setattr(store, "_session", racing_session)
        record = store.upsert_metrics(DAY, hrv=62.0)

        assert calls["n"] == 2
        assert record.hrv == 62.0
        assert record.sleep_hours == 8.0
        assert count(engine, DailyMetrics) == 1


class TestScores:
    def test_upsert_score_creates(self, store):
        record, changed = store.upsert_score(DAY, SCORE_FIELDS)
        assert changed is True
        assert record.score == 56.0
        assert record.category is ReadinessCategory.MODERATE

    def test_unchanged_score_not_rewritten(self, store, engine):
        first, _ = store.upsert_score(DAY, SCORE_FIELDS)
        second, changed = store.upsert_score(DAY, dict(SCORE_FIELDS))

        assert changed is False
        assert second.id == first.id
        assert second.calculated_at == first.calculated_at
        assert count(engine, ReadinessScore) == 1

    def test_changed_score_updated_in_place(self, store, engine):
        first, _ = store.upsert_score(DAY, SCORE_FIELDS)
        second, changed = store.upsert_score(DAY, {**SCORE_FIELDS, "score": 81.0, "category": ReadinessCategory.OPTIMAL})

        assert changed is True
        assert second.id == first.id
        assert store.get_score(DAY).category is ReadinessCategory.OPTIMAL
        assert count(engine, ReadinessScore) == 1

    def test_get_scores_and_latest(self, store):
        for offset in range(5):
            store.upsert_score(DAY - timedelta(days=offset), {**SCORE_FIELDS, "score": 50.0 + offset})

        in_range = store.get_scores(DAY - timedelta(days=2), DAY)
        assert [s.date for s in in_range] == [DAY - timedelta(days=2), DAY - timedelta(days=1), DAY]

        latest = store.latest_scores(2)
        assert [s.date for s in latest] == [DAY, DAY - timedelta(days=1)]

    def test_delete_scores_range(self, store):
        for offset in range(5):
            store.upsert_score(DAY - timedelta(days=offset), SCORE_FIELDS)

        deleted = store.delete_scores(DAY - timedelta(days=3), DAY - timedelta(days=1))

        assert deleted == 3
        remaining = [s.date for s in store.get_scores(DAY - timedelta(days=10), DAY)]
        assert remaining == [DAY - timedelta(days=4), DAY]


class TestRetention:
    def test_delete_older_than(self, store):
        for offset in (0, 10, 40, 400):
            day = DAY - timedelta(days=offset)
            store.upsert_metrics(day, hrv=50.0)
            store.upsert_score(day, SCORE_FIELDS)

        result = store.delete_older_than(30, today=DAY)

        assert result["metrics"] == 2
        assert result["scores"] == 2
        assert result["cutoff"] == DAY - timedelta(days=30)
        assert [m.date for m in store.get_metrics_range(date(2000, 1, 1), DAY)] == [
            DAY - timedelta(days=10), DAY,
        ]
