"""
Tests du moteur de score : score de base lineaire, ajustements, bornes et categories.
"""
from datetime import date

import pytest

from ready.domain.entities.daily_metrics import DailyMetrics
from ready.domain.entities.readiness_score import ReadinessCategory
from ready.domain.entities.readiness_settings import ReadinessSettings
from ready.domain.errors import BaselineUnavailable, InsufficientData
from ready.domain.services.score_engine import (
    base_score,
    compute_score,
    rhr_adjustment,
    sleep_adjustment,
)

DAY = date(2026, 3, 15)


def metrics(**fields):
    return DailyMetrics(date=DAY, **fields)


# ============================================================
# Exemple de reference
# ============================================================

class TestReferenceExample:
    def test_53_over_50_with_8h_sleep(self):
        """baseline 50, HRV 53 -> deviation 6% -> base 53, sommeil 8h -> +3 -> 56 Moderate."""
        settings = ReadinessSettings(use_sleep_adjustment=True, use_rhr_adjustment=False)
        result = compute_score(metrics(hrv=53.0, sleep_hours=8.0), 50.0, None, settings)

        assert result.hrv_deviation_percent == pytest.approx(6.0)
        assert result.base_score == pytest.approx(53.0)
        assert result.sleep_adjustment == pytest.approx(3.0)
        assert result.rhr_adjustment == 0.0
        assert result.score == pytest.approx(56.0)
        assert result.category is ReadinessCategory.MODERATE


# ============================================================
# Composantes
# ============================================================

class TestBaseScore:
    def test_zero_deviation(self):
        assert base_score(0.0) == 50.0

    def test_clamped_high(self):
        assert base_score(150.0) == 100.0

    def test_clamped_low(self):
        assert base_score(-120.0) == 0.0


class TestSleepAdjustment:
    @pytest.mark.parametrize("hours,expected", [
        (5.0, -10.0),
        (6.5, -2.5),
        (7.0, 0.0),
        (8.0, 3.0),
        (9.0, 6.0),
        (10.0, -2.0),
        (12.0, -6.0),
    ])
    def test_piecewise(self, hours, expected):
        assert sleep_adjustment(hours) == pytest.approx(expected)


class TestRhrAdjustment:
    def test_lower_rhr_is_bonus(self):
        # (60 - 54) / 60 * 100 * 0.5 = 5
        assert rhr_adjustment(54.0, 60.0) == pytest.approx(5.0)

    def test_higher_rhr_is_penalty(self):
        assert rhr_adjustment(66.0, 60.0) == pytest.approx(-5.0)


# ============================================================
# compute_score
# ============================================================

class TestComputeScore:
    def test_rhr_adjustment_applied_when_enabled(self):
        settings = ReadinessSettings(use_rhr_adjustment=True)
        result = compute_score(metrics(hrv=50.0, resting_heart_rate=54.0), 50.0, 60.0, settings)
        assert result.rhr_adjustment == pytest.approx(5.0)
        assert result.score == pytest.approx(55.0)

    def test_rhr_ignored_when_disabled(self):
        result = compute_score(
            metrics(hrv=50.0, resting_heart_rate=54.0), 50.0, 60.0, ReadinessSettings()
        )
        assert result.rhr_adjustment == 0.0

    def test_rhr_ignored_without_baseline(self):
        settings = ReadinessSettings(use_rhr_adjustment=True)
        result = compute_score(metrics(hrv=50.0, resting_heart_rate=54.0), 50.0, None, settings)
        assert result.rhr_adjustment == 0.0

    def test_missing_optional_inputs_never_block(self):
        settings = ReadinessSettings(use_rhr_adjustment=True, use_sleep_adjustment=True)
        result = compute_score(metrics(hrv=45.0), 50.0, 60.0, settings)
        assert result.rhr_adjustment == 0.0
        assert result.sleep_adjustment == 0.0
        assert result.score == pytest.approx(45.0)

    def test_zero_sleep_is_no_data(self):
        settings = ReadinessSettings(use_sleep_adjustment=True)
        result = compute_score(metrics(hrv=50.0, sleep_hours=0.0), 50.0, None, settings)
        assert result.sleep_adjustment == 0.0

    def test_final_score_clamped(self):
        settings = ReadinessSettings(use_sleep_adjustment=True)
        high = compute_score(metrics(hrv=200.0, sleep_hours=9.0), 50.0, None, settings)
        low = compute_score(metrics(hrv=10.0, sleep_hours=3.0), 100.0, None, settings)
        assert high.score == 100.0
        assert low.score == 0.0
        assert low.category is ReadinessCategory.FATIGUE

    def test_missing_hrv(self):
        with pytest.raises(InsufficientData) as exc_info:
            compute_score(metrics(hrv=None, sleep_hours=8.0), 50.0, None, ReadinessSettings())
        assert exc_info.value.missing == ["HRV"]
        assert exc_info.value.available == ["Sleep"]

    def test_invalid_hrv(self):
        with pytest.raises(InsufficientData):
            compute_score(metrics(hrv=8.0), 50.0, None, ReadinessSettings())

    @pytest.mark.parametrize("baseline", [None, 0.0])
    def test_no_baseline(self, baseline):
        with pytest.raises(BaselineUnavailable):
            compute_score(metrics(hrv=50.0), baseline, None, ReadinessSettings())

    def test_record_fields(self):
        settings = ReadinessSettings(window_length_days=14)
        result = compute_score(metrics(hrv=55.0), 50.0, None, settings)
        fields = result.record_fields(settings)
        assert fields["mode"] == "morning"
        assert fields["window_length_days"] == 14
        assert fields["category"] is ReadinessCategory.MODERATE


# ============================================================
# Categories
# ============================================================

class TestCategory:
    @pytest.mark.parametrize("score,expected", [
        (100.0, ReadinessCategory.OPTIMAL),
        (80.0, ReadinessCategory.OPTIMAL),
        (79.999, ReadinessCategory.MODERATE),
        (50.0, ReadinessCategory.MODERATE),
        (49.999, ReadinessCategory.LOW),
        (30.0, ReadinessCategory.LOW),
        (29.999, ReadinessCategory.FATIGUE),
        (0.0, ReadinessCategory.FATIGUE),
        (None, ReadinessCategory.UNKNOWN),
    ])
    def test_boundaries(self, score, expected):
        assert ReadinessCategory.for_score(score) is expected

    def test_description(self):
        assert "recovery" in ReadinessCategory.FATIGUE.description
