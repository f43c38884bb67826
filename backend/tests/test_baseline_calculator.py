"""
Tests du calcul de baseline glissante.
"""
from datetime import date, timedelta

import pytest

from ready.domain.entities.daily_metrics import DailyMetrics
from ready.domain.errors import BaselineUnavailable
from ready.domain.services.baseline_calculator import (
    HRV_VALID_RANGE,
    RHR_VALID_RANGE,
    baseline_window,
    compute_baseline,
    hrv_samples,
    rhr_samples,
)

DAY = date(2026, 3, 15)


def samples(*values):
    return [(DAY - timedelta(days=i + 1), v) for i, v in enumerate(values)]


class TestComputeBaseline:
    def test_mean_of_valid_values(self):
        assert compute_baseline(samples(40.0, 50.0, 60.0), HRV_VALID_RANGE, 2) == pytest.approx(50.0)

    def test_filters_out_of_range_hrv(self):
        # 5ms < 10ms : ignore
        assert compute_baseline(samples(5.0, 50.0, 70.0), HRV_VALID_RANGE, 2) == pytest.approx(60.0)

    def test_filters_none(self):
        assert compute_baseline(samples(None, 48.0, None, 52.0), HRV_VALID_RANGE, 2) == pytest.approx(50.0)

    def test_range_bounds_inclusive(self):
        assert compute_baseline(samples(30.0, 100.0), RHR_VALID_RANGE, 2) == pytest.approx(65.0)

    def test_rhr_above_100_excluded(self):
        assert compute_baseline(samples(55.0, 120.0, 65.0), RHR_VALID_RANGE, 2) == pytest.approx(60.0)

    def test_not_enough_samples(self):
        with pytest.raises(BaselineUnavailable) as exc_info:
            compute_baseline(samples(50.0, 4.0, None), HRV_VALID_RANGE, 3)
        assert exc_info.value.days_available == 1
        assert exc_info.value.days_needed == 3
        assert exc_info.value.remaining_days == 2
        assert "remaining 2 days" in exc_info.value.recovery_suggestion

    def test_empty_samples(self):
        with pytest.raises(BaselineUnavailable):
            compute_baseline([], HRV_VALID_RANGE, 1)

    @pytest.mark.parametrize("minimum", [1, 2, 5, 7])
    def test_never_numeric_below_minimum(self, minimum):
        """Moins de `minimum` points valides : jamais de valeur numerique."""
        values = [50.0] * (minimum - 1) + [3.0, None]
        with pytest.raises(BaselineUnavailable):
            compute_baseline(samples(*values), HRV_VALID_RANGE, minimum)

    def test_deterministic(self):
        data = samples(42.5, 61.0, 55.25, 48.0)
        assert compute_baseline(data, HRV_VALID_RANGE, 2) == compute_baseline(list(data), HRV_VALID_RANGE, 2)

    def test_metric_name_in_error(self):
        with pytest.raises(BaselineUnavailable) as exc_info:
            compute_baseline([], RHR_VALID_RANGE, 2, metric="Resting Heart Rate")
        assert exc_info.value.message.startswith("Resting Heart Rate baseline not available")


class TestBaselineWindow:
    def test_excludes_scored_day(self):
        start, end = baseline_window(DAY, 7)
        assert start == date(2026, 3, 8)
        assert end == date(2026, 3, 14)

    def test_thirty_days(self):
        start, end = baseline_window(DAY, 30)
        assert (end - start).days == 29


class TestSamples:
    def test_extracts_columns(self):
        metrics = [
            DailyMetrics(date=DAY, hrv=50.0, resting_heart_rate=55.0),
            DailyMetrics(date=DAY - timedelta(days=1), hrv=None, resting_heart_rate=60.0),
        ]
        assert hrv_samples(metrics) == [(DAY, 50.0), (DAY - timedelta(days=1), None)]
        assert rhr_samples(metrics) == [(DAY, 55.0), (DAY - timedelta(days=1), 60.0)]
