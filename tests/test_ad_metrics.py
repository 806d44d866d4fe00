from datetime import datetime, timedelta, timezone

import pytest

from app.models.ad import AdFormat
from app.services.ad_metrics import (
    HOOK_RATE_BANDS,
    analyze_video_metrics,
    calculate_hit_rate,
    calculate_hold_rate,
    calculate_hook_rate,
    calculate_roas,
    days_remaining,
    is_lock_expired,
    rate_band,
)

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


# ── ROAS / hit rate ───────────────────────────────────────────────────────

class TestRoas:

    def test_revenue_over_spend(self):
        assert calculate_roas(300.0, 100.0) == pytest.approx(3.0)

    @pytest.mark.parametrize("revenue,spend", [(None, 10.0), (10.0, None), (10.0, 0)])
    def test_undefined_cases(self, revenue, spend):
        assert calculate_roas(revenue, spend) is None

    def test_zero_revenue(self):
        assert calculate_roas(0.0, 50.0) == 0.0


class TestHitRate:

    def test_percentage(self):
        assert calculate_hit_rate(1, 4) == pytest.approx(25.0)

    def test_empty_set_is_zero(self):
        assert calculate_hit_rate(0, 0) == 0.0


# ── Lock countdown ────────────────────────────────────────────────────────

class TestDaysRemaining:

    def test_partial_day_rounds_up(self):
        assert days_remaining(NOW + timedelta(days=2, hours=1), NOW) == 3

    def test_exact_days(self):
        assert days_remaining(NOW + timedelta(days=4), NOW) == 4

    def test_past_review_is_zero(self):
        assert days_remaining(NOW - timedelta(days=1), NOW) == 0

    def test_no_review_date(self):
        assert days_remaining(None, NOW) == 0

    def test_naive_review_date_is_utc(self):
        naive = (NOW + timedelta(hours=12)).replace(tzinfo=None)
        assert days_remaining(naive, NOW) == 1


def test_is_lock_expired():
    assert is_lock_expired(NOW, NOW) is True
    assert is_lock_expired(NOW - timedelta(seconds=1), NOW) is True
    assert is_lock_expired(NOW + timedelta(seconds=1), NOW) is False
    assert is_lock_expired(None, NOW) is True


# ── Video rates ───────────────────────────────────────────────────────────

class TestVideoRates:

    def test_hook_rate(self):
        assert calculate_hook_rate(250, 1000) == pytest.approx(25.0)

    def test_hold_rate_uses_impressions(self):
        assert calculate_hold_rate(100, 1000) == pytest.approx(10.0)

    def test_missing_impressions(self):
        assert calculate_hook_rate(250, 0) is None
        assert calculate_hold_rate(100, None) is None

    def test_bands(self):
        assert rate_band(10.0, HOOK_RATE_BANDS) == "failed"
        assert rate_band(25.0, HOOK_RATE_BANDS) == "warning"
        assert rate_band(30.0, HOOK_RATE_BANDS) == "good"
        assert rate_band(None, HOOK_RATE_BANDS) is None


class TestAnalyzeVideoMetrics:

    def test_strong_hook_weak_hold(self):
        analysis = analyze_video_metrics(1000, 350, 100, ad_format=AdFormat.VIDEO)
        assert analysis["hookRateStatus"] == "good"
        assert analysis["holdRateStatus"] == "failed"
        assert analysis["suggestedHookResult"] == "worked"
        assert analysis["suggestedScriptResult"] == "failed"

    def test_warning_band_suggests_nothing(self):
        analysis = analyze_video_metrics(1000, 250, 200, ad_format=AdFormat.UGC)
        assert analysis["suggestedHookResult"] is None
        assert analysis["suggestedScriptResult"] is None

    def test_static_format_has_no_analysis(self):
        analysis = analyze_video_metrics(1000, 350, 300, ad_format=AdFormat.STATIC)
        assert all(value is None for value in analysis.values())
