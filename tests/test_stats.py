from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.transitions import utcnow
from app.models.ad import AdResult, AdStatus
from app.services.stats import build_trend_data, compute_dashboard, compute_stats, week_start


# ── Weekly trend ──────────────────────────────────────────────────────────

class TestTrend:

    def test_week_starts_on_sunday(self):
        wednesday = datetime(2026, 3, 11, 15, 30, tzinfo=timezone.utc)
        assert week_start(wednesday) == datetime(2026, 3, 8, tzinfo=timezone.utc)

    def test_sunday_is_its_own_week(self):
        sunday = datetime(2026, 3, 8, 1, 0, tzinfo=timezone.utc)
        assert week_start(sunday) == datetime(2026, 3, 8, tzinfo=timezone.utc)

    def test_groups_by_week_oldest_first(self):
        now = datetime(2026, 3, 12, tzinfo=timezone.utc)
        ads = [
            SimpleNamespace(closed_at=datetime(2026, 3, 10, tzinfo=timezone.utc), result=AdResult.WINNER),
            SimpleNamespace(closed_at=datetime(2026, 3, 9, tzinfo=timezone.utc), result=AdResult.LOSER),
            SimpleNamespace(closed_at=datetime(2026, 3, 2, tzinfo=timezone.utc), result=AdResult.WINNER),
            # older than eight weeks
            SimpleNamespace(closed_at=datetime(2025, 12, 1, tzinfo=timezone.utc), result=AdResult.WINNER),
        ]

        trend = build_trend_data(ads, now, weeks=8)

        assert [(p.period, p.hit_rate) for p in trend] == [("03-01", 100.0), ("03-08", 50.0)]


# ── Stats payload ─────────────────────────────────────────────────────────

class TestStats:

    def test_empty_database(self, db):
        stats = compute_stats(db)
        assert stats.hit_rate == 0.0
        assert stats.total_analyzed == 0
        assert stats.money_in_limbo == 0.0
        assert stats.overall_roas is None
        assert stats.trend_data == []
        assert stats.ads_by_status == {status.value: 0 for status in AdStatus}

    def test_aggregates(self, db, make_ad, locked_testing_fields):
        now = utcnow()
        make_ad(status=AdStatus.COMPLETED, result=AdResult.WINNER, closed_at=now, spend=100.0, revenue=400.0)
        make_ad(status=AdStatus.COMPLETED, result=AdResult.LOSER, closed_at=now, spend=100.0, revenue=0.0)
        make_ad(status=AdStatus.COMPLETED, result=AdResult.LOSER, closed_at=now, spend=50.0)
        make_ad(testing_budget=75.0, **locked_testing_fields)
        make_ad(status=AdStatus.IDEA)

        stats = compute_stats(db, now)

        assert stats.total_analyzed == 3
        assert stats.winners == 1
        assert stats.losers == 2
        assert stats.hit_rate == pytest.approx(100 / 3)
        assert stats.testing_count == 1
        assert stats.money_in_limbo == 75.0
        assert stats.total_spend == 250.0
        assert stats.total_revenue == 400.0
        assert stats.overall_roas == pytest.approx(1.6)
        assert stats.ads_by_status["completed"] == 3
        assert stats.ads_by_status["development"] == 0
        assert len(stats.trend_data) == 1

    def test_expired_testing_ads_counted_as_ready(self, db, make_ad):
        now = utcnow()
        ad = make_ad(
            name="expired",
            status=AdStatus.TESTING,
            hypothesis="h",
            is_locked=True,
            testing_budget=50.0,
            review_date=now - timedelta(hours=2),
        )

        stats = compute_stats(db, now)

        assert stats.testing_count == 0
        assert stats.money_in_limbo == 0.0
        assert [a.id for a in stats.ads_ready_for_analysis] == [ad.id]

    def test_endpoint_uses_camel_case(self, client):
        response = client.get("/api/stats")
        assert response.status_code == 200
        body = response.json()
        for key in ("hitRate", "moneyInLimbo", "adsReadyForAnalysis", "trendData", "adsByStatus", "overallRoas"):
            assert key in body


# ── Dashboard due dates ───────────────────────────────────────────────────

class TestDashboard:

    def test_overdue_and_due_soon(self, db, make_ad):
        now = utcnow()
        overdue = make_ad(name="overdue", status=AdStatus.PRODUCTION, hypothesis="h", due_date=now - timedelta(days=1))
        soon = make_ad(name="soon", status=AdStatus.DEVELOPMENT, due_date=now + timedelta(days=2))
        make_ad(name="later", status=AdStatus.IDEA, due_date=now + timedelta(days=10))
        make_ad(name="done", status=AdStatus.COMPLETED, hypothesis="h", due_date=now - timedelta(days=5))
        make_ad(name="reviewing", status=AdStatus.ANALYSIS, hypothesis="h", due_date=now + timedelta(days=1))

        dashboard = compute_dashboard(db, now)

        assert [a.id for a in dashboard.overdue_ads] == [overdue.id]
        assert [a.id for a in dashboard.due_soon_ads] == [soon.id]

    def test_endpoint(self, client, make_ad):
        make_ad(status=AdStatus.IDEA, due_date=utcnow() - timedelta(hours=1))
        response = client.get("/api/dashboard")
        assert response.status_code == 200
        body = response.json()
        assert len(body["overdueAds"]) == 1
        assert body["dueSoonAds"] == []
        assert "hitRate" in body
