import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.transitions import ensure_utc, utcnow
from app.models.ad import Ad, AdResult, AdStatus
from app.schemas.stats import (
    AdReference,
    DashboardResponse,
    DueAd,
    StatsResponse,
    TrendPoint,
)
from app.services.ad_metrics import calculate_hit_rate, calculate_roas
from app.services.sweeper import sweep_expired_ads

logger = logging.getLogger(__name__)

# due-date alerts ignore ads that are already past production
DUE_DATE_EXCLUDED_STATUSES = (AdStatus.COMPLETED.value, AdStatus.ANALYSIS.value)


def week_start(value: datetime) -> datetime:
    """Sunday 00:00 of the week containing ``value``."""
    value = ensure_utc(value)
    days_since_sunday = (value.weekday() + 1) % 7
    start = value - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def build_trend_data(completed_ads: List[Ad], now: datetime, weeks: int) -> List[TrendPoint]:
    """Weekly hit rate of ads closed in the last ``weeks`` weeks, oldest first.

    Weeks with no closed ads are left out.
    """
    cutoff = now - timedelta(days=7 * weeks)
    weekly: Dict[datetime, Dict[str, int]] = {}

    for ad in completed_ads:
        closed_at = ensure_utc(ad.closed_at)
        if closed_at is None or closed_at < cutoff:
            continue
        bucket = weekly.setdefault(week_start(closed_at), {"winners": 0, "total": 0})
        bucket["total"] += 1
        if ad.result == AdResult.WINNER:
            bucket["winners"] += 1

    ordered = OrderedDict(sorted(weekly.items()))
    return [
        TrendPoint(
            period=start.strftime("%m-%d"),
            hit_rate=calculate_hit_rate(data["winners"], data["total"]),
        )
        for start, data in ordered.items()
    ]


def count_by_status(db: Session) -> Dict[str, int]:
    counts = {status.value: 0 for status in AdStatus}
    rows = db.query(Ad.status, func.count(Ad.id)).group_by(Ad.status).all()
    for status, count in rows:
        counts[status.value if isinstance(status, AdStatus) else status] = count
    return counts


def _stats_fields(db: Session, now: datetime) -> Dict:
    completed_ads = (
        db.query(Ad)
        .filter(Ad.status == AdStatus.COMPLETED.value)
        .order_by(Ad.closed_at.desc())
        .all()
    )
    total_analyzed = len(completed_ads)
    winners = sum(1 for ad in completed_ads if ad.result == AdResult.WINNER)

    testing_count, money_in_limbo = (
        db.query(func.count(Ad.id), func.coalesce(func.sum(Ad.testing_budget), 0))
        .filter(Ad.status == AdStatus.TESTING.value)
        .one()
    )

    analysis_ads = (
        db.query(Ad)
        .filter(Ad.status == AdStatus.ANALYSIS.value)
        .order_by(Ad.review_date)
        .all()
    )

    total_spend, total_revenue = db.query(
        func.coalesce(func.sum(Ad.spend), 0),
        func.coalesce(func.sum(Ad.revenue), 0),
    ).one()

    return {
        "hit_rate": calculate_hit_rate(winners, total_analyzed),
        "total_analyzed": total_analyzed,
        "winners": winners,
        "losers": total_analyzed - winners,
        "money_in_limbo": float(money_in_limbo),
        "testing_count": testing_count,
        "ads_ready_for_analysis": [
            AdReference(id=ad.id, name=ad.name, review_date=ensure_utc(ad.review_date))
            for ad in analysis_ads
        ],
        "trend_data": build_trend_data(completed_ads, now, settings.TREND_WEEKS),
        "ads_by_status": count_by_status(db),
        "total_spend": float(total_spend),
        "total_revenue": float(total_revenue),
        "overall_roas": calculate_roas(float(total_revenue), float(total_spend)),
    }


def compute_stats(db: Session, now: Optional[datetime] = None) -> StatsResponse:
    now = ensure_utc(now) or utcnow()
    sweep_expired_ads(db, now)
    return StatsResponse(**_stats_fields(db, now))


def _due_ads(db: Session, *conditions) -> List[DueAd]:
    ads = (
        db.query(Ad)
        .filter(
            Ad.due_date.isnot(None),
            Ad.status.notin_(DUE_DATE_EXCLUDED_STATUSES),
            *conditions,
        )
        .order_by(Ad.due_date)
        .all()
    )
    return [
        DueAd(
            id=ad.id,
            name=ad.name,
            concept=ad.concept,
            due_date=ensure_utc(ad.due_date),
            status=ad.status,
        )
        for ad in ads
    ]


def compute_dashboard(db: Session, now: Optional[datetime] = None) -> DashboardResponse:
    """Stats plus overdue and due-soon alerts for ads still in the pipeline."""
    now = ensure_utc(now) or utcnow()
    sweep_expired_ads(db, now)

    soon = now + timedelta(days=settings.DUE_SOON_DAYS)
    fields = _stats_fields(db, now)
    fields["overdue_ads"] = _due_ads(db, Ad.due_date < now)
    fields["due_soon_ads"] = _due_ads(db, Ad.due_date >= now, Ad.due_date <= soon)

    logger.debug(
        f"dashboard: {len(fields['overdue_ads'])} overdue, {len(fields['due_soon_ads'])} due soon"
    )
    return DashboardResponse(**fields)
