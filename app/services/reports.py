import json
import logging
import time
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from app.agent.report import ReportAgent
from app.core.errors import ExternalServiceError, ValidationError
from app.core.metrics import REPORT_DURATION, REPORT_REQUESTS
from app.core.models_config import get_model_config
from app.core.transitions import ensure_utc, utcnow
from app.models.ad import Ad, AdResult, AdStatus
from app.models.learning import Learning
from app.services.ad_metrics import calculate_hit_rate, calculate_roas
from app.services.stats import count_by_status
from app.services.sweeper import sweep_expired_ads

logger = logging.getLogger(__name__)


def _value(enum_value) -> Optional[str]:
    return enum_value.value if enum_value is not None else None


def _group_totals(completed_ads, attribute: str) -> Dict[str, Dict[str, float]]:
    groups: Dict[str, Dict[str, float]] = {}
    for ad in completed_ads:
        key = _value(getattr(ad, attribute))
        group = groups.setdefault(key, {"total": 0, "winners": 0, "totalSpend": 0.0, "totalRevenue": 0.0})
        group["total"] += 1
        if ad.result == AdResult.WINNER:
            group["winners"] += 1
        group["totalSpend"] += ad.spend or 0.0
        group["totalRevenue"] += ad.revenue or 0.0
    return groups


def build_report_snapshot(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Aggregate view of the pipeline that the report model reasons over."""
    now = ensure_utc(now) or utcnow()
    sweep_expired_ads(db, now)

    limits = get_model_config("report").get("snapshot") or {}
    recent_days = int(limits.get("recent_days", 7))
    recent_learnings = int(limits.get("recent_learnings", 10))
    sample_ads = int(limits.get("sample_ads", 10))

    all_ads = db.query(Ad).order_by(Ad.created_at.desc()).all()
    completed = [ad for ad in all_ads if ad.status == AdStatus.COMPLETED]
    testing = [ad for ad in all_ads if ad.status == AdStatus.TESTING]
    analysis = [ad for ad in all_ads if ad.status == AdStatus.ANALYSIS]

    winners = sum(1 for ad in completed if ad.result == AdResult.WINNER)
    losers = sum(1 for ad in completed if ad.result == AdResult.LOSER)
    total_spend = sum(ad.spend or 0.0 for ad in completed)
    total_revenue = sum(ad.revenue or 0.0 for ad in completed)
    overall_roas = calculate_roas(total_revenue, total_spend)

    since = now - timedelta(days=recent_days)
    new_recently = [ad for ad in all_ads if ensure_utc(ad.created_at) >= since]
    closed_recently = [
        ad for ad in completed if ad.closed_at is not None and ensure_utc(ad.closed_at) >= since
    ]

    learnings = (
        db.query(Learning)
        .order_by(Learning.created_at.desc())
        .limit(recent_learnings)
        .all()
    )

    return {
        "summary": {
            "totalAds": len(all_ads),
            "completedAds": len(completed),
            "winners": winners,
            "losers": losers,
            "hitRate": round(calculate_hit_rate(winners, len(completed)), 1),
            "moneyInLimbo": sum(ad.testing_budget or 0.0 for ad in testing),
            "totalSpend": total_spend,
            "totalRevenue": total_revenue,
            "overallRoas": round(overall_roas, 2) if overall_roas is not None else None,
        },
        "adsByStatus": count_by_status(db),
        "angleStats": _group_totals(completed, "angle"),
        "formatStats": _group_totals(completed, "format"),
        "recentActivity": {
            "days": recent_days,
            "newAds": len(new_recently),
            "completedAds": len(closed_recently),
        },
        "pendingAnalysis": [
            {
                "name": ad.name,
                "concept": ad.concept,
                "angle": _value(ad.angle),
                "format": _value(ad.format),
            }
            for ad in analysis
        ],
        "recentLearnings": [
            {
                "content": learning.content,
                "angle": _value(learning.angle),
                "format": _value(learning.format),
                "result": _value(learning.result),
            }
            for learning in learnings
        ],
        "sampleAds": [
            {
                "name": ad.name,
                "concept": ad.concept,
                "angle": _value(ad.angle),
                "format": _value(ad.format),
                "status": _value(ad.status),
                "result": _value(ad.result),
                "hypothesis": ad.hypothesis,
                "diagnosis": ad.diagnosis,
                "spend": ad.spend,
                "revenue": ad.revenue,
            }
            for ad in all_ads[:sample_ads]
        ],
    }


def _require_query(query: str) -> str:
    if not (query or "").strip():
        raise ValidationError("A report question is required")
    return query.strip()


async def generate_report(db: Session, query: str, agent: Optional[ReportAgent] = None) -> str:
    query = _require_query(query)
    snapshot = build_report_snapshot(db)
    agent = agent or ReportAgent()

    start_time = time.time()
    try:
        report = await agent.generate(query, snapshot)
    except ExternalServiceError:
        REPORT_REQUESTS.labels(mode="json", status="error").inc()
        raise
    finally:
        REPORT_DURATION.observe(time.time() - start_time)

    REPORT_REQUESTS.labels(mode="json", status="success").inc()
    logger.info(f"report generated ({len(report)} chars)")
    return report


def _sse(data: Dict[str, Any], event: Optional[str] = None) -> str:
    payload = json.dumps(data, ensure_ascii=False)
    if event:
        return f"event: {event}\ndata: {payload}\n\n"
    return f"data: {payload}\n\n"


async def stream_report(
    db: Session,
    query: str,
    request: Optional[Request] = None,
    agent: Optional[ReportAgent] = None,
) -> AsyncIterator[str]:
    """Report as server-sent events.

    Validation and snapshot errors surface before the stream starts; model
    failures after that are delivered as an ``error`` event.
    """
    query = _require_query(query)
    snapshot = build_report_snapshot(db)
    agent = agent or ReportAgent()

    async def event_stream():
        start_time = time.time()
        try:
            async for text in agent.stream(query, snapshot):
                if request is not None and await request.is_disconnected():
                    REPORT_REQUESTS.labels(mode="stream", status="cancelled").inc()
                    logger.info("report stream cancelled by client")
                    return
                yield _sse({"text": text})
        except ExternalServiceError as e:
            REPORT_REQUESTS.labels(mode="stream", status="error").inc()
            yield _sse({"error": e.detail}, event="error")
            return
        finally:
            REPORT_DURATION.observe(time.time() - start_time)

        REPORT_REQUESTS.labels(mode="stream", status="success").inc()
        yield _sse({}, event="done")

    return event_stream()
