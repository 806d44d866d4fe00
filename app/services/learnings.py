import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.metrics import LEARNINGS
from app.models.ad import Ad, AdStatus, AdTag, ELEMENTS, TagKind
from app.models.learning import Learning, LearningType
from app.schemas.learning import (
    AdSummary,
    ElementInsight,
    LearningCreate,
    SuggestedLearning,
    SuggestionInsights,
    SuggestionsResponse,
    TagCount,
)

logger = logging.getLogger(__name__)

SUGGESTION_LEARNINGS_LIMIT = 10
SUGGESTION_ADS_LIMIT = 20
INSIGHTS_PER_ELEMENT = 3
TOP_TAGS_LIMIT = 5


def extract_learning(
    db: Session,
    ad: Ad,
    update_data: Dict,
    save_learning: bool,
) -> Optional[Learning]:
    """Materialize a Learning from a completion request.

    Runs after the ad update has been committed. A failure here is logged and
    swallowed: the ad keeps its new state either way.
    """
    diagnosis = (update_data.get("diagnosis") or "").strip()
    if not save_learning or not diagnosis:
        return None
    if update_data.get("status") != AdStatus.COMPLETED:
        return None

    try:
        learning = Learning(
            content=diagnosis,
            type=LearningType.INSIGHT,
            ad_id=ad.id,
            angle=ad.angle,
            format=ad.format,
            result=ad.result,
        )
        for element in ELEMENTS:
            setattr(learning, f"{element}_result", getattr(ad, f"{element}_result"))
            setattr(learning, f"{element}_note", getattr(ad, f"{element}_note"))

        db.add(learning)
        db.commit()
        db.refresh(learning)
    except Exception:
        db.rollback()
        LEARNINGS.labels(status="failed").inc()
        logger.exception(f"failed to save learning for ad {ad.id}")
        return None

    LEARNINGS.labels(status="created").inc()
    logger.info(f"learning {learning.id} created from ad {ad.id}")
    return learning


def list_learnings(
    db: Session,
    angle: Optional[str] = None,
    format: Optional[str] = None,
    result: Optional[str] = None,
) -> List[Learning]:
    query = db.query(Learning)
    if angle:
        query = query.filter(Learning.angle == angle)
    if format:
        query = query.filter(Learning.format == format)
    if result:
        query = query.filter(Learning.result == result)
    return query.order_by(Learning.created_at.desc()).all()


def create_learning(db: Session, data: LearningCreate) -> Learning:
    """Manually record a learning, independent of any ad transition."""
    if not data.content.strip():
        raise ValidationError("Learning content is required")

    learning = Learning(
        content=data.content,
        type=data.type,
        ad_id=data.ad_id,
        angle=data.angle,
        format=data.format,
        result=data.result,
    )
    db.add(learning)
    db.commit()
    db.refresh(learning)
    LEARNINGS.labels(status="created").inc()
    return learning


def _element_insights(ads: List[Ad], element: str, outcome: str) -> List[ElementInsight]:
    insights = []
    for ad in ads:
        result = getattr(ad, f"{element}_result")
        note = getattr(ad, f"{element}_note")
        if result is not None and result.value == outcome and note:
            insights.append(ElementInsight(note=note, result=ad.result, concept=ad.concept))
        if len(insights) == INSIGHTS_PER_ELEMENT:
            break
    return insights


def _top_tags(db: Session, ad_ids: List[str], kind: TagKind) -> List[TagCount]:
    if not ad_ids:
        return []
    count = func.count(AdTag.id)
    rows = (
        db.query(AdTag.value, count)
        .filter(AdTag.ad_id.in_(ad_ids), AdTag.kind == kind.value)
        .group_by(AdTag.value)
        .order_by(count.desc(), AdTag.value)
        .limit(TOP_TAGS_LIMIT)
        .all()
    )
    return [TagCount(tag=value, count=n) for value, n in rows]


def _with_source_ads(db: Session, learnings: List[Learning]) -> List[SuggestedLearning]:
    ad_ids = {learning.ad_id for learning in learnings if learning.ad_id}
    ads = {}
    if ad_ids:
        ads = {ad.id: ad for ad in db.query(Ad).filter(Ad.id.in_(ad_ids)).all()}

    suggested = []
    for learning in learnings:
        item = SuggestedLearning.model_validate(learning)
        source = ads.get(learning.ad_id)
        if source is not None:
            item.ad = AdSummary.model_validate(source)
        suggested.append(item)
    return suggested


def learning_suggestions(
    db: Session,
    angle: Optional[str] = None,
    format: Optional[str] = None,
) -> SuggestionsResponse:
    """What past ads with the same angle or format taught us."""
    learnings_query = db.query(Learning)
    if angle:
        learnings_query = learnings_query.filter(Learning.angle == angle)
    if format:
        learnings_query = learnings_query.filter(Learning.format == format)
    learnings = (
        learnings_query
        .order_by(Learning.created_at.desc())
        .limit(SUGGESTION_LEARNINGS_LIMIT)
        .all()
    )

    ads_query = db.query(Ad).filter(Ad.status == AdStatus.COMPLETED.value)
    matches = []
    if angle:
        matches.append(Ad.angle == angle)
    if format:
        matches.append(Ad.format == format)
    if matches:
        ads_query = ads_query.filter(or_(*matches))
    ads = ads_query.order_by(Ad.closed_at.desc()).limit(SUGGESTION_ADS_LIMIT).all()
    ad_ids = [ad.id for ad in ads]

    insights = SuggestionInsights(
        working_hooks=_element_insights(ads, "hook", "worked"),
        failed_hooks=_element_insights(ads, "hook", "failed"),
        working_ctas=_element_insights(ads, "cta", "worked"),
        working_visuals=_element_insights(ads, "visual", "worked"),
        failed_visuals=_element_insights(ads, "visual", "failed"),
        top_fail_reasons=_top_tags(db, ad_ids, TagKind.FAIL_REASON),
        top_success_factors=_top_tags(db, ad_ids, TagKind.SUCCESS_FACTOR),
    )

    return SuggestionsResponse(
        learnings=_with_source_ads(db, learnings),
        insights=insights,
        total_ads_analyzed=len(ads),
        filter_applied={
            "angle": getattr(angle, "value", angle),
            "format": getattr(format, "value", format),
        },
    )
