import logging
from datetime import datetime
from typing import Dict, Iterable, Optional
from uuid import uuid4
from sqlalchemy.orm import Session

from app.models.ad import Ad, AdStatus, AdTag, TagKind
from app.schemas.ad import (
    AdCreate,
    AdUpdate,
    AdResponse,
    AdsResponse,
    VideoMetricsResponse,
)
from app.schemas.learning import LearningResponse
from app.core.config import settings
from app.core.errors import NotFound, ValidationError, error_for
from app.core.transitions import (
    AdSnapshot,
    Rejected,
    ensure_utc,
    evaluate_transition,
    utcnow,
)
from app.core.metrics import AD_OPERATIONS, STATUS_TRANSITIONS, REJECTED_TRANSITIONS
from app.services.ad_metrics import analyze_video_metrics, calculate_roas, days_remaining, is_lock_expired
from app.services.learnings import extract_learning
from app.services.sweeper import sweep_expired_ads

logger = logging.getLogger(__name__)

_TAG_FIELDS = {
    "fail_reasons": TagKind.FAIL_REASON,
    "success_factors": TagKind.SUCCESS_FACTOR,
}

# NOT NULL columns: an explicit null in a PATCH leaves them unchanged
_NON_NULLABLE_FIELDS = (
    "name",
    "concept",
    "hypothesis",
    "angle",
    "awareness",
    "format",
    "funnel_stage",
    "source_type",
    "lock_days",
    "testing_budget",
)


def ad_to_response(ad: Ad, now: Optional[datetime] = None) -> AdResponse:
    """Convert Ad model to AdResponse schema."""
    response_dict = {}
    for name in AdResponse.model_fields:
        if name in ("learnings", "roas", "days_remaining", "is_locked"):
            continue
        value = getattr(ad, name, None)
        if isinstance(value, datetime):
            value = ensure_utc(value)
        response_dict[name] = value

    response_dict["roas"] = calculate_roas(ad.revenue, ad.spend)
    # an elapsed or undated lock is shown unlocked even before the sweeper runs
    response_dict["is_locked"] = bool(
        ad.is_locked
        and ad.status == AdStatus.TESTING
        and not is_lock_expired(ad.review_date, now)
    )
    response_dict["days_remaining"] = (
        days_remaining(ad.review_date, now) if ad.status == AdStatus.TESTING else 0
    )
    response_dict["learnings"] = [
        LearningResponse.model_validate(learning) for learning in (ad.learnings or [])
    ]
    return AdResponse.model_validate(response_dict)


def _get_ad_or_404(db: Session, ad_id: str) -> Ad:
    ad = db.query(Ad).filter(Ad.id == ad_id).first()
    if not ad:
        raise NotFound("Ad not found")
    return ad


def _replace_tags(ad: Ad, kind: TagKind, values: Iterable) -> None:
    wanted = {v.value if hasattr(v, "value") else v for v in values}
    current = {t.value for t in ad.tags if t.kind == kind}

    # surviving values keep their rows (ix_ad_tags_unique)
    ad.tags = [t for t in ad.tags if t.kind != kind or t.value in wanted]
    for value in sorted(wanted - current):
        ad.tags.append(AdTag(kind=kind, value=value))


def _apply_fields(ad: Ad, fields: Dict) -> None:
    for field, value in fields.items():
        if field in _TAG_FIELDS:
            _replace_tags(ad, _TAG_FIELDS[field], value or [])
        else:
            setattr(ad, field, value)


def _record_transition(from_status: AdStatus, to_status: AdStatus, ad_id: str) -> None:
    STATUS_TRANSITIONS.labels(from_status=from_status.value, to_status=to_status.value).inc()
    logger.info(f"ad {ad_id} moved {from_status.value} -> {to_status.value}")


def _raise_rejection(rejection: Rejected, ad_id: str) -> None:
    REJECTED_TRANSITIONS.labels(kind=rejection.kind.value).inc()
    logger.info(f"transition rejected for ad {ad_id}: {rejection.kind.value}")
    raise error_for(rejection.kind, rejection.message)


class AdService:
    """Business logic for ad lifecycle operations."""

    @staticmethod
    def list_ads(db: Session, exclude_completed: bool = False) -> AdsResponse:
        """List ads, newest first. Expired testing ads are swept before reading."""
        AD_OPERATIONS.labels(operation="list").inc()
        sweep_expired_ads(db)

        query = db.query(Ad)
        if exclude_completed:
            query = query.filter(Ad.status != AdStatus.COMPLETED.value)
        ads = query.order_by(Ad.created_at.desc()).all()

        now = utcnow()
        return AdsResponse(ads=[ad_to_response(ad, now) for ad in ads])

    @staticmethod
    def list_completed_ads(db: Session) -> AdsResponse:
        """Completed ads, most recently closed first (winners vs losers view)."""
        AD_OPERATIONS.labels(operation="list").inc()
        sweep_expired_ads(db)

        ads = (
            db.query(Ad)
            .filter(Ad.status == AdStatus.COMPLETED.value)
            .order_by(Ad.closed_at.desc())
            .all()
        )
        return AdsResponse(ads=[ad_to_response(ad) for ad in ads])

    @staticmethod
    def get_ad(db: Session, ad_id: str) -> AdResponse:
        AD_OPERATIONS.labels(operation="get").inc()
        sweep_expired_ads(db)
        return ad_to_response(_get_ad_or_404(db, ad_id))

    @staticmethod
    def create_ad(db: Session, ad_data: AdCreate) -> AdResponse:
        """Create a new ad. Only ideas may be created without a hypothesis."""
        AD_OPERATIONS.labels(operation="create").inc()
        concept = (ad_data.concept or "").strip()
        hypothesis = ad_data.hypothesis or ""

        if not concept:
            raise ValidationError("Concept is required")
        if ad_data.status != AdStatus.IDEA and not hypothesis.strip():
            raise ValidationError("A hypothesis is required for ads beyond the idea stage")

        now = utcnow()
        fields = {
            "name": ad_data.name or f"{now.date().isoformat()}_{concept}",
            "concept": concept,
            "hypothesis": hypothesis,
            "angle": ad_data.angle,
            "angle_detail": ad_data.angle_detail,
            "awareness": ad_data.awareness or "unaware",
            "format": ad_data.format,
            "funnel_stage": ad_data.funnel_stage,
            "product": ad_data.product,
            "source_type": ad_data.source_type,
            "source_url": ad_data.source_url,
            "reference_media_url": ad_data.reference_media_url,
            "thumbnail_url": ad_data.thumbnail_url,
            "hook": ad_data.hook,
            "script": ad_data.script,
            "cta": ad_data.cta,
            "notes": ad_data.notes,
            "status": AdStatus.IDEA,
            "is_locked": False,
            "lock_days": ad_data.lock_days or settings.DEFAULT_LOCK_DAYS,
            "testing_budget": ad_data.testing_budget if ad_data.testing_budget is not None else 50,
            "due_date": ad_data.due_date,
        }

        if ad_data.status != AdStatus.IDEA:
            # a new ad starts as an idea; anything further goes through the lifecycle rules
            snapshot = AdSnapshot(
                status=AdStatus.IDEA,
                hypothesis=hypothesis,
                lock_days=fields["lock_days"],
            )
            outcome = evaluate_transition(snapshot, ad_data.status, now=now)
            if isinstance(outcome, Rejected):
                raise error_for(outcome.kind, outcome.message)
            fields.update(outcome.fields)

        ad = Ad(id=str(uuid4()), **fields)
        db.add(ad)
        db.commit()
        db.refresh(ad)
        logger.info(f"ad {ad.id} created in {ad.status.value}")

        return ad_to_response(ad)

    @staticmethod
    def update_ad(db: Session, ad_id: str, ad_data: AdUpdate) -> AdResponse:
        """Generic partial update with lifecycle side effects when status changes."""
        AD_OPERATIONS.labels(operation="update").inc()
        ad = _get_ad_or_404(db, ad_id)

        update_data = ad_data.model_dump(exclude_unset=True, by_alias=False)
        save_learning = bool(update_data.pop("save_learning", False))
        for field in _NON_NULLABLE_FIELDS:
            if field in update_data and update_data[field] is None:
                del update_data[field]
        if "concept" in update_data and not update_data["concept"].strip():
            raise ValidationError("Concept is required")

        requested_status = update_data.pop("status", None)
        from_status = ad.status
        transitioned = False

        if requested_status is not None and requested_status != ad.status:
            outcome = evaluate_transition(AdSnapshot.from_ad(ad), requested_status, updates=update_data)
            if isinstance(outcome, Rejected):
                _raise_rejection(outcome, ad_id)
            update_data = outcome.fields
            transitioned = True

        _apply_fields(ad, update_data)
        db.commit()
        db.refresh(ad)

        if transitioned:
            _record_transition(from_status, ad.status, ad.id)
            extract_learning(db, ad, update_data, save_learning)
            db.refresh(ad)

        return ad_to_response(ad)

    @staticmethod
    def move_ad(db: Session, ad_id: str, target_status: AdStatus) -> AdResponse:
        """Explicit status transition (board drag and drop)."""
        AD_OPERATIONS.labels(operation="move").inc()
        ad = _get_ad_or_404(db, ad_id)

        if target_status == ad.status:
            return ad_to_response(ad)

        from_status = ad.status
        outcome = evaluate_transition(AdSnapshot.from_ad(ad), target_status)
        if isinstance(outcome, Rejected):
            _raise_rejection(outcome, ad_id)

        _apply_fields(ad, outcome.fields)
        db.commit()
        db.refresh(ad)
        _record_transition(from_status, ad.status, ad.id)

        return ad_to_response(ad)

    @staticmethod
    def delete_ad(db: Session, ad_id: str) -> None:
        """Delete an ad. Its learnings are kept."""
        AD_OPERATIONS.labels(operation="delete").inc()
        ad = _get_ad_or_404(db, ad_id)
        db.delete(ad)
        db.commit()
        logger.info(f"ad {ad_id} deleted")

    @staticmethod
    def get_video_metrics(db: Session, ad_id: str) -> VideoMetricsResponse:
        ad = _get_ad_or_404(db, ad_id)
        analysis = analyze_video_metrics(
            ad.impressions,
            ad.video_views_3s,
            ad.video_views_thruplay,
            ad_format=ad.format,
        )
        return VideoMetricsResponse.model_validate(analysis)

