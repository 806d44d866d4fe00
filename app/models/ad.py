from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, Text, ForeignKey, Index, TypeDecorator
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from typing import List, Type, TypeVar
from app.core.database import Base

EnumType = TypeVar('EnumType', bound=enum.Enum)

class EnumValueType(TypeDecorator):
    impl = String
    cache_ok = True

    def __init__(self, enum_class: Type[EnumType], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, self.enum_class):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None

        for member in self.enum_class:
            if member.value == value:
                return member

        raise ValueError(f"Invalid value '{value}' for enum {self.enum_class.__name__}")


class AdStatus(str, enum.Enum):
    IDEA = "idea"  # Banco de ideas
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"  # locked until review_date
    ANALYSIS = "analysis"
    COMPLETED = "completed"


class Angle(str, enum.Enum):
    FEAR = "fear"
    DESIRE = "desire"
    CURIOSITY = "curiosity"
    OFFER = "offer"
    TUTORIAL = "tutorial"
    TESTIMONIAL = "testimonial"


class AdFormat(str, enum.Enum):
    STATIC = "static"
    VIDEO = "video"
    UGC = "ugc"
    CAROUSEL = "carousel"


class FunnelStage(str, enum.Enum):
    COLD = "cold"
    RETARGETING = "retargeting"


class SourceType(str, enum.Enum):
    ORIGINAL = "original"
    COMPETITOR = "competitor"
    ITERATION = "iteration"


class AdResult(str, enum.Enum):
    WINNER = "winner"
    LOSER = "loser"


class AdAction(str, enum.Enum):
    ITERATE = "iterate"
    KILL = "kill"
    SCALE = "scale"


class ElementResult(str, enum.Enum):
    WORKED = "worked"
    FAILED = "failed"


class TagKind(str, enum.Enum):
    FAIL_REASON = "fail_reason"
    SUCCESS_FACTOR = "success_factor"


class FailReason(str, enum.Enum):
    BAD_HOOK = "bad_hook"
    BORING_SCRIPT = "boring_script"
    CONFUSING_OFFER = "confusing_offer"
    WEAK_CTA = "weak_cta"
    BAD_AVATAR = "bad_avatar"
    POOR_VISUAL = "poor_visual"
    WRONG_AUDIENCE = "wrong_audience"
    TOO_LONG = "too_long"
    NO_CREDIBILITY = "no_credibility"
    BAD_AUDIO = "bad_audio"


class SuccessFactor(str, enum.Enum):
    STRONG_HOOK = "strong_hook"
    URGENCY = "urgency"
    HIGH_CONTRAST = "high_contrast"
    SOCIAL_PROOF = "social_proof"
    CLEAR_OFFER = "clear_offer"
    RELATABLE_AVATAR = "relatable_avatar"
    TRENDING_AUDIO = "trending_audio"
    CONTROVERSY = "controversy"
    STORYTELLING = "storytelling"
    TRANSFORMATION = "transformation"


# hook/avatar/script/cta/visual/audio each carry a <element>_result + <element>_note pair
ELEMENTS = ("hook", "avatar", "script", "cta", "visual", "audio")


class Ad(Base):
    __tablename__ = "ads"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    concept = Column(Text, nullable=False)
    hypothesis = Column(Text, nullable=False, default="")

    angle = Column(EnumValueType(Angle), nullable=False, default=Angle.FEAR)
    angle_detail = Column(String, nullable=True)
    awareness = Column(String, nullable=False, default="unaware")
    format = Column(EnumValueType(AdFormat), nullable=False, default=AdFormat.STATIC)
    funnel_stage = Column(EnumValueType(FunnelStage), nullable=False, default=FunnelStage.COLD)
    source_type = Column(EnumValueType(SourceType), nullable=False, default=SourceType.ORIGINAL)
    product = Column(String, nullable=True)
    source_url = Column(String, nullable=True)
    reference_media_url = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)

    hook = Column(Text, nullable=True)
    script = Column(Text, nullable=True)
    cta = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(EnumValueType(AdStatus), default=AdStatus.IDEA, nullable=False, index=True)
    is_locked = Column(Boolean, default=False, nullable=False)
    review_date = Column(DateTime(timezone=True), nullable=True)
    testing_started_at = Column(DateTime(timezone=True), nullable=True)
    lock_days = Column(Integer, default=10, nullable=False)
    testing_budget = Column(Float, default=50, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)

    # post-mortem, filled when the ad is completed
    result = Column(EnumValueType(AdResult), nullable=True)
    action = Column(EnumValueType(AdAction), nullable=True)
    hook_result = Column(EnumValueType(ElementResult), nullable=True)
    hook_note = Column(Text, nullable=True)
    avatar_result = Column(EnumValueType(ElementResult), nullable=True)
    avatar_note = Column(Text, nullable=True)
    script_result = Column(EnumValueType(ElementResult), nullable=True)
    script_note = Column(Text, nullable=True)
    cta_result = Column(EnumValueType(ElementResult), nullable=True)
    cta_note = Column(Text, nullable=True)
    visual_result = Column(EnumValueType(ElementResult), nullable=True)
    visual_note = Column(Text, nullable=True)
    audio_result = Column(EnumValueType(ElementResult), nullable=True)
    audio_note = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    spend = Column(Float, nullable=True)
    revenue = Column(Float, nullable=True)
    impressions = Column(Integer, nullable=True)
    clicks = Column(Integer, nullable=True)
    purchases = Column(Integer, nullable=True)
    video_views_3s = Column(Integer, nullable=True)
    video_views_thruplay = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    tags = relationship("AdTag", back_populates="ad", cascade="all, delete-orphan", lazy="selectin")
    # learnings.ad_id has no foreign key: deleting an ad leaves its learnings behind
    learnings = relationship(
        "Learning",
        primaryjoin="Ad.id == foreign(Learning.ad_id)",
        viewonly=True,
        order_by="Learning.created_at",
        lazy="selectin",
    )

    def _tag_values(self, kind: TagKind) -> List[str]:
        return sorted(t.value for t in self.tags if t.kind == kind)

    @property
    def fail_reasons(self) -> List[str]:
        return self._tag_values(TagKind.FAIL_REASON)

    @property
    def success_factors(self) -> List[str]:
        return self._tag_values(TagKind.SUCCESS_FACTOR)


class AdTag(Base):
    """Fail reason / success factor attached to an ad. One row per (ad, kind, value)."""
    __tablename__ = "ad_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ad_id = Column(String, ForeignKey("ads.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(EnumValueType(TagKind), nullable=False)
    value = Column(String, nullable=False)

    ad = relationship("Ad", back_populates="tags")

    __table_args__ = (
        Index('ix_ad_tags_kind_value', 'kind', 'value'),
        Index('ix_ad_tags_unique', 'ad_id', 'kind', 'value', unique=True),
    )
