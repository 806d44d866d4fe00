from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from app.models.ad import (
    AdStatus,
    Angle,
    AdFormat,
    FunnelStage,
    SourceType,
    AdResult,
    AdAction,
    ElementResult,
    FailReason,
    SuccessFactor,
)
from app.schemas.learning import LearningResponse


class AdCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=300)
    concept: str = Field("", description="Required, must not be blank")
    hypothesis: Optional[str] = ""
    angle: Angle = Angle.FEAR
    angle_detail: Optional[str] = Field(None, alias="angleDetail")
    awareness: str = "unaware"
    format: AdFormat = AdFormat.STATIC
    funnel_stage: FunnelStage = Field(FunnelStage.COLD, alias="funnelStage")
    product: Optional[str] = None
    source_type: SourceType = Field(SourceType.ORIGINAL, alias="sourceType")
    source_url: Optional[str] = Field(None, alias="sourceUrl")
    reference_media_url: Optional[str] = Field(None, alias="referenceMediaUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    hook: Optional[str] = None
    script: Optional[str] = None
    cta: Optional[str] = None
    notes: Optional[str] = None
    status: AdStatus = AdStatus.IDEA
    lock_days: Optional[int] = Field(None, alias="lockDays", ge=0)
    testing_budget: Optional[float] = Field(None, alias="testingBudget", ge=0)
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    model_config = {"populate_by_name": True}


class AdUpdate(BaseModel):
    """Generic partial update. Only fields present in the payload are applied."""

    name: Optional[str] = Field(None, max_length=300)
    concept: Optional[str] = None
    hypothesis: Optional[str] = None
    angle: Optional[Angle] = None
    angle_detail: Optional[str] = Field(None, alias="angleDetail")
    awareness: Optional[str] = None
    format: Optional[AdFormat] = None
    funnel_stage: Optional[FunnelStage] = Field(None, alias="funnelStage")
    product: Optional[str] = None
    source_type: Optional[SourceType] = Field(None, alias="sourceType")
    source_url: Optional[str] = Field(None, alias="sourceUrl")
    reference_media_url: Optional[str] = Field(None, alias="referenceMediaUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    hook: Optional[str] = None
    script: Optional[str] = None
    cta: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[AdStatus] = None
    lock_days: Optional[int] = Field(None, alias="lockDays", ge=0)
    testing_budget: Optional[float] = Field(None, alias="testingBudget", ge=0)
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    result: Optional[AdResult] = None
    action: Optional[AdAction] = None
    hook_result: Optional[ElementResult] = Field(None, alias="hookResult")
    hook_note: Optional[str] = Field(None, alias="hookNote")
    avatar_result: Optional[ElementResult] = Field(None, alias="avatarResult")
    avatar_note: Optional[str] = Field(None, alias="avatarNote")
    script_result: Optional[ElementResult] = Field(None, alias="scriptResult")
    script_note: Optional[str] = Field(None, alias="scriptNote")
    cta_result: Optional[ElementResult] = Field(None, alias="ctaResult")
    cta_note: Optional[str] = Field(None, alias="ctaNote")
    visual_result: Optional[ElementResult] = Field(None, alias="visualResult")
    visual_note: Optional[str] = Field(None, alias="visualNote")
    audio_result: Optional[ElementResult] = Field(None, alias="audioResult")
    audio_note: Optional[str] = Field(None, alias="audioNote")
    fail_reasons: Optional[List[FailReason]] = Field(None, alias="failReasons")
    success_factors: Optional[List[SuccessFactor]] = Field(None, alias="successFactors")
    diagnosis: Optional[str] = None

    spend: Optional[float] = Field(None, ge=0)
    revenue: Optional[float] = Field(None, ge=0)
    impressions: Optional[int] = Field(None, ge=0)
    clicks: Optional[int] = Field(None, ge=0)
    purchases: Optional[int] = Field(None, ge=0)
    video_views_3s: Optional[int] = Field(None, alias="videoViews3s", ge=0)
    video_views_thruplay: Optional[int] = Field(None, alias="videoViewsThruplay", ge=0)

    save_learning: bool = Field(False, alias="saveLearning")

    model_config = {"populate_by_name": True}


class MoveAdRequest(BaseModel):
    target_status: AdStatus = Field(..., alias="targetStatus")

    model_config = {"populate_by_name": True}


class AdResponse(BaseModel):
    id: str
    name: str
    concept: str
    hypothesis: str
    angle: Angle
    angle_detail: Optional[str] = Field(None, alias="angleDetail")
    awareness: str
    format: AdFormat
    funnel_stage: FunnelStage = Field(alias="funnelStage")
    product: Optional[str] = None
    source_type: SourceType = Field(alias="sourceType")
    source_url: Optional[str] = Field(None, alias="sourceUrl")
    reference_media_url: Optional[str] = Field(None, alias="referenceMediaUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    hook: Optional[str] = None
    script: Optional[str] = None
    cta: Optional[str] = None
    notes: Optional[str] = None

    status: AdStatus
    is_locked: bool = Field(alias="isLocked")
    review_date: Optional[datetime] = Field(None, alias="reviewDate")
    testing_started_at: Optional[datetime] = Field(None, alias="testingStartedAt")
    lock_days: int = Field(alias="lockDays")
    days_remaining: int = Field(0, alias="daysRemaining")
    testing_budget: float = Field(alias="testingBudget")
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    result: Optional[AdResult] = None
    action: Optional[AdAction] = None
    hook_result: Optional[ElementResult] = Field(None, alias="hookResult")
    hook_note: Optional[str] = Field(None, alias="hookNote")
    avatar_result: Optional[ElementResult] = Field(None, alias="avatarResult")
    avatar_note: Optional[str] = Field(None, alias="avatarNote")
    script_result: Optional[ElementResult] = Field(None, alias="scriptResult")
    script_note: Optional[str] = Field(None, alias="scriptNote")
    cta_result: Optional[ElementResult] = Field(None, alias="ctaResult")
    cta_note: Optional[str] = Field(None, alias="ctaNote")
    visual_result: Optional[ElementResult] = Field(None, alias="visualResult")
    visual_note: Optional[str] = Field(None, alias="visualNote")
    audio_result: Optional[ElementResult] = Field(None, alias="audioResult")
    audio_note: Optional[str] = Field(None, alias="audioNote")
    fail_reasons: List[str] = Field(default_factory=list, alias="failReasons")
    success_factors: List[str] = Field(default_factory=list, alias="successFactors")
    diagnosis: Optional[str] = None
    closed_at: Optional[datetime] = Field(None, alias="closedAt")

    spend: Optional[float] = None
    revenue: Optional[float] = None
    roas: Optional[float] = None
    impressions: Optional[int] = None
    clicks: Optional[int] = None
    purchases: Optional[int] = None
    video_views_3s: Optional[int] = Field(None, alias="videoViews3s")
    video_views_thruplay: Optional[int] = Field(None, alias="videoViewsThruplay")

    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    learnings: List[LearningResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True, "populate_by_name": True}


class AdsResponse(BaseModel):
    ads: List[AdResponse]


class VideoMetricsResponse(BaseModel):
    hook_rate: Optional[float] = Field(None, alias="hookRate")
    hold_rate: Optional[float] = Field(None, alias="holdRate")
    hook_rate_status: Optional[str] = Field(None, alias="hookRateStatus")
    hold_rate_status: Optional[str] = Field(None, alias="holdRateStatus")
    suggested_hook_result: Optional[ElementResult] = Field(None, alias="suggestedHookResult")
    suggested_script_result: Optional[ElementResult] = Field(None, alias="suggestedScriptResult")

    model_config = {"populate_by_name": True}


class SweepResponse(BaseModel):
    moved: int
    repaired: int
