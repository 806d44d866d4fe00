from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from app.models.ad import AdFormat, AdResult, Angle, ElementResult
from app.models.learning import LearningType


class LearningCreate(BaseModel):
    content: str = ""
    type: LearningType = LearningType.INSIGHT
    ad_id: Optional[str] = Field(None, alias="adId")
    angle: Optional[Angle] = None
    format: Optional[AdFormat] = None
    result: Optional[AdResult] = None

    model_config = {"populate_by_name": True}


class LearningResponse(BaseModel):
    id: str
    content: str
    type: LearningType
    ad_id: Optional[str] = Field(None, alias="adId")
    angle: Optional[Angle] = None
    format: Optional[AdFormat] = None
    result: Optional[AdResult] = None
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
    created_at: datetime = Field(alias="createdAt")

    model_config = {"from_attributes": True, "populate_by_name": True}


class AdSummary(BaseModel):
    id: str
    name: str
    concept: str
    result: Optional[AdResult] = None
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    spend: Optional[float] = None
    revenue: Optional[float] = None

    model_config = {"from_attributes": True, "populate_by_name": True}


class SuggestedLearning(LearningResponse):
    # None for learnings whose ad was deleted or that were recorded by hand
    ad: Optional[AdSummary] = None


class LearningsResponse(BaseModel):
    learnings: List[LearningResponse]


class ElementInsight(BaseModel):
    note: str
    result: Optional[AdResult] = None
    concept: str


class TagCount(BaseModel):
    tag: str
    count: int


class SuggestionInsights(BaseModel):
    working_hooks: List[ElementInsight] = Field(default_factory=list, alias="workingHooks")
    failed_hooks: List[ElementInsight] = Field(default_factory=list, alias="failedHooks")
    working_ctas: List[ElementInsight] = Field(default_factory=list, alias="workingCtas")
    working_visuals: List[ElementInsight] = Field(default_factory=list, alias="workingVisuals")
    failed_visuals: List[ElementInsight] = Field(default_factory=list, alias="failedVisuals")
    top_fail_reasons: List[TagCount] = Field(default_factory=list, alias="topFailReasons")
    top_success_factors: List[TagCount] = Field(default_factory=list, alias="topSuccessFactors")

    model_config = {"populate_by_name": True}


class SuggestionsResponse(BaseModel):
    learnings: List[SuggestedLearning]
    insights: SuggestionInsights
    total_ads_analyzed: int = Field(alias="totalAdsAnalyzed")
    filter_applied: Dict[str, Optional[str]] = Field(alias="filterApplied")

    model_config = {"populate_by_name": True}
