from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from app.models.ad import AdStatus


class AdReference(BaseModel):
    id: str
    name: str
    review_date: Optional[datetime] = Field(None, alias="reviewDate")

    model_config = {"populate_by_name": True}


class TrendPoint(BaseModel):
    period: str  # MM-DD of the week start (Sunday)
    hit_rate: float = Field(alias="hitRate")

    model_config = {"populate_by_name": True}


class StatsResponse(BaseModel):
    hit_rate: float = Field(alias="hitRate")
    total_analyzed: int = Field(alias="totalAnalyzed")
    winners: int
    losers: int
    money_in_limbo: float = Field(alias="moneyInLimbo")
    testing_count: int = Field(alias="testingCount")
    ads_ready_for_analysis: List[AdReference] = Field(alias="adsReadyForAnalysis")
    trend_data: List[TrendPoint] = Field(alias="trendData")
    ads_by_status: Dict[str, int] = Field(alias="adsByStatus")
    total_spend: float = Field(alias="totalSpend")
    total_revenue: float = Field(alias="totalRevenue")
    overall_roas: Optional[float] = Field(None, alias="overallRoas")

    model_config = {"populate_by_name": True}


class DueAd(BaseModel):
    id: str
    name: str
    concept: str
    due_date: datetime = Field(alias="dueDate")
    status: AdStatus

    model_config = {"populate_by_name": True}


class DashboardResponse(StatsResponse):
    overdue_ads: List[DueAd] = Field(alias="overdueAds")
    due_soon_ads: List[DueAd] = Field(alias="dueSoonAds")
