from app.schemas.ad import (
    AdCreate,
    AdUpdate,
    AdResponse,
    AdsResponse,
    MoveAdRequest,
    SweepResponse,
    VideoMetricsResponse,
)
from app.schemas.learning import (
    LearningCreate,
    LearningResponse,
    LearningsResponse,
    SuggestionsResponse,
)
from app.schemas.stats import DashboardResponse, StatsResponse
from app.schemas.report import ReportRequest, ReportResponse, UploadResponse

__all__ = [
    "AdCreate",
    "AdUpdate",
    "AdResponse",
    "AdsResponse",
    "MoveAdRequest",
    "SweepResponse",
    "VideoMetricsResponse",
    "LearningCreate",
    "LearningResponse",
    "LearningsResponse",
    "SuggestionsResponse",
    "DashboardResponse",
    "StatsResponse",
    "ReportRequest",
    "ReportResponse",
    "UploadResponse",
]
