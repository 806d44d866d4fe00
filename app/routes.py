from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.core.database import get_db
from app.models.ad import AdFormat, AdResult, Angle
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
from app.schemas.report import ReportRequest, ReportResponse, UploadResponse
from app.schemas.stats import DashboardResponse, StatsResponse
from app.services.services import AdService
from app.services.learnings import create_learning, learning_suggestions, list_learnings
from app.services.stats import compute_dashboard, compute_stats
from app.services.reports import generate_report, stream_report
from app.services.file_upload import store_upload
from app.services.sweeper import sweep_expired_ads

logger = logging.getLogger(__name__)

ads_router = APIRouter()
learnings_router = APIRouter()
stats_router = APIRouter()
reports_router = APIRouter()
uploads_router = APIRouter()
maintenance_router = APIRouter()


# ── Ads ──

@ads_router.get("", response_model=AdsResponse)
async def get_ads(
    exclude_completed: bool = Query(False, alias="excludeCompleted"),
    db: Session = Depends(get_db),
):
    return AdService.list_ads(db, exclude_completed=exclude_completed)


@ads_router.get("/completed", response_model=AdsResponse)
async def get_completed_ads(db: Session = Depends(get_db)):
    return AdService.list_completed_ads(db)


@ads_router.post("", response_model=AdResponse, status_code=status.HTTP_201_CREATED)
async def create_ad(ad_data: AdCreate, db: Session = Depends(get_db)):
    return AdService.create_ad(db, ad_data)


@ads_router.get("/{ad_id}", response_model=AdResponse)
async def get_ad(ad_id: str, db: Session = Depends(get_db)):
    return AdService.get_ad(db, ad_id)


@ads_router.patch("/{ad_id}", response_model=AdResponse)
async def update_ad(ad_id: str, ad_data: AdUpdate, db: Session = Depends(get_db)):
    return AdService.update_ad(db, ad_id, ad_data)


@ads_router.post("/{ad_id}/move", response_model=AdResponse)
async def move_ad(ad_id: str, move: MoveAdRequest, db: Session = Depends(get_db)):
    return AdService.move_ad(db, ad_id, move.target_status)


@ads_router.delete("/{ad_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ad(ad_id: str, db: Session = Depends(get_db)):
    AdService.delete_ad(db, ad_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@ads_router.get("/{ad_id}/video-metrics", response_model=VideoMetricsResponse)
async def get_video_metrics(ad_id: str, db: Session = Depends(get_db)):
    return AdService.get_video_metrics(db, ad_id)


# ── Learnings ──

@learnings_router.get("", response_model=LearningsResponse)
async def get_learnings(
    angle: Optional[Angle] = None,
    format: Optional[AdFormat] = None,
    result: Optional[AdResult] = None,
    db: Session = Depends(get_db),
):
    learnings = list_learnings(db, angle=angle, format=format, result=result)
    return LearningsResponse(learnings=[LearningResponse.model_validate(learning) for learning in learnings])


@learnings_router.post("", response_model=LearningResponse, status_code=status.HTTP_201_CREATED)
async def post_learning(data: LearningCreate, db: Session = Depends(get_db)):
    return LearningResponse.model_validate(create_learning(db, data))


@learnings_router.get("/suggestions", response_model=SuggestionsResponse)
async def get_learning_suggestions(
    angle: Optional[Angle] = None,
    format: Optional[AdFormat] = None,
    db: Session = Depends(get_db),
):
    return learning_suggestions(db, angle=angle, format=format)


# ── Stats ──

@stats_router.get("/stats", response_model=StatsResponse)
async def get_stats(db: Session = Depends(get_db)):
    return compute_stats(db)


@stats_router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(db: Session = Depends(get_db)):
    return compute_dashboard(db)


# ── Reports ──

@reports_router.post("", response_model=ReportResponse)
async def create_report(body: ReportRequest, db: Session = Depends(get_db)):
    report = await generate_report(db, body.query)
    return ReportResponse(report=report)


@reports_router.post("/stream")
async def create_report_stream(body: ReportRequest, request: Request, db: Session = Depends(get_db)):
    events = await stream_report(db, body.query, request=request)
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ── Uploads ──

@uploads_router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload(file: Optional[UploadFile] = File(None)):
    stored = await store_upload(file)
    return UploadResponse(
        url=stored.url,
        filename=stored.filename,
        content_type=stored.content_type,
        size=stored.size,
    )


# ── Maintenance ──

@maintenance_router.post("/sweep", response_model=SweepResponse)
async def run_sweep(db: Session = Depends(get_db)):
    result = sweep_expired_ads(db)
    return SweepResponse(moved=result.moved, repaired=result.repaired)
