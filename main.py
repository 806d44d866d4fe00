import contextlib
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.routes import (
    ads_router,
    learnings_router,
    stats_router,
    reports_router,
    uploads_router,
    maintenance_router,
)
from app.core.config import settings
from app.core.s3_client import ensure_bucket_exists
from prometheus_fastapi_instrumentator import Instrumentator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_bucket_exists()
    except Exception as e:
        logger.warning("could not initialize s3 bucket: %s", e)

    yield

    logger.info("Shutting down creative-lab-service...")


app = FastAPI(
    title="Ad Creative Lab Service",
    description="Ad creative lifecycle, learnings and reporting API",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ads_router, prefix="/api/ads", tags=["ads"])
app.include_router(learnings_router, prefix="/api/learnings", tags=["learnings"])
app.include_router(stats_router, prefix="/api", tags=["stats"])
app.include_router(reports_router, prefix="/api/reports", tags=["reports"])
app.include_router(uploads_router, prefix="/api/uploads", tags=["uploads"])
app.include_router(maintenance_router, prefix="/api/maintenance", tags=["maintenance"])

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health", "/api/health"],
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": settings.SERVICE_NAME}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "status": "running",
    }
