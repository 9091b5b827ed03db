"""
Video Info Aggregator - FastAPI application.

Thin HTTP layer over VideoAggregator: decodes request parameters, calls
aggregate(), and maps the outcome to a status code.
"""
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from config.settings import settings
from videoinfo.aggregator import VideoAggregator, get_aggregator
from videoinfo.errors import InitializationError
from videoinfo.models import AggregationOutcome
from videoinfo.routing import parse_legacy_video_param

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("main")

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Video Info Aggregator"

OUTCOME_STATUS = {
    AggregationOutcome.AVAILABLE: 200,
    AggregationOutcome.UNAVAILABLE: 200,
    AggregationOutcome.CLIENT_UNAVAILABLE: 503,
    AggregationOutcome.INTERNAL_ERROR: 500,
}


def warm_upstream_client():
    """Build the shared upstream client; failures are retried on the first request."""
    try:
        get_aggregator().clients.acquire()
    except InitializationError as e:
        logger.warning(f"Client warm-up failed, will retry on first request: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start client construction in the background so the first request is fast."""
    if settings.warm_client_on_startup:
        threading.Thread(target=warm_upstream_client, name="client-warmup", daemon=True).start()
    yield


app = FastAPI(
    title=APP_NAME,
    description="Composite video metadata, thumbnails and related videos",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "source": "youtube-innertube"}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}",
    }


@app.get("/cache/stats")
def cache_stats(aggregator: VideoAggregator = Depends(get_aggregator)):
    """Get thumbnail cache statistics and client state."""
    return {
        "thumbnails": aggregator.thumbnails.cache.get_stats(),
        "client_ready": aggregator.clients.is_ready,
    }


@app.get("/api/video/{video_id:path}")
def video_info(
    video_id: str,
    token: Optional[str] = Query(None, description="Related videos continuation token"),
    depth: Optional[str] = Query(None, description="Continuation pages to follow"),
    aggregator: VideoAggregator = Depends(get_aggregator),
):
    """
    Composite info for one video.

    Unavailable videos still return 200 with ``unavailable: true`` and any
    thumbnail / related data that could be fetched.
    """
    video_id, token, depth_value = parse_legacy_video_param(video_id, token, depth)
    if not video_id:
        raise HTTPException(status_code=400, detail="Invalid video id")

    result = aggregator.aggregate(video_id, resume_token=token, depth=depth_value)
    status_code = OUTCOME_STATUS[result.outcome]

    headers = {}
    if status_code == 200:
        headers["Cache-Control"] = f"public, max-age={settings.response_max_age_seconds}"

    return JSONResponse(content=result.to_dict(), status_code=status_code, headers=headers)
