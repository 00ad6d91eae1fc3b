"""
tweetdetect API — Main Application

POST /analyze        — Score one post
POST /analyze/batch  — Score up to 100 posts, in order
GET  /stats          — Running statistics and recent detections
POST /stats/reset    — Zero the statistics and clear the detection log
GET  /patterns       — Loaded pattern vocabulary summary
GET  /health         — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from tweetdetect import __version__
from tweetdetect.config import settings
from tweetdetect.detector import AnalysisResult, Detector, get_detector
from tweetdetect.logging import setup_logging, get_logger
from tweetdetect.schemas.analyze import (
    AnalyzeRequest,
    AnalyzeBatchRequest,
    AnalyzeResponse,
    AnalyzeBatchResponse,
    HealthResponse,
    PatternsResponse,
    StatsResponse,
)

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the detector and warm the pattern store."""
    setup_logging()
    detector = get_detector()
    await detector.patterns.load()
    app.state.detector = detector
    logger.info(
        "tweetdetect API starting",
        extra={"source": detector.patterns.source,
               "patterns_state": detector.patterns.state.value},
    )
    yield
    logger.info("tweetdetect API shutting down")


app = FastAPI(
    title="tweetdetect API",
    description="Heuristic detector for machine-generated social media posts",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)


def _detector(request: Request) -> Detector:
    return request.app.state.detector


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The analysis could not be completed."},
    )


# ============================================================
# ROUTES
# ============================================================

def _skipped_response() -> dict:
    return {
        "is_ai": False,
        "confidence": 0.0,
        "reasons": [],
        "display": False,
        "skipped": True,
        "engine_version": settings.ENGINE_VERSION,
    }


def _to_response(result: AnalysisResult) -> dict:
    data = result.as_dict()
    data["display"] = result.should_display(settings.CONFIDENCE_THRESHOLD)
    data["engine_version"] = settings.ENGINE_VERSION
    return data


async def _analyze_one(detector: Detector, item: AnalyzeRequest) -> dict:
    if settings.SKIP_VERIFIED and item.metadata.is_verified:
        return _skipped_response()
    result = await detector.analyze(item.text, item.metadata.to_metadata())
    return _to_response(result)


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_post(body: AnalyzeRequest, request: Request):
    """Score a single post."""
    start = time.time()
    response = await _analyze_one(_detector(request), body)

    duration = int((time.time() - start) * 1000)
    logger.info(
        f"Analysis complete: confidence={response['confidence']}",
        extra={
            "confidence": response["confidence"],
            "is_ai": response["is_ai"],
            "reasons_count": len(response["reasons"]),
            "duration_ms": duration,
        },
    )
    return response


@app.post("/analyze/batch", response_model=AnalyzeBatchResponse)
async def analyze_batch(body: AnalyzeBatchRequest, request: Request):
    """
    Score several posts.

    Items run sequentially: duplicate detection depends on the order
    posts are seen in.
    """
    detector = _detector(request)
    results = [await _analyze_one(detector, item) for item in body.items]
    flagged = sum(1 for r in results if r["is_ai"])

    logger.info(
        f"Batch complete: {flagged}/{len(results)} flagged",
        extra={"items": len(results)},
    )
    return {"results": results, "total": len(results), "flagged": flagged}


@app.get("/stats", response_model=StatsResponse)
async def get_stats(request: Request, limit: int = Query(20, ge=0, le=100)):
    """Running statistics plus the most recent detections."""
    detector = _detector(request)
    return {
        **detector.get_stats(),
        "duplicate_cache": detector.tracker.stats,
        "recent_detections": [d.as_dict() for d in detector.recent_detections(limit)],
    }


@app.post("/stats/reset")
async def reset_stats(request: Request):
    """Zero the counters and clear the detection log. Duplicate history is kept."""
    detector = _detector(request)
    detector.reset_stats()
    detector.clear_detections()
    return {"status": "ok"}


@app.get("/patterns", response_model=PatternsResponse)
async def get_patterns(request: Request):
    """Summary of the loaded detection vocabulary."""
    store = _detector(request).patterns
    config = await store.load()
    return {
        "source": config.source,
        "state": store.state.value,
        "using_defaults": store.is_default,
        "counts": config.counts(),
        "skipped_patterns": list(config.skipped_patterns),
    }


@app.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Health check."""
    store = _detector(request).patterns
    return {
        "status": "operational",
        "version": __version__,
        "patterns_state": store.state.value,
        "using_default_patterns": store.is_default,
        "confidence_threshold": settings.CONFIDENCE_THRESHOLD,
    }


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.HOST, port=settings.PORT)
