"""
ivf-scorer Service
==================

FastAPI entry point for triggering scoring runs and fetching reports.

Endpoints:
    GET  /              - Service information
    GET  /health        - Liveness probe
    POST /runs          - Start a scoring run over a capture directory
    GET  /runs/current  - Status of the current (or last) run
    GET  /report        - Report of the last completed run

Only one run executes at a time; POST /runs answers 409 while busy.
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ivf_scorer.config import settings, setup_logging
from ivf_scorer.models.report import PooledMetrics, ScoreReport
from ivf_scorer.recognition import Recognizer, create_recognizer
from ivf_scorer.scoring import VmafScorer


logger = logging.getLogger(__name__)


class RunRequest(BaseModel):
    """Body of POST /runs."""

    path: str = Field(..., description="Capture directory to score")
    preview: Optional[bool] = Field(default=None, description="Render previews")
    keep_intermediate_files: Optional[bool] = Field(
        default=None,
        description="Keep repaired IVF files",
    )


# =============================================================================
# Global State
# =============================================================================

_recognizer: Optional[Recognizer] = None
_run_task: Optional[asyncio.Task] = None
_run_path: Optional[str] = None
_run_started: float = 0.0
_run_finished: float = 0.0
_run_error: Optional[str] = None
_last_report: Optional[Dict[str, PooledMetrics]] = None
_startup_time: float = 0.0


# =============================================================================
# Getters
# =============================================================================

def get_recognizer() -> Optional[Recognizer]:
    return _recognizer

def get_last_report() -> Optional[Dict[str, PooledMetrics]]:
    return _last_report

def is_running() -> bool:
    return _run_task is not None and not _run_task.done()


# =============================================================================
# Run Execution
# =============================================================================

async def execute_run(scorer: VmafScorer, path: str) -> None:
    """Run one scoring pass and publish its report."""
    global _last_report, _run_error, _run_finished

    try:
        _last_report = await scorer.calculate(path)
        _run_error = None
    except asyncio.CancelledError:
        logger.info(f"Run over {path} cancelled")
        raise
    except Exception as e:
        _run_error = str(e)
        logger.error(f"Run over {path} failed: {e}")
    finally:
        _run_finished = time.time()


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _recognizer, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    _recognizer = create_recognizer(settings)

    yield

    logger.info("Shutting down...")
    if _run_task and not _run_task.done():
        _run_task.cancel()
        try:
            await _run_task
        except asyncio.CancelledError:
            pass
    if _recognizer:
        _recognizer.close()
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="ivf-scorer",
    description="Timing repair and VMAF scoring for WebRTC test captures",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": settings.service.name,
        "version": settings.service.version,
        "recognition_backend": settings.recognition.backend,
        "status": "running" if is_running() else "idle",
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is alive."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.post("/runs")
async def start_run(request: RunRequest) -> JSONResponse:
    """Start a scoring run in the background."""
    global _run_task, _run_path, _run_started, _run_error

    if is_running():
        return JSONResponse(
            {"error": f"Run over {_run_path} already in progress"},
            status_code=409,
        )
    if not os.path.isdir(request.path):
        return JSONResponse(
            {"error": f"VMAF path {request.path} does not exist"},
            status_code=404,
        )
    recognizer = get_recognizer()
    if recognizer is None:
        return JSONResponse({"error": "Recognizer not initialized"}, status_code=503)

    scorer = VmafScorer.from_settings(
        settings,
        recognizer,
        preview=request.preview,
        keep_intermediate_files=request.keep_intermediate_files,
    )
    _run_path = request.path
    _run_started = time.time()
    _run_error = None
    _run_task = asyncio.create_task(execute_run(scorer, request.path), name="scoring_run")

    return JSONResponse({"status": "started", "path": request.path}, status_code=202)


@app.get("/runs/current")
async def current_run() -> JSONResponse:
    """Status of the current or last run."""
    if _run_task is None:
        return JSONResponse({"status": "none"})

    running = is_running()
    body = {
        "status": "running" if running else ("failed" if _run_error else "completed"),
        "path": _run_path,
        "started": _run_started,
    }
    if not running:
        body["finished"] = _run_finished
        body["error"] = _run_error
    return JSONResponse(body)


@app.get("/report")
async def report() -> JSONResponse:
    """Report of the last completed run."""
    last_report = get_last_report()

    if last_report is None:
        return JSONResponse(
            {"error": "No report available yet"},
            status_code=503,
        )

    return JSONResponse(ScoreReport(last_report).model_dump(mode="json"))


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    setup_logging(settings)
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "ivf_scorer.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
