"""
MaskScan Main Application
=========================

FastAPI entry point for the mask-scan pipeline.

The lifespan builds the pipeline from config, opens the camera and starts
a daemon camera thread. Inference runs on the pipeline's worker thread;
the HTTP layer only reads published results.

Endpoints:
    GET  /          - Service information
    GET  /health    - Liveness probe (is process alive?)
    GET  /ready     - Readiness probe (camera running + pipeline open?)
    GET  /metrics   - Ingestor, admission, detector and worker counters
    GET  /output    - Latest FrameResult
    GET  /frame.png - Latest annotated frame
    WS   /ws/output - Real-time output stream
"""

import asyncio
import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse, Response

from maskscan.config import settings
from maskscan.pipeline import CameraLoop, MaskScanPipeline
from maskscan.presenter import PresenterGroup, StatusPresenter, WindowPresenter
from maskscan.stream.camera import CameraSource, OpenCVCameraSource


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

# Shutdown flag
_shutdown_flag: bool = False

_pipeline: Optional[MaskScanPipeline] = None
_status_presenter: Optional[StatusPresenter] = None
_camera: Optional[CameraSource] = None
_camera_loop: Optional[CameraLoop] = None
_startup_time: float = 0.0
_camera_error: Optional[str] = None


# =============================================================================
# Getters
# =============================================================================

def get_pipeline() -> Optional[MaskScanPipeline]:
    return _pipeline

def get_status_presenter() -> Optional[StatusPresenter]:
    return _status_presenter

def is_ready() -> bool:
    return (
        _pipeline is not None
        and not _pipeline.closed
        and _camera_loop is not None
        and _camera_loop.running
    )


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _pipeline, _status_presenter, _camera, _camera_loop
    global _startup_time, _camera_error, _shutdown_flag

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    _shutdown_flag = False
    _camera = None
    _camera_loop = None
    _camera_error = None
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    # Presenters
    _status_presenter = StatusPresenter()
    presenters = [_status_presenter]
    if settings.presenter.show_window:
        presenters.append(WindowPresenter(settings.app.name))

    # Pipeline (provisioning / backend errors fail startup)
    _pipeline = MaskScanPipeline.from_settings(settings, PresenterGroup(presenters))

    # Camera
    try:
        _camera = OpenCVCameraSource(settings.camera.device)
    except RuntimeError as e:
        _camera_error = str(e)
        logger.error(f"Camera unavailable: {e}")

    if _camera is not None:
        _camera_loop = CameraLoop(_camera, _pipeline)
        _camera_loop.start()

    logger.info("All components started")

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    if _camera_loop:
        _camera_loop.stop()

    await asyncio.to_thread(_pipeline.close)

    if _camera:
        _camera.close()

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="MaskScan",
    description="Face-covering heuristic over a live camera stream",
    version=settings.app.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "MaskScan",
        "version": settings.app.version,
        "name": settings.app.name,
        "status": "running",
        "detector_backend": settings.detector.backend,
        "input_size": settings.pipeline.input_size,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is the camera feeding an open pipeline?

    Returns 503 if not ready.
    """
    pipeline = get_pipeline()
    camera_running = _camera_loop is not None and _camera_loop.running

    if is_ready():
        return JSONResponse({
            "status": "ready",
            "camera_running": camera_running,
            "frames_processed": pipeline.worker.frames_processed,
        })
    else:
        return JSONResponse(
            {
                "status": "not_ready",
                "camera_running": camera_running,
                "pipeline_open": pipeline is not None and not pipeline.closed,
                "camera_error": _camera_error,
            },
            status_code=503,
        )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    pipeline = get_pipeline()

    pipeline_metrics = pipeline.metrics() if pipeline else {}

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "detector_backend": settings.detector.backend,
        "preview_enabled": settings.debug.save_preview,
        **pipeline_metrics,
    })


@app.get("/output")
async def output() -> JSONResponse:
    """Get the latest FrameResult."""
    pipeline = get_pipeline()
    result = pipeline.latest_result if pipeline else None

    if result is None:
        return JSONResponse(
            {"error": "No output available yet"},
            status_code=503,
        )

    return JSONResponse(result.model_dump(mode="json"))


@app.get("/frame.png")
async def frame_png() -> Response:
    """Latest annotated, normalized frame as PNG."""
    presenter = get_status_presenter()
    encoded = presenter.encode_png() if presenter else None

    if encoded is None:
        return JSONResponse(
            {"error": "No frame available yet"},
            status_code=503,
        )

    return Response(content=encoded, media_type="image/png")


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/output")
async def output_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time output."""
    await websocket.accept()
    logger.info("Client connected to /ws/output")

    last_sent: Optional[int] = None
    try:
        while not _shutdown_flag:
            pipeline = get_pipeline()
            result = pipeline.latest_result if pipeline else None
            if result is not None and result.frame_index != last_sent:
                await websocket.send_json(result.model_dump(mode="json"))
                last_sent = result.frame_index
            await asyncio.sleep(0.2)

    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/output")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "maskscan.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
