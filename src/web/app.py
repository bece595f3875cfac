"""
FastAPI application factory for the live detection preview.

Routes:
- /api/health -> pool summary
- /api/streams -> per-stream status
- /api/streams/{id}/snapshot.jpg -> latest annotated frame
- /api/streams/{id}/live.mjpg -> MJPEG stream of annotated frames
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import FastAPI

from .routes import api
from .state import FrameStore

if TYPE_CHECKING:
    from pipeline.pool import WorkerPool


def create_app(store: FrameStore, pool: Optional[WorkerPool] = None) -> FastAPI:
    """Create the FastAPI app bound to a frame store and (optionally) the worker pool."""
    app = FastAPI(
        title="Object Detection",
        version="0.1.0",
        description="Live preview of multi-camera object detection",
    )
    app.state.frame_store = store
    app.state.pool = pool

    app.include_router(api.router, prefix="/api")
    return app
