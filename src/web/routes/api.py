from __future__ import annotations

import time
from typing import List

import cv2
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response, StreamingResponse

from ..api_models import HealthResponse, StreamStatus
from ..state import FrameStore

router = APIRouter()


def _store(request: Request) -> FrameStore:
    return request.app.state.frame_store


def _require_stream(store: FrameStore, stream_id: str) -> None:
    if not store.has_stream(stream_id):
        raise HTTPException(status_code=404, detail=f"Unknown stream: {stream_id}")


def _encode_jpeg(frame) -> bytes:
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="JPEG encode failed")
    return buf.tobytes()


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    pool = request.app.state.pool
    store = _store(request)
    if pool is None:
        total = len(store.streams())
        running = total
    else:
        snapshot = pool.snapshot()
        total = len(snapshot)
        running = sum(1 for s in snapshot.values() if s["state"] != "closed")

    if total and running == total:
        status = "ok"
    elif running:
        status = "degraded"
    else:
        status = "stopped"

    return HealthResponse(
        status=status,
        streams_total=total,
        streams_running=running,
        timestamp=time.time(),
    )


@router.get("/streams", response_model=List[StreamStatus])
def streams(request: Request):
    store = _store(request)
    pool = request.app.state.pool
    snapshot = pool.snapshot() if pool is not None else {}

    result = []
    for stream_id, label in store.streams():
        info = snapshot.get(stream_id, {})
        stats = dict(info.get("stats", {}))
        last_error = stats.pop("last_error", None)
        result.append(StreamStatus(
            id=stream_id,
            label=label,
            input=info.get("input"),
            state=info.get("state", "unknown"),
            last_frame_age_s=store.last_frame_age(stream_id),
            stats=stats,
            last_error=last_error,
        ))
    return result


@router.get("/streams/{stream_id}/snapshot.jpg")
def stream_snapshot(stream_id: str, request: Request):
    store = _store(request)
    _require_stream(store, stream_id)
    frame = store.get_frame(stream_id)
    if frame is None:
        raise HTTPException(status_code=503, detail="No frame available yet")
    return Response(
        content=_encode_jpeg(frame),
        media_type="image/jpeg",
        headers={"Cache-Control": "no-store"},
    )


@router.get("/streams/{stream_id}/live.mjpg")
def stream_live(stream_id: str, request: Request, fps: int = 5):
    """
    Stream MJPEG frames from the frame store (populated by the stream worker).
    """
    store = _store(request)
    _require_stream(store, stream_id)
    fps = max(1, min(30, int(fps)))
    delay = 1.0 / fps

    def gen():
        while True:
            frame = store.get_frame(stream_id)
            if frame is None:
                time.sleep(0.1)
                continue

            ok, buf = cv2.imencode(".jpg", frame)
            if not ok:
                time.sleep(delay)
                continue
            jpg = buf.tobytes()
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)

    return StreamingResponse(gen(), media_type="multipart/x-mixed-replace; boundary=frame")
