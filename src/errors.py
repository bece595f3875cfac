"""
Exception hierarchy for the detection system.

Errors fall into three groups:
- Source errors (open/capture): local to one stream worker.
- Per-frame errors (encode/preprocess/infer): the frame is skipped.
- Startup errors (model load): abort the process before any worker starts.
"""

from __future__ import annotations

from typing import Optional


class DetectionSystemError(Exception):
    """Base class for all errors raised by the detection system."""

    stage: str = "unknown"


class SourceUnavailable(DetectionSystemError, RuntimeError):
    """The video source could not be opened at all."""

    stage = "open"


class CaptureError(DetectionSystemError):
    """A live source kept failing to deliver frames."""

    stage = "capture"


class EndOfStream(DetectionSystemError):
    """A finite source (video file) has no more frames."""

    stage = "capture"


class FrameProcessingError(DetectionSystemError):
    """
    A single frame could not be run through the detection pipeline.

    The worker logs these and moves on to the next frame.
    """

    def __init__(self, message: str, stream_id: Optional[str] = None):
        super().__init__(message)
        self.stream_id = stream_id


class EncodeError(FrameProcessingError):
    stage = "encode"


class PreprocessError(FrameProcessingError):
    stage = "preprocess"


class InferenceError(FrameProcessingError):
    stage = "infer"


class ModelLoadError(DetectionSystemError):
    """The detection model could not be loaded; nothing can run without it."""

    stage = "load"
