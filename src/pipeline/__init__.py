"""
Pipeline module for the object detection system.

The pipeline orchestrates the per-stream processing flow:
- Frame acquisition from observation sources (StreamWorker)
- Encode, inference, filtering and annotation (DetectionPipeline)
- One worker thread per configured camera (WorkerPool)
"""

from .stages.detect import CONFIDENCE_THRESHOLD, DetectionPipeline
from .worker import StreamWorker, WorkerState, WorkerStats
from .pool import WorkerPool

__all__ = [
    "CONFIDENCE_THRESHOLD",
    "DetectionPipeline",
    "StreamWorker",
    "WorkerState",
    "WorkerStats",
    "WorkerPool",
]
