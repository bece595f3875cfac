"""
Inference backend interface.

Backends take encoded image bytes to an input tensor and run the detection
model on it, returning raw (normalized, unfiltered) detection slots. Filtering
and pixel-space conversion happen in the detection pipeline.

A single backend instance is shared by every stream worker, so implementations
must tolerate concurrent preprocess/infer calls without callers locking.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from models.detection import RawDetectionSet


class InferenceBackend(Protocol):
    def preprocess(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes into a [1, H, W, 3] uint8 tensor."""
        ...

    def infer(self, tensor: np.ndarray) -> RawDetectionSet:
        """Run the detection model on one preprocessed tensor."""
        ...

    def close(self) -> None:
        ...
