"""
Detection models: raw model output, pixel-space detections and detection events.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from errors import InferenceError


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in integer pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def top_left(self) -> Tuple[int, int]:
        return (self.x1, self.y1)

    @property
    def bottom_right(self) -> Tuple[int, int]:
        return (self.x2, self.y2)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_normalized(cls, box: Sequence[float], width: int, height: int) -> "BoundingBox":
        """
        Convert a model box to pixel space.

        Model boxes are ordered [y1, x1, y2, x2] and normalized to [0, 1].
        Coordinates are scaled by the frame size and floored; no clamping.
        """
        y1, x1, y2, x2 = (float(v) for v in box[:4])
        return cls(
            x1=math.floor(x1 * width),
            y1=math.floor(y1 * height),
            x2=math.floor(x2 * width),
            y2=math.floor(y2 * height),
        )

    def normalized_to(self, width: int, height: int) -> "BoundingBox":
        """Reorder inverted corners and clamp into [0, width] x [0, height]."""
        x1, x2 = sorted((self.x1, self.x2))
        y1, y2 = sorted((self.y1, self.y2))
        return BoundingBox(
            x1=min(max(x1, 0), width),
            y1=min(max(y1, 0), height),
            x2=min(max(x2, 0), width),
            y2=min(max(y2, 0), height),
        )


@dataclass(frozen=True)
class RawDetectionSet:
    """
    Backend output for one inference call.

    The three sequences are parallel: entry i of each describes detection slot i.
    Boxes are [y1, x1, y2, x2] normalized to the source frame.
    """
    probabilities: Sequence[float]
    class_ids: Sequence[float]
    boxes: Sequence[Sequence[float]]
    num_detections: Optional[int] = None

    def __post_init__(self):
        n = len(self.probabilities)
        if len(self.class_ids) != n or len(self.boxes) != n:
            raise InferenceError(
                "Mismatched detection outputs: "
                f"probabilities={n}, class_ids={len(self.class_ids)}, boxes={len(self.boxes)}"
            )

    def __len__(self) -> int:
        return len(self.probabilities)

    @classmethod
    def empty(cls) -> "RawDetectionSet":
        return cls(probabilities=[], class_ids=[], boxes=[], num_detections=0)

    @classmethod
    def from_outputs(
        cls,
        boxes: np.ndarray,
        scores: np.ndarray,
        classes: np.ndarray,
        num_detections: Optional[np.ndarray] = None,
    ) -> "RawDetectionSet":
        """
        Adapter: take batch row 0 from batched SSD-style output arrays.

        Args:
            boxes: Array of shape (1, N, 4).
            scores: Array of shape (1, N).
            classes: Array of shape (1, N).
            num_detections: Optional array of shape (1,).
        """
        count = None
        if num_detections is not None:
            count = int(np.asarray(num_detections).reshape(-1)[0])
        return cls(
            probabilities=np.asarray(scores)[0].tolist(),
            class_ids=np.asarray(classes)[0].tolist(),
            boxes=np.asarray(boxes)[0].tolist(),
            num_detections=count,
        )


@dataclass(frozen=True)
class Detection:
    """
    A filtered, labeled detection in pixel coordinates.

    Attributes:
        box: Bounding box in pixel coordinates.
        confidence: Detection confidence in (0, 1].
        class_id: Class id reported by the model.
        class_name: Name resolved from the label table.
        label: Display label, e.g. "person (88%)".
    """
    box: BoundingBox
    confidence: float
    class_id: int
    class_name: str
    label: str

    @property
    def x1(self) -> int:
        return self.box.x1

    @property
    def y1(self) -> int:
        return self.box.y1

    @property
    def x2(self) -> int:
        return self.box.x2

    @property
    def y2(self) -> int:
        return self.box.y2

    def log_line(self) -> str:
        """Console line for an accepted detection."""
        return (
            f"OBJECT DETECTED: {self.label} | COORDINATES: "
            f"x1 {self.x1} - x2 {self.x2} - y1 {self.y1} - y2 {self.y2}"
        )


@dataclass(frozen=True)
class DetectionEvent:
    """Structured record emitted for every accepted detection."""
    label: str
    confidence: float
    x1: int
    y1: int
    x2: int
    y2: int
    stream_id: Optional[str] = None
    frame_index: int = 0
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_detection(
        cls,
        det: Detection,
        stream_id: Optional[str] = None,
        frame_index: int = 0,
    ) -> "DetectionEvent":
        return cls(
            label=det.label,
            confidence=det.confidence,
            x1=det.x1,
            y1=det.y1,
            x2=det.x2,
            y2=det.y2,
            stream_id=stream_id,
            frame_index=frame_index,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "confidence": self.confidence,
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "stream_id": self.stream_id,
            "frame_index": self.frame_index,
            "timestamp": self.timestamp,
        }


def format_label(class_name: str, confidence: float) -> str:
    """Return "<name> (<pct>%)" with the percentage rounded to an integer."""
    return f"{class_name} ({confidence * 100.0:2.0f}%)"

