"""
FrameData model for frames captured from a video stream.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import numpy as np


def is_valid_frame(frame: Any) -> bool:
    """True for a non-empty HxW or HxWxC image array."""
    return (
        isinstance(frame, np.ndarray)
        and frame.ndim in (2, 3)
        and frame.size > 0
        and frame.shape[0] > 0
        and frame.shape[1] > 0
    )


@dataclass
class FrameData:
    """
    One decoded frame plus capture metadata.

    The frame array is owned by the worker iteration that read it and is
    annotated in place by the detection pipeline.

    Attributes:
        frame: Image as a numpy array (BGR).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was captured.
        frame_index: Sequential frame number since the source was opened.
        stream_id: Identifier of the stream that produced the frame.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float = field(default_factory=time.time)
    frame_index: int = 0
    stream_id: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        stream_id: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array, deriving width/height from its shape."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            stream_id=stream_id,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
