"""
Latest annotated frame per stream, shared between the stream workers and the
web preview server.
"""

from __future__ import annotations

import threading
import time
from typing import Dict, List, Optional, Tuple

import numpy as np


class FrameStore:
    """
    Thread-safe holder of the most recent frame for each stream.

    Workers write with set_frame(); web handlers read copies with get_frame().
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._frames: Dict[str, np.ndarray] = {}
        self._timestamps: Dict[str, float] = {}
        self._labels: Dict[str, str] = {}

    def register(self, stream_id: str, label: str) -> None:
        with self._lock:
            self._labels[stream_id] = label

    def set_frame(self, stream_id: str, frame: np.ndarray) -> None:
        """Store a copy of the frame; the worker keeps mutating its own buffer."""
        if frame is None:
            return
        with self._lock:
            self._frames[stream_id] = frame.copy()
            self._timestamps[stream_id] = time.time()

    def get_frame(self, stream_id: str) -> Optional[np.ndarray]:
        with self._lock:
            frame = self._frames.get(stream_id)
            return None if frame is None else frame.copy()

    def last_frame_age(self, stream_id: str) -> Optional[float]:
        with self._lock:
            ts = self._timestamps.get(stream_id)
        return None if ts is None else time.time() - ts

    def has_stream(self, stream_id: str) -> bool:
        with self._lock:
            return stream_id in self._labels or stream_id in self._frames

    def streams(self) -> List[Tuple[str, str]]:
        """Return (stream_id, label) pairs in registration order."""
        with self._lock:
            return list(self._labels.items())
