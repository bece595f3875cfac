"""
OpenCV HighGUI window per stream.
"""

from __future__ import annotations

import threading
from typing import Set

import cv2
import numpy as np

from models.stream import VideoStream
from .base import DisplaySink


class WindowDisplay(DisplaySink):
    """
    One cv2 window per stream, titled with the stream label and id.

    HighGUI is not thread-safe, so all window calls go through one lock.
    Pressing 'q' in a window stops that stream.
    """

    _gui_lock = threading.Lock()

    def __init__(self, title_prefix: str = "Object Detection", wait_ms: int = 1):
        self.title_prefix = title_prefix
        self.wait_ms = wait_ms
        self._windows: Set[str] = set()

    def window_name(self, stream: VideoStream) -> str:
        return f"{self.title_prefix} - {stream.label} [{stream.id}]"

    def show(self, stream: VideoStream, frame: np.ndarray) -> bool:
        name = self.window_name(stream)
        with self._gui_lock:
            cv2.imshow(name, frame)
            self._windows.add(name)
            key = cv2.waitKey(self.wait_ms) & 0xFF
        return key != ord("q")

    def close(self) -> None:
        with self._gui_lock:
            if self._windows:
                cv2.destroyAllWindows()
                self._windows.clear()
