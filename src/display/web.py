"""
Web preview sink: publishes annotated frames to the FrameStore served by the
web app.
"""

from __future__ import annotations

import numpy as np

from models.stream import VideoStream
from web.state import FrameStore
from .base import DisplaySink


class WebDisplay(DisplaySink):
    def __init__(self, store: FrameStore):
        self.store = store

    def show(self, stream: VideoStream, frame: np.ndarray) -> bool:
        self.store.set_frame(stream.id, frame)
        return True
