"""
Display sink interface.

Each stream worker hands its annotated frame to a sink keyed by the stream,
so every camera gets its own display surface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List

import numpy as np

from models.stream import VideoStream


class DisplaySink(ABC):
    @abstractmethod
    def show(self, stream: VideoStream, frame: np.ndarray) -> bool:
        """
        Present one annotated frame.

        Returns False when the viewer asked to stop this stream.
        """

    def close(self) -> None:
        pass


class NullDisplay(DisplaySink):
    """Headless sink: frames are dropped."""

    def show(self, stream: VideoStream, frame: np.ndarray) -> bool:
        return True


class MultiDisplay(DisplaySink):
    """Fan frames out to several sinks; stops when any of them asks to."""

    def __init__(self, sinks: Iterable[DisplaySink]):
        self.sinks: List[DisplaySink] = list(sinks)

    def show(self, stream: VideoStream, frame: np.ndarray) -> bool:
        keep_going = True
        for sink in self.sinks:
            keep_going = sink.show(stream, frame) and keep_going
        return keep_going

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
