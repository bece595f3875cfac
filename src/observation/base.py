"""
FrameSource interface for pluggable video sources.

This defines the contract that every source implements so the stream worker
can drive any input the same way:
- USB/CSI cameras (device index)
- RTSP/IP cameras (network URI)
- Video files (file path)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from errors import EndOfStream
from models.frame import FrameData
from models.stream import VideoStream


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance for a VideoStream
        2. Call open() to initialize the source (raises SourceUnavailable)
        3. Call read() repeatedly to get frames
        4. Call close() to release resources

    read() contract:
        - FrameData for a valid frame
        - None for a transient empty/invalid frame (the caller retries)
        - raises EndOfStream when a finite source is exhausted
        - raises CaptureError when a live source keeps failing

    Can also be used as a context manager:
        with OpenCVSource(stream) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, stream: VideoStream):
        self._stream = stream
        self._is_open = False
        self._frame_index = 0

    @property
    def stream(self) -> VideoStream:
        return self._stream

    @property
    def source_id(self) -> str:
        """Identifier of the stream this source reads."""
        return self._stream.id

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open and ready to read."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames delivered since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Open/initialize the source.

        Raises:
            SourceUnavailable: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Read the next frame (see class docstring for the contract)."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """
        Yield valid frames until the source ends.

        Transient empty reads are skipped.
        """
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            try:
                frame_data = self.read()
            except EndOfStream:
                return
            if frame_data is None:
                continue
            yield frame_data
