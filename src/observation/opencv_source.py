"""
OpenCV-based frame source.

Supports:
- USB webcams (DeviceIndex, e.g. 0)
- RTSP/IP cameras (NetworkURI)
- Video files (FilePath)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from errors import CaptureError, EndOfStream, SourceUnavailable
from models.frame import FrameData, is_valid_frame
from models.stream import DeviceIndex, FilePath, NetworkURI, VideoStream
from .base import FrameSource


@dataclass
class OpenCVSourceOptions:
    """
    Capture tuning for OpenCV sources.

    Attributes:
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        max_retries: Attempts to open the device before giving up.
        max_read_failures: Consecutive failed reads (after reinitializing)
            before a live source raises CaptureError.
        warmup: Seconds to wait after opening a live device.
    """
    buffer_size: int = 1
    max_retries: int = 3
    max_read_failures: int = 3
    warmup: float = 0.5


class OpenCVSource(FrameSource):
    """
    Frame source backed by cv2.VideoCapture.

    Live sources are reinitialized on read failure; files end with EndOfStream.

    Example:
        stream = VideoStream(id="1", label="Door", input=DeviceIndex(0))
        with OpenCVSource(stream) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, stream: VideoStream, options: Optional[OpenCVSourceOptions] = None):
        super().__init__(stream)
        self._options = options or OpenCVSourceOptions()
        self._cap: Optional[cv2.VideoCapture] = None
        self._consecutive_failures = 0

    @property
    def capture_arg(self) -> Union[int, str]:
        return self._stream.input.capture_arg

    @property
    def is_rtsp(self) -> bool:
        source = self._stream.input
        return isinstance(source, NetworkURI) and source.is_rtsp

    @property
    def is_file(self) -> bool:
        return isinstance(self._stream.input, FilePath)

    def open(self) -> None:
        """Open the video source, retrying with backoff."""
        if self._is_open:
            return

        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0
        self._consecutive_failures = 0

        logging.info(
            f"Source opened: stream={self.source_id}, input={self._stream.input}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        """Initialize or reinitialize the capture device."""
        self._release_capture()

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying open of {self._stream.input} (attempt {retry_count + 1}/"
                f"{self._options.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        if self.is_file and not os.path.exists(self.capture_arg):
            raise SourceUnavailable(f"Video file not found: {self._stream.input}")

        if self.is_rtsp:
            logging.info(f"Setting RTSP transport to: {self._stream.rtsp_transport}")
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = (
                f"rtsp_transport;{self._stream.rtsp_transport}"
            )

        self._cap = cv2.VideoCapture(self.capture_arg)

        if not self._cap.isOpened():
            if retry_count < self._options.max_retries - 1:
                logging.warning(f"Failed to open {self._stream.input}, retrying...")
                return self._initialize(retry_count + 1)
            self._release_capture()
            raise SourceUnavailable(
                f"Failed to open {self._stream.input} after "
                f"{self._options.max_retries} attempts"
            )

        if isinstance(self._stream.input, DeviceIndex):
            self._configure_device()

        if not self.is_file and self._options.warmup > 0:
            time.sleep(self._options.warmup)

    def _configure_device(self) -> None:
        """Apply resolution/fps/buffer properties to a local camera."""
        if self._stream.resolution:
            w, h = self._stream.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if self._stream.fps:
            self._cap.set(cv2.CAP_PROP_FPS, self._stream.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._options.buffer_size)

        actual_w = self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logging.info(
            f"Camera actual settings - Resolution: ({actual_w}x{actual_h}), FPS: {actual_fps}"
        )

    def read(self) -> Optional[FrameData]:
        """Read the next frame from the source."""
        if not self._is_open or self._cap is None:
            raise CaptureError(f"Source {self.source_id} is not open")

        ret, frame = self._cap.read()

        if not ret or not is_valid_frame(frame):
            if self.is_file:
                logging.info(f"End of video file reached: {self._stream.input}")
                raise EndOfStream(f"End of file {self._stream.input}")
            return self._recover()

        self._consecutive_failures = 0
        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            stream_id=self.source_id,
        )

    def _recover(self) -> None:
        """
        Handle a failed read on a live source.

        Returns None so the caller skips this cycle; raises CaptureError once
        reinitialization keeps failing.
        """
        self._consecutive_failures += 1
        if self._consecutive_failures > self._options.max_read_failures:
            raise CaptureError(
                f"Too many consecutive read failures on {self._stream.input} "
                f"({self._consecutive_failures})"
            )

        logging.warning(
            f"Failed to read frame from {self.source_id} "
            f"(failures: {self._consecutive_failures}), reinitializing..."
        )
        try:
            self._initialize()
        except SourceUnavailable as e:
            raise CaptureError(f"Reinitialization failed: {e}") from e
        return None

    def _release_capture(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def close(self) -> None:
        """Close the video source and release resources."""
        self._release_capture()
        if self._is_open:
            logging.info(f"Source closed: stream={self.source_id}")
        self._is_open = False

    def get_video_info(self) -> Dict[str, Any]:
        """Get information about the open capture."""
        if self._cap is None or not self._cap.isOpened():
            return {}

        return {
            "width": int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            "fps": self._cap.get(cv2.CAP_PROP_FPS),
            "frame_count": int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT)) if self.is_file else None,
        }
