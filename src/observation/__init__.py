"""
Observation layer for pluggable video sources.

This layer abstracts where frames come from (camera, video file, network
stream) from the detection pipeline. Each source implements the FrameSource
interface and returns FrameData objects.
"""

from __future__ import annotations

from typing import Optional

from models.stream import NetworkURI, VideoStream
from .base import FrameSource
from .opencv_source import OpenCVSource, OpenCVSourceOptions
from .rtsp_utils import inject_rtsp_credentials, sanitize_url


def create_source(
    stream: VideoStream,
    options: Optional[OpenCVSourceOptions] = None,
) -> FrameSource:
    """
    Factory: build the frame source for a configured stream.

    RTSP credentials from the stream's secrets_file are injected first.
    """
    if stream.secrets_file:
        url = stream.input.uri if isinstance(stream.input, NetworkURI) else ""
        injected = inject_rtsp_credentials(url, stream.secrets_file)
        if injected and injected != url:
            stream = stream.with_input(NetworkURI(injected))
    return OpenCVSource(stream, options)


__all__ = [
    "FrameSource",
    "OpenCVSource",
    "OpenCVSourceOptions",
    "create_source",
    "inject_rtsp_credentials",
    "sanitize_url",
]
