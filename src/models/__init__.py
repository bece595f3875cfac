"""
Typed models for the object detection system.

Use the adapter classmethods (from_dict, from_outputs, ...) to convert from
config dicts and raw backend arrays.
"""

from .frame import FrameData, is_valid_frame
from .detection import (
    BoundingBox,
    Detection,
    DetectionEvent,
    RawDetectionSet,
    format_label,
)
from .stream import (
    DeviceIndex,
    FilePath,
    NetworkURI,
    SourceDescriptor,
    VideoStream,
    parse_source,
)
from .config import (
    Config,
    DisplayConfig,
    ModelConfig,
    StreamConfig,
    WebConfig,
    WorkerConfig,
)

__all__ = [
    # Frame
    "FrameData",
    "is_valid_frame",
    # Detection
    "BoundingBox",
    "Detection",
    "DetectionEvent",
    "RawDetectionSet",
    "format_label",
    # Streams
    "DeviceIndex",
    "FilePath",
    "NetworkURI",
    "SourceDescriptor",
    "VideoStream",
    "parse_source",
    # Config
    "Config",
    "DisplayConfig",
    "ModelConfig",
    "StreamConfig",
    "WebConfig",
    "WorkerConfig",
]
