"""
VideoStream model and source descriptors.

A source descriptor says where frames come from:
- DeviceIndex: local camera by index (e.g. 0)
- FilePath: video file on disk
- NetworkURI: RTSP/HTTP stream URL
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class DeviceIndex:
    index: int

    @property
    def capture_arg(self) -> int:
        return self.index

    def __str__(self) -> str:
        return f"device:{self.index}"


@dataclass(frozen=True)
class FilePath:
    path: str

    @property
    def capture_arg(self) -> str:
        return self.path

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class NetworkURI:
    uri: str

    @property
    def capture_arg(self) -> str:
        return self.uri

    @property
    def scheme(self) -> str:
        return self.uri.split("://", 1)[0].lower()

    @property
    def is_rtsp(self) -> bool:
        return self.scheme in ("rtsp", "rtsps")

    def __str__(self) -> str:
        # observation imports models; resolve lazily
        from observation.rtsp_utils import sanitize_url

        return sanitize_url(self.uri)


SourceDescriptor = Union[DeviceIndex, FilePath, NetworkURI]


def parse_source(value: Any) -> SourceDescriptor:
    """
    Adapter: build a SourceDescriptor from a raw config value.

    Args:
        value: int device index, digit string, URL, or file path.

    Raises:
        ValueError: If the value cannot describe a source.
    """
    if isinstance(value, (DeviceIndex, FilePath, NetworkURI)):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid source descriptor: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Device index must be non-negative: {value}")
        return DeviceIndex(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Source descriptor must not be empty")
        if text.isdigit():
            return DeviceIndex(int(text))
        if "://" in text:
            return NetworkURI(text)
        return FilePath(text)
    raise ValueError(f"Invalid source descriptor type: {type(value).__name__}")


@dataclass(frozen=True)
class VideoStream:
    """
    One configured camera/source.

    Attributes:
        id: Unique stream identifier.
        label: Human-readable name (used for window titles and logs).
        input: Where frames come from.
        rtsp_transport: Transport for RTSP sources ("tcp" or "udp").
        secrets_file: Optional YAML file with RTSP credentials.
        resolution: Requested (width, height) for local devices.
        fps: Requested frame rate for local devices.
    """
    id: str
    label: str
    input: SourceDescriptor
    rtsp_transport: str = "tcp"
    secrets_file: Optional[str] = None
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VideoStream":
        """Adapter: Create from a `streams:` entry in the config."""
        resolution = d.get("resolution")
        return cls(
            id=str(d["id"]),
            label=d.get("label") or f"Camera {d['id']}",
            input=parse_source(d.get("input", 0)),
            rtsp_transport=d.get("rtsp_transport", "tcp"),
            secrets_file=d.get("secrets_file"),
            resolution=tuple(resolution) if resolution else None,
            fps=d.get("fps"),
        )

    def with_input(self, source: SourceDescriptor) -> "VideoStream":
        """Return a copy pointing at a different source (e.g. after credential injection)."""
        return VideoStream(
            id=self.id,
            label=self.label,
            input=source,
            rtsp_transport=self.rtsp_transport,
            secrets_file=self.secrets_file,
            resolution=self.resolution,
            fps=self.fps,
        )
