"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .stream import VideoStream


DEFAULT_MODEL_PATH = "data/models/ssd_mobilenet_v1_coco_2018_01_28/saved_model"

DEFAULT_OUTPUT_TENSORS = {
    "boxes": "detection_boxes",
    "scores": "detection_scores",
    "classes": "detection_classes",
    "num_detections": "num_detections",
}


@dataclass
class ModelConfig:
    """Detection model configuration."""
    path: str = DEFAULT_MODEL_PATH
    tags: List[str] = field(default_factory=lambda: ["serve"])
    input_tensor: str = "image_tensor"
    output_tensors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_OUTPUT_TENSORS))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        outputs = dict(DEFAULT_OUTPUT_TENSORS)
        outputs.update(d.get("output_tensors") or {})
        return cls(
            path=d.get("path", DEFAULT_MODEL_PATH),
            tags=list(d.get("tags") or ["serve"]),
            input_tensor=d.get("input_tensor", "image_tensor"),
            output_tensors=outputs,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "tags": list(self.tags),
            "input_tensor": self.input_tensor,
            "output_tensors": dict(self.output_tensors),
        }


@dataclass
class StreamConfig:
    """One entry of the `streams:` list."""
    id: str
    label: str = ""
    input: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    secrets_file: Optional[str] = None
    resolution: Optional[List[int]] = None
    fps: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StreamConfig":
        return cls(
            id=str(d.get("id", "")),
            label=d.get("label") or f"Camera {d.get('id', '')}",
            input=d.get("input", 0),
            rtsp_transport=d.get("rtsp_transport", "tcp"),
            secrets_file=d.get("secrets_file"),
            resolution=d.get("resolution"),
            fps=d.get("fps"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "input": self.input,
            "rtsp_transport": self.rtsp_transport,
        }
        if self.secrets_file:
            d["secrets_file"] = self.secrets_file
        if self.resolution:
            d["resolution"] = list(self.resolution)
        if self.fps:
            d["fps"] = self.fps
        return d

    def to_video_stream(self) -> VideoStream:
        return VideoStream.from_dict(self.to_dict())


@dataclass
class WorkerConfig:
    """
    Stream worker loop settings.

    Attributes:
        max_consecutive_failures: Empty reads in a row before the worker gives
            up on its source. 0 retries forever.
        retry_delay: Seconds to wait after an empty read.
        stats_log_interval: Seconds between per-stream stats log lines.
    """
    max_consecutive_failures: int = 10
    retry_delay: float = 0.5
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WorkerConfig":
        return cls(
            max_consecutive_failures=int(d.get("max_consecutive_failures", 10)),
            retry_delay=float(d.get("retry_delay", 0.5)),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_consecutive_failures": self.max_consecutive_failures,
            "retry_delay": self.retry_delay,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class DisplayConfig:
    """Where annotated frames go: "window", "web" or "none"."""
    backend: str = "window"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(backend=d.get("backend", "window"))

    def to_dict(self) -> Dict[str, Any]:
        return {"backend": self.backend}


@dataclass
class WebConfig:
    """Web preview server settings."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=bool(d.get("enabled", False)),
            host=d.get("host", "0.0.0.0"),
            port=int(d.get("port", 5000)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    model: ModelConfig = field(default_factory=ModelConfig)
    streams: List[StreamConfig] = field(default_factory=list)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/object_detection.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            streams=[StreamConfig.from_dict(s) for s in d.get("streams", []) or []],
            worker=WorkerConfig.from_dict(d.get("worker", {}) or {}),
            display=DisplayConfig.from_dict(d.get("display", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/object_detection.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model.to_dict(),
            "streams": [s.to_dict() for s in self.streams],
            "worker": self.worker.to_dict(),
            "display": self.display.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }

    def video_streams(self) -> List[VideoStream]:
        return [s.to_video_stream() for s in self.streams]
