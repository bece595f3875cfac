from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from codec.base import FrameCodec
from display.base import DisplaySink, NullDisplay
from inference.backend import InferenceBackend
from inference.labels import LabelTable
from models.config import WorkerConfig
from pipeline.stages.detect import DetectionListener, DetectionPipeline
from web.state import FrameStore


@dataclass
class RuntimeContext:
    """Holds the shared backend, codec and sinks handed to every worker; avoids global singletons."""

    backend: InferenceBackend
    codec: FrameCodec
    labels: LabelTable = field(default_factory=LabelTable.coco)
    display: DisplaySink = field(default_factory=NullDisplay)
    worker_config: WorkerConfig = field(default_factory=WorkerConfig)
    frame_store: Optional[FrameStore] = None

    # Observability
    listeners: List[DetectionListener] = field(default_factory=list)

    def create_pipeline(self) -> DetectionPipeline:
        """New pipeline bound to the shared backend/codec/labels."""
        return DetectionPipeline(
            codec=self.codec,
            backend=self.backend,
            labels=self.labels,
            listeners=list(self.listeners),
        )

    def close(self) -> None:
        self.display.close()
        self.backend.close()
