"""
Detect stage: one frame through encode -> preprocess -> infer -> filter -> annotate.

Each stream worker owns one instance; the backend behind it is shared.
Frames are annotated in place.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional

import numpy as np

from codec.base import FrameCodec, label_anchor
from errors import EncodeError, FrameProcessingError, InferenceError, PreprocessError
from inference.backend import InferenceBackend
from inference.labels import LabelTable
from models.detection import (
    BoundingBox,
    Detection,
    DetectionEvent,
    RawDetectionSet,
    format_label,
)
from models.frame import FrameData

CONFIDENCE_THRESHOLD = 0.5

DetectionListener = Callable[[DetectionEvent], None]


class DetectionPipeline:
    """
    Turns one frame into detections and draws them onto that frame.

    This stage:
    - Encodes the frame (the encoded buffer is released on every exit path)
    - Builds the input tensor and runs inference on the shared backend
    - Keeps detections with confidence strictly above 0.5
    - Converts normalized [y1, x1, y2, x2] boxes to pixel (x1, y1, x2, y2)
    - Emits a DetectionEvent per detection and annotates the frame

    Stage failures raise EncodeError / PreprocessError / InferenceError.

    Example:
        pipeline = DetectionPipeline(codec, backend, LabelTable.coco())
        frame = pipeline.process(frame_data)
    """

    def __init__(
        self,
        codec: FrameCodec,
        backend: InferenceBackend,
        labels: LabelTable,
        listeners: Optional[List[DetectionListener]] = None,
    ):
        self.codec = codec
        self.backend = backend
        self.labels = labels
        self._listeners: List[DetectionListener] = list(listeners or [])

    def add_listener(self, listener: DetectionListener) -> None:
        """Register a consumer for DetectionEvents."""
        self._listeners.append(listener)

    def process(self, frame_data: FrameData) -> np.ndarray:
        """
        Detect and annotate one frame.

        Returns the same array object, annotated in place.
        """
        frame = frame_data.frame
        detections = self.detect(
            frame,
            stream_id=frame_data.stream_id,
            frame_index=frame_data.frame_index,
        )
        self.annotate(frame, detections)
        return frame

    def detect(
        self,
        frame: np.ndarray,
        stream_id: Optional[str] = None,
        frame_index: int = 0,
    ) -> List[Detection]:
        raw = self._run_inference(frame, stream_id)
        height, width = frame.shape[:2]
        detections = self.filter_detections(raw, width, height)

        for det in detections:
            logging.info(det.log_line())
            self._emit(DetectionEvent.from_detection(det, stream_id, frame_index))
        return detections

    def annotate(self, frame: np.ndarray, detections: List[Detection]) -> None:
        for det in detections:
            self.codec.draw_box(frame, det.box)
            self.codec.draw_label(frame, det.label, label_anchor(det.box))

    def filter_detections(self, raw: RawDetectionSet, width: int, height: int) -> List[Detection]:
        """Apply the confidence threshold and pixel transform, in slot order."""
        detections: List[Detection] = []
        for i in range(len(raw.probabilities)):
            confidence = float(raw.probabilities[i])
            if confidence <= CONFIDENCE_THRESHOLD:
                continue

            values = [confidence, raw.class_ids[i]] + list(raw.boxes[i])
            if not all(math.isfinite(float(v)) for v in values):
                logging.debug(f"Dropping non-finite detection at slot {i}: {values}")
                continue

            box = BoundingBox.from_normalized(raw.boxes[i], width, height)
            box = box.normalized_to(width, height)
            if box.width <= 0 or box.height <= 0:
                logging.debug(f"Dropping degenerate box at slot {i}: {box.as_tuple()}")
                continue

            class_id = int(round(float(raw.class_ids[i])))
            class_name = self.labels.name(class_id)
            detections.append(
                Detection(
                    box=box,
                    confidence=confidence,
                    class_id=class_id,
                    class_name=class_name,
                    label=format_label(class_name, confidence),
                )
            )
        return detections

    def _run_inference(self, frame: np.ndarray, stream_id: Optional[str]) -> RawDetectionSet:
        try:
            with self.codec.encode(frame) as encoded:
                tensor = self._call(self.backend.preprocess, encoded.data, PreprocessError, stream_id)
            return self._call(self.backend.infer, tensor, InferenceError, stream_id)
        except FrameProcessingError as e:
            if e.stream_id is None:
                e.stream_id = stream_id
            raise
        except Exception as e:
            raise EncodeError(f"Unable to encode frame: {e}", stream_id) from e

    @staticmethod
    def _call(fn, arg, error_cls, stream_id):
        """Run a backend call, wrapping unexpected errors into the stage's error type."""
        try:
            return fn(arg)
        except FrameProcessingError:
            raise
        except Exception as e:
            raise error_cls(f"{error_cls.stage} failed: {e}", stream_id) from e

    def _emit(self, event: DetectionEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logging.warning(f"Detection listener error: {e}")
