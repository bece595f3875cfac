"""
TensorFlow SavedModel inference backend.

Loads an SSD-style detection SavedModel (e.g. ssd_mobilenet_v1_coco) once
into a session that every stream worker shares. Session.run is thread-safe,
so concurrent infer() calls need no external locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence

import numpy as np

from errors import InferenceError, ModelLoadError, PreprocessError
from models.config import DEFAULT_OUTPUT_TENSORS, ModelConfig
from models.detection import RawDetectionSet
from .backend import InferenceBackend


@dataclass(frozen=True)
class TensorFlowConfig:
    model_path: str
    tags: Sequence[str] = ("serve",)
    input_tensor: str = "image_tensor"
    output_tensors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_OUTPUT_TENSORS))

    @classmethod
    def from_model_config(cls, cfg: ModelConfig) -> "TensorFlowConfig":
        return cls(
            model_path=cfg.path,
            tags=tuple(cfg.tags),
            input_tensor=cfg.input_tensor,
            output_tensors=dict(cfg.output_tensors),
        )


class TensorFlowBackend(InferenceBackend):
    def __init__(self, cfg: TensorFlowConfig):
        self.cfg = cfg
        try:
            import tensorflow as tf  # type: ignore
        except ImportError as e:
            raise ModelLoadError(
                "TensorFlow is not installed. Install with `pip install tensorflow` "
                "or `pip install .[tensorflow]`."
            ) from e

        self._tf = tf
        self._graph = tf.Graph()
        self._session = tf.compat.v1.Session(graph=self._graph)
        try:
            tf.compat.v1.saved_model.loader.load(
                self._session, list(cfg.tags), cfg.model_path
            )
            self._input = self._graph.get_tensor_by_name(f"{cfg.input_tensor}:0")
            self._outputs = [
                self._graph.get_tensor_by_name(f"{cfg.output_tensors[key]}:0")
                for key in ("boxes", "scores", "classes", "num_detections")
            ]
        except Exception as e:
            self._session.close()
            raise ModelLoadError(f"Unable to load saved model from {cfg.model_path}: {e}") from e

        logging.info(f"Loaded detection model: {cfg.model_path} (tags={list(cfg.tags)})")

    @classmethod
    def load(cls, model_path: str, tags: Sequence[str] = ("serve",)) -> "TensorFlowBackend":
        return cls(TensorFlowConfig(model_path=model_path, tags=tuple(tags)))

    def preprocess(self, image_bytes: bytes) -> np.ndarray:
        """
        Decode BMP bytes into a [1, H, W, 3] uint8 tensor.

        Builds a small decode graph and runs it once in its own short-lived
        session, separate from the detection session.
        """
        tf = self._tf
        graph = tf.Graph()
        with graph.as_default():
            contents = tf.compat.v1.placeholder(tf.string, shape=[])
            decoded = tf.io.decode_bmp(contents, channels=3)
            batched = tf.expand_dims(decoded, 0)

        try:
            with tf.compat.v1.Session(graph=graph) as session:
                tensor = session.run(batched, feed_dict={contents: image_bytes})
        except (tf.errors.OpError, ValueError, TypeError) as e:
            raise PreprocessError(f"Unable to decode image: {e}") from e
        return tensor

    def infer(self, tensor: np.ndarray) -> RawDetectionSet:
        if tensor.ndim != 4 or tensor.shape[0] != 1 or tensor.shape[3] != 3:
            raise InferenceError(f"Expected input tensor of shape [1, H, W, 3], got {tensor.shape}")

        tf = self._tf
        try:
            boxes, scores, classes, num = self._session.run(
                self._outputs, feed_dict={self._input: tensor}
            )
        except (tf.errors.OpError, ValueError, TypeError) as e:
            raise InferenceError(f"Error running session: {e}") from e

        return RawDetectionSet.from_outputs(boxes, scores, classes, num)

    def close(self) -> None:
        self._session.close()
