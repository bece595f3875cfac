"""
OpenCV frame codec.

Encodes frames as BMP (lossless, so compression artifacts never reach the
model) and draws boxes/labels with cv2 primitives.
"""

from __future__ import annotations

import cv2
import numpy as np

from errors import EncodeError
from models.detection import BoundingBox
from models.frame import is_valid_frame
from .base import (
    DEFAULT_COLOR,
    DEFAULT_THICKNESS,
    Color,
    EncodedImage,
    FrameCodec,
    Point,
)


class OpenCVFrameCodec(FrameCodec):
    def __init__(self, font_scale: float = 0.6):
        self.font_scale = font_scale
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def encode(self, frame: np.ndarray) -> EncodedImage:
        if not is_valid_frame(frame):
            raise EncodeError("Cannot encode an empty frame")
        try:
            ok, buf = cv2.imencode(".bmp", frame)
        except cv2.error as e:
            raise EncodeError(f"BMP encoding failed: {e}") from e
        if not ok:
            raise EncodeError("BMP encoding failed")
        return EncodedImage(buf.tobytes(), format="bmp")

    def draw_box(
        self,
        frame: np.ndarray,
        rect: BoundingBox,
        color: Color = DEFAULT_COLOR,
        thickness: int = DEFAULT_THICKNESS,
    ) -> None:
        cv2.rectangle(frame, rect.top_left, rect.bottom_right, color, thickness)

    def draw_label(
        self,
        frame: np.ndarray,
        text: str,
        point: Point,
        color: Color = DEFAULT_COLOR,
        thickness: int = DEFAULT_THICKNESS,
    ) -> None:
        cv2.putText(frame, text, point, self.font, self.font_scale, color, thickness)
