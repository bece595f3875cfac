"""
Frame codec interface.

A codec turns a frame into an encoded image the inference backend can decode,
and draws overlay primitives onto frames in place.
"""

from __future__ import annotations

from typing import Optional, Protocol, Tuple

import numpy as np

from errors import EncodeError
from models.detection import BoundingBox

Color = Tuple[int, int, int]
Point = Tuple[int, int]

# BGR
DEFAULT_COLOR: Color = (134, 255, 64)
DEFAULT_THICKNESS = 2

# Label baseline offset from the box's top-left corner
LABEL_OFFSET_X = 10
LABEL_OFFSET_Y = -20


class EncodedImage:
    """
    Encoded bytes of one frame.

    Scoped resource: use as a context manager so the buffer is released on
    every exit path. Reading after release raises EncodeError.
    """

    def __init__(self, data: bytes, format: str = "bmp"):
        self._data: Optional[bytes] = data
        self.format = format

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise EncodeError("Encoded image has already been released")
        return self._data

    def __len__(self) -> int:
        return 0 if self._data is None else len(self._data)

    def release(self) -> None:
        self._data = None

    def __enter__(self) -> "EncodedImage":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class FrameCodec(Protocol):
    def encode(self, frame: np.ndarray) -> EncodedImage:
        ...

    def draw_box(
        self,
        frame: np.ndarray,
        rect: BoundingBox,
        color: Color = DEFAULT_COLOR,
        thickness: int = DEFAULT_THICKNESS,
    ) -> None:
        ...

    def draw_label(
        self,
        frame: np.ndarray,
        text: str,
        point: Point,
        color: Color = DEFAULT_COLOR,
        thickness: int = DEFAULT_THICKNESS,
    ) -> None:
        ...


def label_anchor(rect: BoundingBox) -> Point:
    """Baseline point for a box label: above the box, slightly right of its corner."""
    return (rect.x1 + LABEL_OFFSET_X, rect.y1 + LABEL_OFFSET_Y)
