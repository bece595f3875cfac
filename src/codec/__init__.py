"""
Frame encoding and overlay drawing.
"""

from .base import (
    DEFAULT_COLOR,
    DEFAULT_THICKNESS,
    EncodedImage,
    FrameCodec,
    label_anchor,
)
from .opencv_codec import OpenCVFrameCodec

__all__ = [
    "DEFAULT_COLOR",
    "DEFAULT_THICKNESS",
    "EncodedImage",
    "FrameCodec",
    "OpenCVFrameCodec",
    "label_anchor",
]
