"""
Tests for the OpenCV frame codec.
"""

import numpy as np
import pytest

from codec import DEFAULT_COLOR, EncodedImage, OpenCVFrameCodec, label_anchor
from errors import EncodeError
from models.detection import BoundingBox


class TestEncodedImage:
    def test_release_on_context_exit(self):
        with EncodedImage(b"abc") as image:
            assert image.data == b"abc"
            assert len(image) == 3

        assert image.released
        assert len(image) == 0
        with pytest.raises(EncodeError):
            _ = image.data


class TestOpenCVFrameCodec:
    def test_encode_is_bmp(self):
        codec = OpenCVFrameCodec()
        frame = np.zeros((8, 8, 3), dtype=np.uint8)

        image = codec.encode(frame)

        assert image.format == "bmp"
        assert image.data[:2] == b"BM"

    def test_encode_is_deterministic(self):
        codec = OpenCVFrameCodec()
        frame = np.random.default_rng(0).integers(0, 255, (16, 16, 3), dtype=np.uint8)

        assert codec.encode(frame).data == codec.encode(frame).data

    def test_encode_rejects_empty_frame(self):
        codec = OpenCVFrameCodec()

        with pytest.raises(EncodeError):
            codec.encode(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_draw_box_in_place(self):
        codec = OpenCVFrameCodec()
        frame = np.zeros((20, 20, 3), dtype=np.uint8)

        codec.draw_box(frame, BoundingBox(2, 2, 15, 15))

        assert tuple(frame[2, 2]) == DEFAULT_COLOR
        assert tuple(frame[8, 8]) == (0, 0, 0)

    def test_draw_label_in_place(self):
        codec = OpenCVFrameCodec()
        frame = np.zeros((60, 200, 3), dtype=np.uint8)

        codec.draw_label(frame, "person (88%)", (10, 40))

        assert frame.any()


def test_label_anchor_offsets():
    assert label_anchor(BoundingBox(64, 120, 576, 360)) == (74, 100)
