"""
Tests for display sinks.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from display import (
    MultiDisplay,
    NullDisplay,
    WebDisplay,
    WindowDisplay,
    create_display,
)
from models.stream import DeviceIndex, VideoStream
from web.state import FrameStore

STREAM = VideoStream(id="cam-1", label="Front door", input=DeviceIndex(0))


class TestCreateDisplay:
    def test_none(self):
        assert isinstance(create_display("none"), NullDisplay)

    def test_web_backend_uses_store(self):
        display = create_display("web", FrameStore())

        assert isinstance(display, WebDisplay)

    def test_window_with_store_fans_out(self):
        display = create_display("window", FrameStore())

        assert isinstance(display, MultiDisplay)
        assert [type(s) for s in display.sinks] == [WindowDisplay, WebDisplay]

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_display("tk")


class TestWindowDisplay:
    def test_window_titled_by_stream_label_and_id(self):
        display = WindowDisplay()

        with patch("display.window.cv2") as cv2_mock:
            cv2_mock.waitKey.return_value = -1
            assert display.show(STREAM, np.zeros((4, 4, 3), dtype=np.uint8)) is True

        assert cv2_mock.imshow.call_args[0][0] == "Object Detection - Front door [cam-1]"

    def test_streams_sharing_a_label_get_separate_windows(self):
        display = WindowDisplay()
        other = VideoStream(id="cam-2", label="Front door", input=DeviceIndex(1))

        with patch("display.window.cv2") as cv2_mock:
            cv2_mock.waitKey.return_value = -1
            display.show(STREAM, np.zeros((4, 4, 3), dtype=np.uint8))
            display.show(other, np.zeros((4, 4, 3), dtype=np.uint8))

        names = [c[0][0] for c in cv2_mock.imshow.call_args_list]
        assert names == ["Object Detection - Front door [cam-1]", "Object Detection - Front door [cam-2]"]

    def test_q_key_stops_stream(self):
        display = WindowDisplay()

        with patch("display.window.cv2") as cv2_mock:
            cv2_mock.waitKey.return_value = ord("q")
            assert display.show(STREAM, np.zeros((4, 4, 3), dtype=np.uint8)) is False

    def test_close_destroys_windows_once_shown(self):
        display = WindowDisplay()

        with patch("display.window.cv2") as cv2_mock:
            cv2_mock.waitKey.return_value = -1
            display.close()
            cv2_mock.destroyAllWindows.assert_not_called()

            display.show(STREAM, np.zeros((4, 4, 3), dtype=np.uint8))
            display.close()
            cv2_mock.destroyAllWindows.assert_called_once()


class TestWebDisplay:
    def test_publishes_copy_to_store(self):
        store = FrameStore()
        frame = np.zeros((4, 4, 3), dtype=np.uint8)

        assert WebDisplay(store).show(STREAM, frame) is True
        frame[:] = 255

        stored = store.get_frame("cam-1")
        assert stored is not None
        assert not stored.any()
        assert store.last_frame_age("cam-1") >= 0


class TestMultiDisplay:
    def test_stops_when_any_sink_stops(self):
        keep, quit_ = MagicMock(), MagicMock()
        keep.show.return_value = True
        quit_.show.return_value = False
        display = MultiDisplay([keep, quit_])

        assert display.show(STREAM, np.zeros((2, 2, 3), dtype=np.uint8)) is False
        keep.show.assert_called_once()

        display.close()
        keep.close.assert_called_once()
        quit_.close.assert_called_once()
