"""
Tests for observation layer.
"""

import os
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from conftest import ListSource
from errors import CaptureError, EndOfStream, SourceUnavailable
from models.stream import DeviceIndex, FilePath, NetworkURI, VideoStream
from observation import create_source, inject_rtsp_credentials, sanitize_url
from observation.opencv_source import OpenCVSource, OpenCVSourceOptions


def _stream(source, **kwargs):
    return VideoStream(id="cam-1", label="Camera 1", input=source, **kwargs)


def _capture(read_results, opened=True):
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.side_effect = read_results
    cap.get.return_value = 0
    return cap


class TestFrameSourceBase:
    def test_iterates_valid_frames_and_skips_empty(self):
        frames = [np.zeros((4, 4, 3), dtype=np.uint8), None, np.ones((4, 4, 3), dtype=np.uint8)]
        source = ListSource(_stream(DeviceIndex(0)), frames)

        with source:
            collected = list(source)

        assert len(collected) == 2
        assert [f.frame_index for f in collected] == [1, 2]
        assert all(f.stream_id == "cam-1" for f in collected)
        assert source.closed

    def test_iterating_closed_source_raises(self):
        source = ListSource(_stream(DeviceIndex(0)), [])

        with pytest.raises(RuntimeError):
            list(source)

    def test_source_id_is_stream_id(self):
        source = ListSource(_stream(DeviceIndex(0)))

        assert source.source_id == "cam-1"
        assert not source.is_open


class TestRtspUtils:
    def test_sanitize_url_masks_credentials(self):
        assert sanitize_url("rtsp://user:pw@10.0.0.5:554/s") == "rtsp://***@10.0.0.5:554/s"

    def test_sanitize_url_leaves_plain_values(self):
        assert sanitize_url("rtsp://10.0.0.5/s") == "rtsp://10.0.0.5/s"
        assert sanitize_url(0) == "0"

    def test_inject_credentials(self, tmp_path):
        secrets = tmp_path / "secrets.yaml"
        secrets.write_text("username: admin\npassword: pw\n")

        url = inject_rtsp_credentials("rtsp://10.0.0.5:554/live", str(secrets))

        assert url == "rtsp://admin:pw@10.0.0.5:554/live"

    def test_inject_uses_secrets_url_when_input_is_not_rtsp(self, tmp_path):
        secrets = tmp_path / "secrets.yaml"
        secrets.write_text(
            "username: admin\npassword: pw\nrtsp_url: rtsp://cam.local/stream1\n"
        )

        assert inject_rtsp_credentials("", str(secrets)) == "rtsp://admin:pw@cam.local/stream1"

    def test_existing_credentials_unchanged(self, tmp_path):
        secrets = tmp_path / "secrets.yaml"
        secrets.write_text("username: admin\npassword: pw\n")

        url = "rtsp://other:x@10.0.0.5/live"
        assert inject_rtsp_credentials(url, str(secrets)) == url

    def test_missing_secrets_file(self, tmp_path):
        url = "rtsp://10.0.0.5/live"

        assert inject_rtsp_credentials(url, str(tmp_path / "nope.yaml")) == url

    def test_create_source_injects_credentials(self, tmp_path):
        secrets = tmp_path / "secrets.yaml"
        secrets.write_text("username: admin\npassword: pw\n")
        stream = _stream(NetworkURI("rtsp://10.0.0.5/live"), secrets_file=str(secrets))

        source = create_source(stream)

        assert isinstance(source, OpenCVSource)
        assert source.capture_arg == "rtsp://admin:pw@10.0.0.5/live"


class TestOpenCVSource:
    def test_properties(self):
        assert OpenCVSource(_stream(NetworkURI("rtsp://h/s"))).is_rtsp
        assert OpenCVSource(_stream(FilePath("a.mp4"))).is_file
        assert OpenCVSource(_stream(DeviceIndex(0))).capture_arg == 0

    def test_missing_file_is_unavailable(self, tmp_path):
        source = OpenCVSource(_stream(FilePath(str(tmp_path / "missing.mp4"))))

        with pytest.raises(SourceUnavailable):
            source.open()
        assert not source.is_open

    def test_open_failure_raises_source_unavailable(self):
        options = OpenCVSourceOptions(max_retries=1, warmup=0)
        source = OpenCVSource(_stream(DeviceIndex(0)), options)

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=_capture([], opened=False)):
            with pytest.raises(SourceUnavailable):
                source.open()

    def test_read_device_frame(self):
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        cap = _capture([(True, frame)])
        source = OpenCVSource(_stream(DeviceIndex(0), resolution=(64, 48)), OpenCVSourceOptions(warmup=0))

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source.open()
            data = source.read()

        assert data.size == (64, 48)
        assert data.frame_index == 1
        assert data.stream_id == "cam-1"
        assert cap.set.called

    def test_file_end_raises_end_of_stream(self, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"")
        source = OpenCVSource(_stream(FilePath(str(video))))

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=_capture([(False, None)])):
            source.open()
            with pytest.raises(EndOfStream):
                source.read()

    def test_live_read_failures_reinitialize_then_give_up(self):
        options = OpenCVSourceOptions(max_read_failures=2, warmup=0)
        source = OpenCVSource(_stream(NetworkURI("rtsp://h/s")), options)

        def new_capture(*args, **kwargs):
            return _capture([(False, None)] * 5)

        with patch("observation.opencv_source.cv2.VideoCapture", side_effect=new_capture) as ctor:
            source.open()
            assert source.read() is None
            assert source.read() is None
            with pytest.raises(CaptureError):
                source.read()

        # initial open + one reinitialize per recovered failure
        assert ctor.call_count == 3
        assert os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] == "rtsp_transport;tcp"

    def test_read_before_open_raises(self):
        source = OpenCVSource(_stream(DeviceIndex(0)))

        with pytest.raises(CaptureError):
            source.read()

    def test_close_releases_capture(self):
        cap = _capture([])
        source = OpenCVSource(_stream(DeviceIndex(0)), OpenCVSourceOptions(warmup=0))

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source.open()
        source.close()

        cap.release.assert_called_once()
        assert not source.is_open
        assert source.get_video_info() == {}
