"""
Stream worker: the capture-and-detect loop for one camera.

State machine:
    OPENING -> CAPTURING <-> {SKIP, PROCESSING} -> CAPTURING
    any state -> CLOSED (source error, end of stream, quit, or stop())
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from display.base import DisplaySink
from errors import CaptureError, EndOfStream, FrameProcessingError, SourceUnavailable
from models.config import WorkerConfig
from models.detection import DetectionEvent
from models.frame import FrameData, is_valid_frame
from models.stream import VideoStream
from observation.base import FrameSource
from pipeline.stages.detect import DetectionPipeline


class WorkerState(str, enum.Enum):
    OPENING = "opening"
    CAPTURING = "capturing"
    SKIP = "skip"
    PROCESSING = "processing"
    CLOSED = "closed"


@dataclass
class WorkerStats:
    """Runtime statistics for one stream worker."""
    frames_read: int = 0
    frames_processed: int = 0
    frames_skipped: int = 0
    frames_failed: int = 0
    detections: int = 0
    consecutive_failures: int = 0
    last_frame_ts: Optional[float] = None
    last_error: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frames_read": self.frames_read,
            "frames_processed": self.frames_processed,
            "frames_skipped": self.frames_skipped,
            "frames_failed": self.frames_failed,
            "detections": self.detections,
            "consecutive_failures": self.consecutive_failures,
            "last_frame_ts": self.last_frame_ts,
            "last_error": self.last_error,
            "uptime_seconds": time.time() - self.start_time,
        }


FrameCallback = Callable[[FrameData, List[DetectionEvent]], None]


class StreamWorker:
    """
    Drives one FrameSource: read, detect, display, repeat.

    At most one frame is in flight; a slow inference call throttles this
    camera only. Per-frame pipeline errors are logged and the frame skipped.
    The pipeline is owned by this worker and emits events synchronously
    inside process(), so the per-frame event list needs no locking.

    Example:
        worker = StreamWorker(stream, source, pipeline, display, WorkerConfig())
        worker.run()  # blocks until the source ends or stop() is called
    """

    def __init__(
        self,
        stream: VideoStream,
        source: FrameSource,
        pipeline: DetectionPipeline,
        display: DisplaySink,
        config: Optional[WorkerConfig] = None,
    ):
        self.stream = stream
        self.source = source
        self.pipeline = pipeline
        self.display = display
        self.config = config or WorkerConfig()
        self.stats = WorkerStats()
        self.state = WorkerState.OPENING
        self.error: Optional[BaseException] = None
        self._stop_event = threading.Event()
        self._callbacks: List[FrameCallback] = []
        self._frame_events: List[DetectionEvent] = []
        pipeline.add_listener(self._on_detection)

    @property
    def stream_id(self) -> str:
        return self.stream.id

    @property
    def is_closed(self) -> bool:
        return self.state is WorkerState.CLOSED

    def add_callback(self, callback: FrameCallback) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, detection_events).
        """
        self._callbacks.append(callback)

    def stop(self) -> None:
        """Signal the worker to exit before its next capture."""
        self._stop_event.set()

    def run(self) -> None:
        """Open the source and process frames until stopped or closed."""
        self.stats = WorkerStats()
        self.state = WorkerState.OPENING
        logging.info(f"WORKER [{self.stream_id}] - DEVICE [{self.stream.label}]")

        try:
            self.source.open()
        except SourceUnavailable as e:
            self._fail(e)
            self._close()
            return
        except Exception as e:
            error = SourceUnavailable(f"Unable to open {self.stream.input}: {e}")
            error.__cause__ = e
            self._fail(error)
            self._close()
            return

        try:
            self.state = WorkerState.CAPTURING
            while not self._stop_event.is_set():
                if not self._step():
                    break
        except (EndOfStream, CaptureError) as e:
            if isinstance(e, EndOfStream):
                logging.info(f"Stream {self.stream_id} ended: {e}")
            else:
                self._fail(e)
        except Exception as e:
            self._fail(e)
        finally:
            self._close()

    def _step(self) -> bool:
        """One capture cycle. Returns False when the loop should end."""
        frame_data = self.source.read()

        if frame_data is None or not is_valid_frame(frame_data.frame):
            return self._skip()

        self.stats.consecutive_failures = 0
        self.stats.frames_read += 1
        self.stats.last_frame_ts = frame_data.timestamp
        if frame_data.stream_id is None:
            frame_data.stream_id = self.stream_id

        self.state = WorkerState.PROCESSING
        events = self._process_frame(frame_data)
        self.state = WorkerState.CAPTURING
        if events is None:
            return True

        for callback in self._callbacks:
            try:
                callback(frame_data, events)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        try:
            keep_going = self.display.show(self.stream, frame_data.frame)
        except Exception as e:
            self.stats.last_error = f"display: {e}"
            logging.warning(f"Display error for stream {self.stream_id}: {e}")
            keep_going = True
        if not keep_going:
            logging.info(f"Display closed for stream {self.stream_id}")
            return False

        self._log_periodic_stats()
        return True

    def _skip(self) -> bool:
        self.state = WorkerState.SKIP
        self.stats.frames_skipped += 1
        self.stats.consecutive_failures += 1
        limit = self.config.max_consecutive_failures
        if limit > 0 and self.stats.consecutive_failures >= limit:
            self._fail(CaptureError(
                f"Too many consecutive empty frames ({self.stats.consecutive_failures})"
            ))
            return False
        logging.debug(
            f"Empty frame from {self.stream_id} ({self.stats.consecutive_failures}"
            f"/{limit or 'unlimited'})"
        )
        if self.config.retry_delay > 0:
            self._stop_event.wait(self.config.retry_delay)
        self.state = WorkerState.CAPTURING
        return True

    def _process_frame(self, frame_data: FrameData) -> Optional[List[DetectionEvent]]:
        """Run the pipeline on one frame. Returns None when the frame was skipped."""
        self._frame_events = []
        try:
            self.pipeline.process(frame_data)
        except Exception as e:
            stage = e.stage if isinstance(e, FrameProcessingError) else "process"
            self._frame_events = []
            self.stats.frames_failed += 1
            self.stats.last_error = f"{stage}: {e}"
            logging.warning(
                f"Skipping frame {frame_data.frame_index} from {self.stream_id} "
                f"(stage={stage}): {e}"
            )
            return None

        self.stats.frames_processed += 1
        events, self._frame_events = self._frame_events, []
        self.stats.detections += len(events)
        return events

    def _on_detection(self, event: DetectionEvent) -> None:
        self._frame_events.append(event)

    def _log_periodic_stats(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Stream {self.stream_id} stats: read={self.stats.frames_read}, "
                f"processed={self.stats.frames_processed}, "
                f"failed={self.stats.frames_failed}, "
                f"detections={self.stats.detections}"
            )
            self.stats.last_stats_log_time = now

    def _fail(self, error: BaseException) -> None:
        self.error = error
        self.stats.last_error = str(error)
        stage = getattr(error, "stage", "unknown")
        logging.error(f"Stream {self.stream_id} failed during {stage}: {error}")

    def _close(self) -> None:
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source {self.stream_id}: {e}")
        self.state = WorkerState.CLOSED
        logging.info(f"Worker for stream {self.stream_id} stopped")
