"""
Worker pool: one StreamWorker thread per configured stream.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from models.stream import VideoStream
from observation import create_source
from observation.base import FrameSource
from .worker import StreamWorker

if TYPE_CHECKING:
    from runtime.context import RuntimeContext

SourceFactory = Callable[[VideoStream], FrameSource]


class WorkerPool:
    """
    Launches one worker per stream and waits for all of them to close.

    Workers are independent; the only shared state is what RuntimeContext
    holds (backend, codec, labels, display).

    Example:
        pool = WorkerPool(config.video_streams(), ctx)
        pool.run()  # blocks until every worker is closed
    """

    def __init__(
        self,
        streams: Sequence[VideoStream],
        ctx: RuntimeContext,
        source_factory: Optional[SourceFactory] = None,
    ):
        ids = [s.id for s in streams]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate stream ids: {', '.join(duplicates)}")

        self.ctx = ctx
        self._source_factory = source_factory or create_source
        self.workers: List[StreamWorker] = [self._create_worker(s) for s in streams]
        self._threads: List[threading.Thread] = []

    def _create_worker(self, stream: VideoStream) -> StreamWorker:
        if self.ctx.frame_store is not None:
            self.ctx.frame_store.register(stream.id, stream.label)
        return StreamWorker(
            stream=stream,
            source=self._source_factory(stream),
            pipeline=self.ctx.create_pipeline(),
            display=self.ctx.display,
            config=self.ctx.worker_config,
        )

    def get_worker(self, stream_id: str) -> Optional[StreamWorker]:
        for worker in self.workers:
            if worker.stream_id == stream_id:
                return worker
        return None

    def start(self) -> None:
        """Start every worker on its own thread."""
        if self._threads:
            return
        for worker in self.workers:
            thread = threading.Thread(
                target=worker.run,
                name=f"worker-{worker.stream_id}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()
        logging.info(f"Started {len(self._threads)} stream worker(s)")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for workers to close.

        Returns True when every worker thread has finished.
        """
        for thread in self._threads:
            thread.join(timeout)
        return not any(t.is_alive() for t in self._threads)

    def stop(self) -> None:
        """Signal every worker to exit before its next capture."""
        for worker in self.workers:
            worker.stop()

    def run(self) -> None:
        """Start all workers and block until they are closed."""
        self.start()
        try:
            # Short joins keep the main thread responsive to KeyboardInterrupt
            while not self.join(timeout=0.5):
                pass
        except KeyboardInterrupt:
            logging.info("Interrupted by user, stopping workers")
            self.stop()
            self.join()

    def snapshot(self) -> Dict[str, dict]:
        """Per-stream state and stats."""
        return {
            w.stream_id: {
                "label": w.stream.label,
                "input": str(w.stream.input),
                "state": w.state.value,
                "stats": w.stats.to_dict(),
            }
            for w in self.workers
        }
