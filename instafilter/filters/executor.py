"""
Background execution of pipeline calls.

A :class:`PipelineWorker` runs apply calls of one pipeline on a single
background thread. With ``latest_only`` enabled a new submission cancels the
previous request if it has not started rendering yet, which is what a UI
re-rendering on every slider movement needs: only the latest value matters.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from instafilter.errors import PipelineCancelledError
from instafilter.image import ImageBuffer
from .pipeline import CancellationToken, Pipeline

logger = logging.getLogger(__name__)


@dataclass
class WorkerMetrics:
    """Counters of a pipeline worker.

    :param submitted: Number of submitted requests
    :param completed: Number of requests that returned an image
    :param cancelled: Number of requests aborted by a newer submission
    :param failed: Number of requests that raised any other error
    :param total_time_ms: Processing time of the completed requests
    """
    submitted: int = 0
    completed: int = 0
    cancelled: int = 0
    failed: int = 0
    total_time_ms: float = 0.0

    @property
    def avg_time_ms(self) -> float:
        """Average processing time per completed request in milliseconds."""
        if self.completed == 0:
            return 0.0
        return self.total_time_ms / self.completed


class PipelineWorker:
    """Runs pipeline calls on a background thread.

    Example:
        with PipelineWorker(Pipeline()) as worker:
            future = worker.submit('vignette', image, 0.5)
            result = future.result()

    :param pipeline: The pipeline to run, a new one if omitted
    :param latest_only: Cancel the pending request when a new one is submitted
    """

    def __init__(self, pipeline: Pipeline | None = None, latest_only: bool = True):
        self.pipeline = pipeline or Pipeline()
        self.latest_only = latest_only
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='instafilter')
        self._metrics = WorkerMetrics()
        self._lock = threading.Lock()
        self._pending: CancellationToken | None = None

    def submit(self, filter_name: str, source: ImageBuffer, intensity: float) -> Future:
        """Queue an apply call.

        :return: Future resolving to the filtered ImageBuffer, or raising the
            PipelineError of the call (PipelineCancelledError if superseded)
        """
        token = CancellationToken()
        with self._lock:
            if self.latest_only and self._pending is not None:
                self._pending.cancel()
            self._pending = token
            self._metrics.submitted += 1
        return self._executor.submit(self._run, filter_name, source, intensity, token)

    def _run(
        self, filter_name: str, source: ImageBuffer, intensity: float, token: CancellationToken
    ) -> ImageBuffer:
        start = time.perf_counter()
        try:
            result = self.pipeline.apply(filter_name, source, intensity, cancel=token)
        except PipelineCancelledError:
            with self._lock:
                self._metrics.cancelled += 1
            logger.debug(f"Skipped superseded request for {filter_name}")
            raise
        except Exception:
            with self._lock:
                self._metrics.failed += 1
            raise
        finally:
            with self._lock:
                if self._pending is token:
                    self._pending = None
        elapsed = (time.perf_counter() - start) * 1000
        with self._lock:
            self._metrics.completed += 1
            self._metrics.total_time_ms += elapsed
        return result

    def get_metrics(self) -> WorkerMetrics:
        """Get a snapshot of the worker's counters."""
        with self._lock:
            return WorkerMetrics(**vars(self._metrics))

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker, cancelling a pending request."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'PipelineWorker':
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()
