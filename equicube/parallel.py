"""
parallel.py — Fork-join execution context shared by all faces and chunks.

A context owns one thread pool. It is passed explicitly to the render entry
points, so independent runs (and tests) never share hidden global state.

Nested fan-out (faces, then chunks within each face) runs on the same pool.
A caller waiting in run_all() takes back every task of its own that no
worker has started yet and runs it inline, so a pool of any size, even one
worker, cannot deadlock on nested joins.

The first task to fail cancels every task of the same join that has not
started, and the caller raises it before running anything else inline.
"""

import logging
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Sequence

from equicube.errors import PreconditionError

logger = logging.getLogger(__name__)


class ExecutionContext:
    """Thread pool that runs independent tasks and joins on them."""

    def __init__(self, workers: int | None = None):
        if workers is None:
            workers = os.cpu_count() or 1
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise PreconditionError(
                f"worker count must be a positive integer, got {workers!r}")
        self.workers = workers
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix='equicube')
        logger.debug("Started execution context with %d worker(s)", workers)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)

    def run_all(self, tasks: Sequence[Callable[[], object]]) -> list:
        """
        Run independent zero-argument callables and join on them.

        Returns the results in task order. The first failure observed is
        re-raised; tasks not yet started are cancelled, tasks already running
        on a worker are left to finish and their results are discarded.
        """
        tasks = list(tasks)
        if not tasks:
            return []
        if len(tasks) == 1:
            return [tasks[0]()]

        futures = [self._executor.submit(task) for task in tasks]
        latch = _FailureLatch(futures)
        for future in futures:
            future.add_done_callback(latch.record)

        results = [None] * len(tasks)
        try:
            # Workers dequeue the head task first; take it back last.
            for index in [*range(1, len(tasks)), 0]:
                latch.check()
                if futures[index].cancel():
                    # cancel() is also true when the latch got there first
                    latch.check()
                    results[index] = tasks[index]()

            wait(futures, return_when=FIRST_EXCEPTION)
            latch.check()
            for index, future in enumerate(futures):
                if not future.cancelled():
                    results[index] = future.result()
        finally:
            for future in futures:
                future.cancel()
        return results


class _FailureLatch:
    """Keeps the first failure of a join and cancels its unstarted futures."""

    def __init__(self, futures):
        self._futures = futures
        self._lock = threading.Lock()
        self.error = None

    def record(self, future) -> None:
        if future.cancelled() or future.exception() is None:
            return
        with self._lock:
            if self.error is not None:
                return
            self.error = future.exception()
        for other in self._futures:
            other.cancel()

    def check(self) -> None:
        if self.error is not None:
            raise self.error
