"""
Fixed-size worker pool used by every per-pixel sweep.

An image is split into ``num_threads`` contiguous row ranges and each range
is handed to one worker. :meth:`RowPool.map_rows` only returns once every
range is done, so callers can reduce the partial results right after it.
The numpy kernels used by the workers release the GIL, which is why plain
threads are enough here.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


def row_ranges(rows: int, num_threads: int) -> List[range]:
    """Split ``range(rows)`` into at most ``num_threads`` non-empty row ranges."""
    bounds = np.linspace(0, rows, min(num_threads, rows) + 1).astype(int)
    return [
        range(start, stop)
        for start, stop in zip(bounds[:-1], bounds[1:])
        if stop > start
    ]


class RowPool:
    def __init__(self, num_threads: int):
        if num_threads < 1:
            raise ValueError("Thread count must be a positive integer")
        self.num_threads = num_threads
        self._executor = ThreadPoolExecutor(
            max_workers=num_threads, thread_name_prefix="row-worker"
        )
        logger.debug("Started row pool with %d threads", num_threads)

    def map_rows(self, func: Callable[[range], T], rows: int) -> List[T]:
        """Run ``func`` on every row range and return the results in row order."""
        futures = [
            self._executor.submit(func, r) for r in row_ranges(rows, self.num_threads)
        ]
        return [future.result() for future in futures]

    def submit(self, func: Callable[..., T], *args: Any) -> "Future[T]":
        return self._executor.submit(func, *args)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "RowPool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
