# rollstat/utils/parallel.py
"""
Static partitioning of output units across worker threads.

The executor splits the half-open range ``[0, n_units)`` into at most
``num_workers`` contiguous chunks whose sizes differ by at most one, and runs
one task per chunk on a ThreadPoolExecutor. Each task writes a disjoint slice
of a preallocated output buffer and only reads its inputs, so no locking is
needed. The kernels are compiled with ``nogil=True`` and the threads run
concurrently.

What a "unit" is depends on the partition axis chosen by the caller: time
indices when partitioning by time, and columns, variable pairs or response
columns when partitioning by variable.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple, TypeVar

from rollstat.core.config import ExecutionConfig

# Set up module-level logger
logger = logging.getLogger("rollstat.utils.parallel")

T = TypeVar("T")

ChunkTask = Callable[[int, int], T]


def partition(n_units: int, n_chunks: int) -> List[Tuple[int, int]]:
    """Split ``[0, n_units)`` into contiguous ``(lo, hi)`` chunks.

    At most ``n_chunks`` chunks are produced and none is empty. Earlier chunks
    take the remainder, one unit each.

    Examples:
        >>> partition(10, 3)
        [(0, 4), (4, 7), (7, 10)]
        >>> partition(2, 4)
        [(0, 1), (1, 2)]
    """
    if n_units <= 0:
        return []
    n_chunks = max(1, min(n_chunks, n_units))
    base, extra = divmod(n_units, n_chunks)

    chunks = []
    lo = 0
    for i in range(n_chunks):
        hi = lo + base + (1 if i < extra else 0)
        chunks.append((lo, hi))
        lo = hi
    return chunks


class ParallelExecutor:
    """
    Run a chunk task over ``[0, n_units)`` with a fixed number of threads.

    Args:
        config: Resolved execution settings for the call

    Examples:
        >>> executor = ParallelExecutor(ExecutionConfig(num_workers=2, parallel_threshold=0))
        >>> executor.run(5, lambda lo, hi: hi - lo)
        [3, 2]
    """

    def __init__(self, config: ExecutionConfig) -> None:
        self.config = config

    def chunks_for(self, n_units: int) -> List[Tuple[int, int]]:
        """Chunks the executor would use for ``n_units`` units."""
        if n_units < self.config.parallel_threshold:
            return partition(n_units, 1)
        return partition(n_units, self.config.num_workers)

    def run(self, n_units: int, task: ChunkTask) -> List[T]:
        """
        Run ``task(lo, hi)`` for every chunk of ``[0, n_units)``.

        A single chunk runs inline on the calling thread. The first exception
        raised by any task propagates to the caller after all chunks finish.

        Args:
            n_units: Number of independent output units
            task: Callable computing units ``lo`` to ``hi - 1``

        Returns:
            List of task return values in chunk order
        """
        chunks = self.chunks_for(n_units)
        if not chunks:
            return []

        if len(chunks) == 1:
            lo, hi = chunks[0]
            return [task(lo, hi)]

        logger.debug(
            f"Dispatching {n_units} units as {len(chunks)} chunks "
            f"({self.config.partition.value})"
        )
        with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
            futures = [pool.submit(task, lo, hi) for lo, hi in chunks]
            return [future.result() for future in futures]

    def __repr__(self) -> str:
        return (f"ParallelExecutor(num_workers={self.config.num_workers}, "
                f"partition={self.config.partition.value!r})")
