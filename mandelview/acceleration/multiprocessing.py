"""
Batched, optionally parallel divergence computation.

The divergence phase only depends on each sample's own position and on the
immutable camera and engine, so the flat sample index space is cut into
contiguous batches that can run in any order on any number of processes.
Results are written back by index, which keeps the output independent of
completion order. Cancellation is checked between batches.
"""

import numpy as np
from typing import Callable, List, Optional, Tuple
import multiprocessing as mp
import logging
import threading
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.camera import Camera
from ..core.errors import InvalidConfiguration, RenderCancelled
from ..core.mandelbrot import Mandelbrot
from ..core.pixels import SampleGrid

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancellationToken:
    """Thread-safe flag used to stop a render between batches."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RenderCancelled("Render cancelled")


@dataclass(frozen=True)
class BatchSpec:
    """A contiguous range ``[start, stop)`` of flat sample indices."""
    batch_id: int
    start: int
    stop: int

    @property
    def size(self) -> int:
        return self.stop - self.start


@dataclass
class BatchResult:
    """Divergence values computed for one batch."""
    batch_id: int
    start: int
    values: np.ndarray
    processing_time: float


def create_batches(total: int, batch_size: int) -> List[BatchSpec]:
    """
    Split ``total`` samples into batches of at most ``batch_size``.

    Args:
        total: Number of samples
        batch_size: Maximum samples per batch

    Returns:
        List of BatchSpec objects covering ``[0, total)`` in order
    """
    if batch_size < 1:
        raise InvalidConfiguration("batch_size must be positive")

    batches = []
    for batch_id, start in enumerate(range(0, total, batch_size)):
        batches.append(BatchSpec(batch_id, start, min(start + batch_size, total)))

    logger.debug(f"Created {len(batches)} batches of up to {batch_size} samples")
    return batches


def compute_batch(camera: Camera, mandelbrot: Mandelbrot, grid: SampleGrid,
                  batch: BatchSpec, vectorized: bool = False) -> BatchResult:
    """
    Compute the divergence of every sample in ``batch``.

    Every sample goes through ``camera.to_complex``. The scalar engine is
    used unless ``vectorized`` is set, in which case the points are gathered
    into an array and passed to ``Mandelbrot.divergence_grid``.
    """
    start_time = time.time()
    points = [camera.to_complex(u, v) for u, v in grid.positions(batch.start, batch.stop)]

    if vectorized:
        array = np.array([p.to_builtin() for p in points], dtype=np.complex128)
        values = mandelbrot.divergence_grid(array)
    else:
        values = np.array([mandelbrot.divergence(p) for p in points], dtype=np.float64)

    return BatchResult(
        batch_id=batch.batch_id,
        start=batch.start,
        values=values,
        processing_time=time.time() - start_time
    )


def process_divergence_batch(args: Tuple) -> BatchResult:
    """Worker entry point, unpacks the argument tuple for ``compute_batch``."""
    camera, mandelbrot, grid, batch, vectorized = args
    return compute_batch(camera, mandelbrot, grid, batch, vectorized)


class DivergenceMapper:
    """Runs the divergence phase over a sample grid, sequentially or in a process pool."""

    def __init__(self, num_processes: Optional[int] = 1, batch_size: int = 4096,
                 vectorized: bool = False):
        """
        Initialize the mapper.

        Args:
            num_processes: Worker processes, 1 runs in-process, None uses the CPU count
            batch_size: Samples per batch, also the cancellation granularity
            vectorized: Use the numpy engine inside each batch
        """
        if num_processes is None:
            self.num_processes = mp.cpu_count()
        else:
            self.num_processes = max(1, num_processes)
        if batch_size < 1:
            raise InvalidConfiguration("batch_size must be positive")

        self.batch_size = batch_size
        self.vectorized = vectorized

    def map(self, camera: Camera, mandelbrot: Mandelbrot, grid: SampleGrid,
            cancel_token: Optional[CancellationToken] = None,
            progress_callback: Optional[ProgressCallback] = None) -> np.ndarray:
        """
        Compute the divergence of every sample of ``grid``.

        Returns only after every batch has completed.

        Args:
            camera: View to sample
            mandelbrot: Divergence engine
            grid: Canvas geometry
            cancel_token: Checked before each batch is started or collected
            progress_callback: Called with (completed_batches, total_batches)

        Returns:
            Float array of divergence values in flat index order

        Raises:
            RenderCancelled: If the token is cancelled before all batches finish
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        start_time = time.time()
        batches = create_batches(grid.sample_count, self.batch_size)
        values = np.empty(grid.sample_count, dtype=np.float64)

        if self.num_processes == 1 or len(batches) == 1:
            self._map_sequential(camera, mandelbrot, grid, batches, values,
                                 cancel_token, progress_callback)
        else:
            self._map_parallel(camera, mandelbrot, grid, batches, values,
                               cancel_token, progress_callback)

        logger.info(f"Divergence phase complete: {grid.sample_count} samples in "
                    f"{len(batches)} batches, {time.time() - start_time:.2f}s")
        return values

    def _map_sequential(self, camera, mandelbrot, grid, batches, values,
                        cancel_token, progress_callback) -> None:
        for completed, batch in enumerate(batches, start=1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            result = compute_batch(camera, mandelbrot, grid, batch, self.vectorized)
            values[result.start:result.start + result.values.size] = result.values
            logger.debug(f"Batch {result.batch_id} done in {result.processing_time:.3f}s")

            if progress_callback:
                progress_callback(completed, len(batches))

    def _map_parallel(self, camera, mandelbrot, grid, batches, values,
                      cancel_token, progress_callback) -> None:
        logger.info(f"Processing {len(batches)} batches with {self.num_processes} processes")

        executor = ProcessPoolExecutor(max_workers=self.num_processes)
        try:
            futures = [executor.submit(process_divergence_batch,
                                       (camera, mandelbrot, grid, batch, self.vectorized))
                       for batch in batches]

            completed = 0
            for future in as_completed(futures):
                if cancel_token is not None and cancel_token.cancelled:
                    for pending in futures:
                        pending.cancel()
                    cancel_token.raise_if_cancelled()

                result = future.result()
                values[result.start:result.start + result.values.size] = result.values
                completed += 1

                if progress_callback:
                    progress_callback(completed, len(batches))
        finally:
            executor.shutdown(wait=True, cancel_futures=True)


def get_optimal_process_count() -> int:
    """Get optimal number of processes for divergence computation."""
    # Leave one core for system
    return max(1, mp.cpu_count() - 1)
