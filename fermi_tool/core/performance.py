"""Performance utilities for simulation runs.

Timing helpers used by the engine and the numba-compiled histogram kernel
used by the summarizer.
"""

import time

import numpy as np
from numba import njit


class PerformanceTimer:
    """Context manager for performance timing."""

    def __init__(self, name: str = "Operation"):
        self.name = name
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()

    @property
    def duration(self) -> float:
        """Get operation duration in seconds."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return 0.0


@njit(cache=True)
def fast_histogram(values: np.ndarray, minimum: float, bin_width: float, bin_count: int) -> np.ndarray:
    """Count values into equal-width bins starting at ``minimum``.

    Bin index is ``floor((value - minimum) / bin_width)`` clamped to
    ``[0, bin_count - 1]``, so the maximum lands in the last bin. A zero
    width puts every value in the first bin.

    Args:
        values: Finite values, all ``>= minimum``
        minimum: Lower edge of the first bin
        bin_width: Width of each bin
        bin_count: Number of bins

    Returns:
        Integer counts per bin
    """
    counts = np.zeros(bin_count, dtype=np.int64)

    for k in range(values.shape[0]):
        if bin_width > 0:
            index = int(np.floor((values[k] - minimum) / bin_width))
        else:
            index = 0
        if index >= bin_count:
            index = bin_count - 1
        elif index < 0:
            index = 0
        counts[index] += 1

    return counts
