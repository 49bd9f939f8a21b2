"""
    buffers
    =======

    Provides the ping-pong buffering used by the iterative solvers. In
    particular, provides the `DoubleBuffer` class, which alternates the roles
    of two equally shaped ndarrays, and `working_buffers`, which allocates such a
    pair for the duration of a single solver call.
"""

import logging
from contextlib import contextmanager
import taichi as ti

logger = logging.getLogger(__name__)


class DoubleBuffer():
    """
    Pair of buffers of which one is read and the other written in every step.

    Step i reads from `buffers[read_index]` and writes to
    `buffers[1 - read_index]`; calling `swap` after the step has been committed
    flips `read_index`. After `steps` steps the last written buffer is
    `buffers[steps % 2]`, which is `buffers[0]`, the seed, if no step was taken.

    Attributes:
        `buffers`: list of the two buffers.
        `read_index`: index of the buffer that is read in the next step.
        `steps`: number of committed steps.
    """

    def __init__(self, front, back):
        if front is back:
            raise ValueError("A double buffer needs two distinct buffers!")
        self.buffers = [front, back]
        self.read_index = 0
        self.steps = 0

    @property
    def write_index(self):
        return 1 - self.read_index

    @property
    def read(self):
        return self.buffers[self.read_index]

    @property
    def write(self):
        return self.buffers[self.write_index]

    @property
    def seed(self):
        """Buffer that is seeded with the initial field."""
        return self.buffers[0]

    @property
    def result_index(self):
        # The read index always points at the last written buffer.
        return self.read_index

    @property
    def result(self):
        return self.buffers[self.result_index]

    def swap(self):
        """Commit a step: the buffer that was written becomes the one read."""
        self.read_index = self.write_index
        self.steps += 1

    def release(self):
        """Drop both buffers. Step counts and indices stay readable."""
        self.buffers = []


def allocate(shape, dtype, n=None):
    """
    Allocate a zeroed ndarray of `shape` and `dtype`, scalar if `n` is `None`
    and vectors of `n` components otherwise. The memory is freed as soon as
    the last reference to it is dropped.
    """
    if n is None:
        return ti.ndarray(dtype, shape)
    return ti.Vector.ndarray(n, dtype, shape)


@contextmanager
def working_buffers(shape, dtype, n=None):
    """
    Allocate the working buffer pair of a solver call, which is released when
    the call ends, whether it succeeds or not.

    Args:
        `shape`: Tuple[int] of the shape of each buffer.
        `dtype`: Taichi data type of each buffer.
      Optional:
        `n`: number of channels per cell, or `None` for scalar buffers.

    Yields:
        DoubleBuffer of the two buffers.
    """
    double_buffer = DoubleBuffer(allocate(shape, dtype, n=n), allocate(shape, dtype, n=n))
    logger.debug("Allocated working buffers of shape %s.", shape)
    try:
        yield double_buffer
    finally:
        double_buffer.release()
        logger.debug("Released working buffers of shape %s.", shape)
