"""
    driver
    ======

    Provides the common skeleton of the Gradient Vector Flow solvers: the
    `SolverRun` record describing what a call did, and the `SurfaceSolver`
    class, which seeds a double buffer with the input field, runs the explicit
    Euler steps, and copies the final buffer into the output field. Subclasses
    only provide the step kernel for their dimensionality.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
import taichi as ti
from tqdm import tqdm
from eulergvf.buffers import working_buffers
from eulergvf.formats import StorageFormat
from eulergvf.utils import transfer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverRun:
    """
    Record of a single solver call.

    Attributes:
        `strategy`: name of the solver that ran.
        `storage_format`: StorageFormat of the working buffers.
        `iterations`: resolved number of steps that was requested.
        `steps`: number of steps that were committed.
        `result_index`: index of the working buffer the result was read from.
        `seeded_by_copy`: whether the seed was a direct copy of the input.
        `materialised_by_copy`: whether the output was a direct copy of the
          result buffer.
    """
    strategy: str
    storage_format: StorageFormat
    iterations: int
    steps: int
    result_index: int
    seeded_by_copy: bool
    materialised_by_copy: bool


class SurfaceSolver(ABC):
    """
    Solve Gradient Vector Flow on addressable grids, holding the working
    buffers in the negotiated storage format. Subclasses set `name` and
    `dimensions`.
    """

    name: str
    dimensions: int

    @abstractmethod
    def step(self, field, double_buffer, μ, storage_format):
        """Launch the kernel for a single explicit Euler step."""
        raise NotImplementedError

    def run(self, field, output, iterations, μ, storage_format, progress=False, step_callback=None):
        """
        Diffuse `field` for `iterations` steps and write the result to
        `output`.

        Args:
          Static:
            `field`: VectorField of the initial edge vector field.
            `iterations`: number of steps, taking positive integral values.
            `μ`: regularisation weight, taking values in (0, 0.2].
            `storage_format`: StorageFormat of the working buffers.
          Mutated:
            `output`: VectorField with the shape of `field`, which is
              overwritten with the diffused field.
          Optional:
            `progress`: whether to show a progress bar. Defaults to `False`.
            `step_callback`: callable taking the number of committed steps
              and the DoubleBuffer, called after every step. Defaults to
              `None`.

        Returns:
            SolverRun describing the call.
        """
        logger.debug("Running %s GVF for %d steps in %s.", self.name, iterations, storage_format)
        with working_buffers(field.shape, storage_format.element_type.dtype, n=storage_format.channels) as double_buffer:
            seeded_by_copy = transfer(field.data, double_buffer.seed, field.components)
            for _ in tqdm(range(iterations), disable=not progress):
                self.step(field, double_buffer, μ, storage_format)
                double_buffer.swap()
                if step_callback is not None:
                    step_callback(double_buffer.steps, double_buffer)
            materialised_by_copy = transfer(double_buffer.result, output.data, field.components)
            ti.sync()
            return SolverRun(
                strategy=self.name,
                storage_format=storage_format,
                iterations=iterations,
                steps=double_buffer.steps,
                result_index=double_buffer.result_index,
                seeded_by_copy=seeded_by_copy,
                materialised_by_copy=materialised_by_copy
            )
