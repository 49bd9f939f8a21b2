"""
    solver
    ======

    Compute the Gradient Vector Flow of an edge vector field on R^2 or R^3.
    In particular, provides the class `GradientVectorFlow`, which holds the
    parameters of the diffusion, validates them, and dispatches to the solver
    that fits the dimensionality of the field and the capabilities of the
    device.

    The primary methods are:
      1. `select_solver`: choose the planar, volumetric, or linearized
      volumetric solver.
      2. `GradientVectorFlow.compute`: validate, negotiate the storage format,
      and diffuse a vector field into an output field.
"""

import logging
from eulergvf.field import VectorField
from eulergvf.formats import (
    Precision,
    negotiate_format
)
from eulergvf.validation import (
    SolverParameters,
    check_iterations,
    check_mu,
    check_precision,
    validate,
    validate_output,
    resolve_iterations
)
from eulergvf.R2.gvf import PlanarSolver
from eulergvf.R3.gvf import VolumetricSolver
from eulergvf.R3.linearized import LinearizedVolumetricSolver

logger = logging.getLogger(__name__)


def select_solver(dimensions, device):
    """
    Choose the solver for a `dimensions`-dimensional field on `device`:
    planar for 2D, and for 3D volumetric if `device` can write directly into
    volumes and linearized volumetric otherwise.
    """
    if dimensions == 2:
        solver = PlanarSolver()
    elif dimensions == 3:
        if device.supports_direct_volume_write():
            solver = VolumetricSolver()
        else:
            solver = LinearizedVolumetricSolver()
    else:
        raise ValueError(f"There is no Gradient Vector Flow solver for {dimensions}D grids!")
    logger.debug("Selected %s solver on %s.", solver.name, device.name)
    return solver


class GradientVectorFlow():
    """
    Diffuse an edge vector field by Gradient Vector Flow with explicit Euler
    steps, using double buffered storage on the accelerator.

    Attributes:
        `iterations`: number of steps, or `None` to use the largest extent of
          the grid.
        `μ`: regularisation weight, taking values in (0, 0.2]. Defaults to
          0.05.
        `precision`: Precision of the storage between steps. Defaults to 16
          bit, which falls back to 32 bit if the device lacks support.
        `progress`: whether to show a progress bar while iterating.
        `step_callback`: callable taking the number of committed steps and the
          DoubleBuffer, called after every step, or `None`.
        `last_run`: SolverRun of the most recent call to `compute`, or `None`.
    """

    def __init__(self, iterations=None, μ=0.05, precision=Precision.BITS_16, progress=False, step_callback=None):
        check_iterations(iterations)
        check_mu(μ)
        self.iterations = iterations
        self.μ = μ
        self.precision = check_precision(precision)
        self.progress = progress
        self.step_callback = step_callback
        self.last_run = None

    def set_iterations(self, iterations):
        """Set the number of steps; `None` derives it from the grid."""
        check_iterations(iterations)
        self.iterations = iterations

    def set_mu_constant(self, μ):
        check_mu(μ)
        self.μ = μ

    def get_mu_constant(self):
        return self.μ

    def set_16bit_storage_format(self):
        self.precision = Precision.BITS_16

    def set_32bit_storage_format(self):
        self.precision = Precision.BITS_32

    @property
    def parameters(self):
        return SolverParameters(iterations=self.iterations, μ=self.μ, precision=self.precision)

    def compute(self, field, device, output=None):
        """
        Compute the Gradient Vector Flow of `field` on `device`.

        Args:
            `field`: VectorField of the initial edge vector field, with 2
              components on a 2D grid or 3 components on a 3D grid. It is only
              read.
            `device`: DeviceCapabilities of the device Taichi runs on.
          Optional:
            `output`: VectorField with the shape and number of components of
              `field`, which receives the result. Defaults to `None`, in which
              case a field like `field` is created.

        Returns:
            VectorField of the diffused vector field.

        Raises:
            ValidationError: if `field`, `output`, or the parameters are
              invalid. Nothing is allocated in that case.
            UnsupportedFormatError: if `device` supports none of the storage
              formats for this dimensionality.
        """
        parameters = self.parameters
        validate(field, parameters)
        if output is not None:
            validate_output(field, output)
        iterations = resolve_iterations(parameters.iterations, field.shape)
        storage_format = negotiate_format(device, parameters.precision, field.dimensions)
        solver = select_solver(field.dimensions, device)
        if output is None:
            output = VectorField.like(field)
        self.last_run = solver.run(field, output, iterations, parameters.μ, storage_format, progress=self.progress,
                                   step_callback=self.step_callback)
        logger.debug("Finished %d GVF steps with the %s solver.", self.last_run.steps, self.last_run.strategy)
        return output

    def print(self):
        """Print attributes."""
        self.parameters.print()
        print(f"progress => {self.progress}")
        if self.last_run is not None:
            print(f"last_run => {self.last_run}")
