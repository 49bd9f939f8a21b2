"""
    validation
    ==========

    Check the parameters and input of a Gradient Vector Flow computation
    before anything is allocated on the accelerator, and resolve the number of
    iterations.

    The primary methods are:
      1. `validate`: reject a vector field and parameters that cannot be
      diffused.
      2. `resolve_iterations`: turn the "automatic" iteration count `None` into
      a concrete number of steps.
"""

import numbers
from dataclasses import dataclass
from typing import Optional
from eulergvf.formats import Precision

MU_MAX = 0.2


class ValidationError(ValueError):
    """The input or parameters of a Gradient Vector Flow are malformed."""


@dataclass(frozen=True)
class SolverParameters:
    """
    Parameters of a Gradient Vector Flow computation.

    Attributes:
        `iterations`: number of explicit Euler steps, or `None` to derive it
          from the size of the grid.
        `μ`: regularisation weight of the diffusion, taking values in
          (0, 0.2].
        `precision`: Precision in which the field is stored between steps.
    """
    iterations: Optional[int] = None
    μ: float = 0.05
    precision: Precision = Precision.BITS_16

    def print(self):
        """Print attributes."""
        print(f"iterations => {'auto' if self.iterations is None else self.iterations}")
        print(f"μ => {self.μ}")
        print(f"precision => {self.precision.value} bit")


def check_iterations(iterations):
    """Raise ValidationError unless `iterations` is `None` or a positive int."""
    if iterations is None:
        return
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral):
        raise ValidationError(f"Number of iterations must be an integer, got {iterations!r}!")
    if iterations == 0:
        raise ValidationError("Number of iterations can't be zero; leave it unset to derive it from the grid.")
    if iterations < 0:
        raise ValidationError(f"Number of iterations must be positive, got {iterations}!")


def check_mu(μ):
    """Raise ValidationError unless 0 < `μ` <= 0.2."""
    if isinstance(μ, bool) or not isinstance(μ, numbers.Real):
        raise ValidationError(f"The constant μ must be a real number, got {μ!r}!")
    if not 0. < μ <= MU_MAX:
        raise ValidationError(f"The constant μ must be larger than 0 and at most {MU_MAX}, got {μ}!")


def check_precision(precision):
    """Return `precision` as a Precision, raising ValidationError if invalid."""
    try:
        return Precision(precision)
    except ValueError:
        raise ValidationError(f"Storage precision must be 16 or 32 bit, got {precision!r}!") from None


def check_field(field):
    """Raise ValidationError unless `field` is a 2D or 3D vector field."""
    if field.dimensions not in (2, 3):
        raise ValidationError(f"Gradient Vector Flow is only defined on 2D and 3D grids, got {field.dimensions}D!")
    if field.components != field.dimensions:
        raise ValidationError(
            f"Input to Gradient Vector Flow must be a vector field with as many components as dimensions; got "
            f"{field.components} components on a {field.dimensions}D grid!"
        )


def validate(field, parameters: SolverParameters):
    """
    Check that `field` can be diffused with `parameters`.

    Raises:
        ValidationError: if the field is not a vector field matching its
          dimensionality, `μ` is not in (0, 0.2], the iteration count is
          explicitly zero or otherwise not positive, or the precision is
          unknown.
    """
    check_field(field)
    check_mu(parameters.μ)
    check_iterations(parameters.iterations)
    check_precision(parameters.precision)


def validate_output(field, output):
    """Raise ValidationError unless `output` can receive the diffused `field`."""
    if output is field or output.data is field.data:
        raise ValidationError("The output of Gradient Vector Flow must not alias its input!")
    if output.shape != field.shape or output.components != field.components:
        raise ValidationError(
            f"Output field of shape {output.shape} with {output.components} components does not match input of shape "
            f"{field.shape} with {field.components} components!"
        )


def resolve_iterations(iterations, shape):
    """
    Resolve the number of steps: `iterations` if it is set, otherwise the
    largest extent of `shape`, so that information can cross the whole grid.
    """
    if iterations is None:
        return max(shape)
    return int(iterations)
