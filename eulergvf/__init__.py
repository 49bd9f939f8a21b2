"""
    EulerGVF
    ========

    The Python package *eulergvf* contains methods to compute the Gradient
    Vector Flow (GVF) of an edge vector field on R^2 and R^3, as introduced by
    Xu and Prince in "Snakes, Shapes, and Gradient Vector Flow" (1998), on an
    accelerator using Taichi.

    GVF diffuses the gradient of an edge map into homogeneous regions, while
    preserving the strong edge vectors, which widens the capture range of
    deformable models that are subsequently fitted to the image. The diffusion
    is computed with a fixed number of explicit Euler steps, on a pair of
    buffers stored in a precision that the device supports.

    Summary: compute the Gradient Vector Flow of 2D and 3D vector fields on
    CPUs and GPUs.
"""

# Access entire backend
import eulergvf.utils
import eulergvf.formats
import eulergvf.field
import eulergvf.buffers
import eulergvf.validation
import eulergvf.driver
import eulergvf.R2
import eulergvf.R3
import eulergvf.solver

# Most important functions are available at top level
from eulergvf.field import VectorField
from eulergvf.formats import (
    DeviceCapabilities,
    Precision,
    StorageFormat,
    UnsupportedFormatError
)
from eulergvf.validation import ValidationError
from eulergvf.solver import GradientVectorFlow
from eulergvf.utils import edge_vector_field

def gradient_vector_flow(vector_field, device, iterations=None, μ=0.05, precision=Precision.BITS_16,
                         progress=False):
    """
    Compute the Gradient Vector Flow of `vector_field` using explicit Euler
    steps.

    Args:
        `vector_field`: np.ndarray of the initial edge vector field, with shape
          [Nx, Ny, 2] or [Nx, Ny, Nz, 3].
        `device`: DeviceCapabilities of the device Taichi runs on, e.g.
          `DeviceCapabilities.from_runtime()`.
      Optional:
        `iterations`: number of steps, taking positive integral values.
          Defaults to `None`, in which case the largest extent of the grid is
          used.
        `μ`: regularisation weight, taking values in (0, 0.2]. Defaults to
          0.05.
        `precision`: Precision of the storage between steps. Defaults to 16
          bit.
        `progress`: whether to show a progress bar. Defaults to `False`.

    Returns:
        np.ndarray of the diffused vector field, with the shape of
          `vector_field`.
    """
    gvf = GradientVectorFlow(iterations=iterations, μ=μ, precision=precision, progress=progress)
    field = VectorField.from_numpy(vector_field)
    return gvf.compute(field, device).to_numpy()
