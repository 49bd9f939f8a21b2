"""
    gvf
    ===

    Diffuse an edge vector field on R^2 by Gradient Vector Flow[1], using
    explicit Euler steps of

        dv/dt = μ Δv - (v - f) |f|^2,

    where f is the initial edge vector field. The Laplacian is discretised
    with the 5 point stencil, sampling clamped to the edge of the grid.

    References:
      [1]: C. Xu and J. L. Prince. "Snakes, Shapes, and Gradient Vector Flow".
      In: IEEE Transactions on Image Processing 7.3 (1998), pp. 359--369.
      DOI:10.1109/83.661186.
"""

import taichi as ti
from eulergvf.driver import SurfaceSolver
from eulergvf.utils import (
    sanitize_index,
    load_vector,
    store_vector
)


class PlanarSolver(SurfaceSolver):
    """Solve Gradient Vector Flow directly on addressable 2D ndarrays."""

    name = "planar"
    dimensions = 2

    def step(self, field, double_buffer, μ, storage_format):
        gvf_step(field.data, double_buffer.read, double_buffer.write, μ, storage_format.channels,
                 field.element_type.is_snorm, storage_format.element_type.is_snorm)


@ti.kernel
def gvf_step(
    f: ti.types.ndarray(),
    v: ti.types.ndarray(),
    v_next: ti.types.ndarray(),
    μ: ti.f32,
    channels: ti.template(),
    f_snorm: ti.template(),
    v_snorm: ti.template()
):
    """
    @taichi.kernel

    Update the vector field `v` by a single explicit Euler step of Gradient
    Vector Flow, writing the result to `v_next`.

    Args:
      Static:
        `f`: ti.Vector.ndarray(n=2, shape=[Nx, Ny]) of the initial edge vector
          field.
        `v`: ti.Vector.ndarray(n=[2 or 4], shape=[Nx, Ny]) of the current
          vector field.
        `μ`: regularisation weight, taking values in (0, 0.2].
        `channels`: number of channels of `v` and `v_next`.
        `f_snorm`: whether `f` is stored as signed normalised integers.
        `v_snorm`: whether `v` and `v_next` are stored as signed normalised
          integers.
      Mutated:
        `v_next`: ti.Vector.ndarray of the same shape and format as `v`, which
          is updated in place.
    """
    I_dx = ti.Vector([1, 0], dt=ti.i32)
    I_dy = ti.Vector([0, 1], dt=ti.i32)
    for I in ti.grouped(v_next):
        f_I = load_vector(f, I, 2, f_snorm)
        v_I = load_vector(v, I, 2, v_snorm)
        laplacian = (
            (load_vector(v, sanitize_index(I + I_dx, v), 2, v_snorm) - v_I) +
            (load_vector(v, sanitize_index(I - I_dx, v), 2, v_snorm) - v_I) +
            (load_vector(v, sanitize_index(I + I_dy, v), 2, v_snorm) - v_I) +
            (load_vector(v, sanitize_index(I - I_dy, v), 2, v_snorm) - v_I)
        )
        v_new = v_I + μ * laplacian - (v_I - f_I) * f_I.dot(f_I)
        store_vector(v_next, I, v_new, 2, channels, v_snorm)
