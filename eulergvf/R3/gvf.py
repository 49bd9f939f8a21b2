"""
    gvf
    ===

    Diffuse an edge vector field on R^3 by Gradient Vector Flow, using
    explicit Euler steps of

        dv/dt = μ Δv - (v - f) |f|^2,

    where f is the initial edge vector field. The Laplacian is discretised
    with the 7 point stencil, sampling clamped to the edge of the grid. The
    working buffers are addressable 3D ndarrays, which requires that the device
    can write arbitrary cells of a volume; see `eulergvf.R3.linearized` for the
    alternative.
"""

import taichi as ti
from eulergvf.driver import SurfaceSolver
from eulergvf.utils import (
    sanitize_index,
    load_vector,
    store_vector
)


class VolumetricSolver(SurfaceSolver):
    """Solve Gradient Vector Flow directly on addressable 3D ndarrays."""

    name = "volumetric"
    dimensions = 3

    def step(self, field, double_buffer, μ, storage_format):
        gvf_step(field.data, double_buffer.read, double_buffer.write, μ, storage_format.channels,
                 field.element_type.is_snorm, storage_format.element_type.is_snorm)


@ti.func
def laplacian(
    v: ti.template(),
    I,
    v_I,
    v_snorm: ti.template()
):
    """
    @taichi.func

    Compute the 7 point Laplacian of the first 3 channels of `v` at `I`,
    where `v_I` is the value at `I`.
    """
    I_dx = ti.Vector([1, 0, 0], dt=ti.i32)
    I_dy = ti.Vector([0, 1, 0], dt=ti.i32)
    I_dz = ti.Vector([0, 0, 1], dt=ti.i32)
    return (
        (load_vector(v, sanitize_index(I + I_dx, v), 3, v_snorm) - v_I) +
        (load_vector(v, sanitize_index(I - I_dx, v), 3, v_snorm) - v_I) +
        (load_vector(v, sanitize_index(I + I_dy, v), 3, v_snorm) - v_I) +
        (load_vector(v, sanitize_index(I - I_dy, v), 3, v_snorm) - v_I) +
        (load_vector(v, sanitize_index(I + I_dz, v), 3, v_snorm) - v_I) +
        (load_vector(v, sanitize_index(I - I_dz, v), 3, v_snorm) - v_I)
    )


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
        `f`: ti.Vector.ndarray(n=3, shape=[Nx, Ny, Nz]) of the initial edge
          vector field.
        `v`: ti.Vector.ndarray(n=4, shape=[Nx, Ny, Nz]) of the current vector
          field; the fourth channel is unused.
        `μ`: regularisation weight, taking values in (0, 0.2].
        `channels`: number of channels of `v` and `v_next`.
        `f_snorm`: whether `f` is stored as signed normalised integers.
        `v_snorm`: whether `v` and `v_next` are stored as signed normalised
          integers.
      Mutated:
        `v_next`: ti.Vector.ndarray of the same shape and format as `v`, which
          is updated in place.
    """
    for I in ti.grouped(v_next):
        f_I = load_vector(f, I, 3, f_snorm)
        v_I = load_vector(v, I, 3, v_snorm)
        v_new = v_I + μ * laplacian(v, I, v_I, v_snorm) - (v_I - f_I) * f_I.dot(f_I)
        store_vector(v_next, I, v_new, 3, channels, v_snorm)
