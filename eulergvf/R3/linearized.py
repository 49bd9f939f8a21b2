"""
    linearized
    ==========

    Diffuse an edge vector field on R^3 by Gradient Vector Flow on devices
    that cannot write arbitrary cells of a volume. Instead of addressable
    volumes, the working buffers are flat buffers holding the 3 raw components
    of every cell, in the negotiated element type, with the cell at (i, j, k)
    stored from position 3 * (i + Nx * (j + Ny * k)).

    The computation consists of three kernel stages:
      1. `gvf_init`: flatten the input volume into the first buffer.
      2. `gvf_step`: a single explicit Euler step from one flat buffer into the
      other, with the same update as `eulergvf.R3.gvf`.
      3. `gvf_finish`: repack the flat result into 4 channel 32 bit float
      cells, which `gvf_store` then copies into the output volume.
"""

import logging
import taichi as ti
from tqdm import tqdm
from eulergvf.buffers import (
    working_buffers,
    allocate
)
from eulergvf.driver import SolverRun
from eulergvf.utils import (
    sanitize_index,
    unpack_scalar,
    pack_snorm,
    load_vector,
    store_vector
)

logger = logging.getLogger(__name__)


class LinearizedVolumetricSolver():
    """Solve Gradient Vector Flow on R^3 using flat working buffers."""

    name = "volumetric-linearized"
    dimensions = 3

    def run(self, field, output, iterations, μ, storage_format, progress=False, step_callback=None):
        """
        Diffuse `field` for `iterations` steps and write the result to
        `output`. See `eulergvf.driver.SurfaceSolver.run` for the arguments.

        Returns:
            SolverRun describing the call.
        """
        logger.debug("Running %s GVF for %d steps in %s.", self.name, iterations, storage_format.element_type)
        cell_count = field.width * field.height * field.depth
        f_snorm = field.element_type.is_snorm
        v_snorm = storage_format.element_type.is_snorm
        with working_buffers((3 * cell_count,), storage_format.element_type.dtype) as double_buffer:
            gvf_init(field.data, double_buffer.seed, f_snorm, v_snorm)
            for _ in tqdm(range(iterations), disable=not progress):
                gvf_step(field.data, double_buffer.read, double_buffer.write, μ, f_snorm, v_snorm)
                double_buffer.swap()
                if step_callback is not None:
                    step_callback(double_buffer.steps, double_buffer)
            result = allocate((cell_count,), ti.f32, n=4)
            gvf_finish(double_buffer.result, result, v_snorm)
            gvf_store(result, output.data, output.components, output.element_type.is_snorm)
            ti.sync()
            return SolverRun(
                strategy=self.name,
                storage_format=storage_format,
                iterations=iterations,
                steps=double_buffer.steps,
                result_index=double_buffer.result_index,
                seeded_by_copy=False,
                materialised_by_copy=False
            )

# Flat Indexing

@ti.func
def linear_index(
    I,
    volume: ti.template()
) -> ti.i32:
    """
    @taichi.func

    Compute the position of cell `I` of `volume` in a flat buffer.
    """
    return I[0] + volume.shape[0] * (I[1] + volume.shape[1] * I[2])


@ti.func
def load_flat_vector(
    u: ti.template(),
    k,
    snorm: ti.template()
):
    """
    @taichi.func

    Read the 3 components of cell `k` from the flat buffer `u` as a 32 bit
    float vector.
    """
    return ti.Vector([
        unpack_scalar(u[3 * k], snorm),
        unpack_scalar(u[3 * k + 1], snorm),
        unpack_scalar(u[3 * k + 2], snorm)
    ], dt=ti.f32)


@ti.func
def store_flat_vector(
    u: ti.template(),
    k,
    v,
    snorm: ti.template()
):
    """
    @taichi.func

    Write the 3 components of `v` to cell `k` of the flat buffer `u`.
    """
    for c in ti.static(range(3)):
        if ti.static(snorm):
            u[3 * k + c] = pack_snorm(v[c])
        else:
            u[3 * k + c] = v[c]

# Stages

@ti.kernel
def gvf_init(
    f: ti.types.ndarray(),
    v: ti.types.ndarray(),
    f_snorm: ti.template(),
    v_snorm: ti.template()
):
    """
    @taichi.kernel

    Flatten the volume `f` into the flat buffer `v`.

    Args:
      Static:
        `f`: ti.Vector.ndarray(n=3, shape=[Nx, Ny, Nz]) of the initial edge
          vector field.
        `f_snorm`: whether `f` is stored as signed normalised integers.
        `v_snorm`: whether `v` is stored as signed normalised integers.
      Mutated:
        `v`: ti.ndarray(shape=[3 * Nx * Ny * Nz]), which is updated in place.
    """
    for I in ti.grouped(f):
        store_flat_vector(v, linear_index(I, f), load_vector(f, I, 3, f_snorm), v_snorm)


@ti.kernel
def gvf_step(
    f: ti.types.ndarray(),
    v: ti.types.ndarray(),
    v_next: ti.types.ndarray(),
    μ: ti.f32,
    f_snorm: ti.template(),
    v_snorm: ti.template()
):
    """
    @taichi.kernel

    Update the flat vector field `v` by a single explicit Euler step of
    Gradient Vector Flow, writing the result to `v_next`.

    Args:
      Static:
        `f`: ti.Vector.ndarray(n=3, shape=[Nx, Ny, Nz]) of the initial edge
          vector field, which also defines the layout of the flat buffers.
        `v`: ti.ndarray(shape=[3 * Nx * Ny * Nz]) of the current vector field.
        `μ`: regularisation weight, taking values in (0, 0.2].
        `f_snorm`: whether `f` is stored as signed normalised integers.
        `v_snorm`: whether `v` and `v_next` are stored as signed normalised
          integers.
      Mutated:
        `v_next`: ti.ndarray of the same shape and type as `v`, which is
          updated in place.
    """
    I_dx = ti.Vector([1, 0, 0], dt=ti.i32)
    I_dy = ti.Vector([0, 1, 0], dt=ti.i32)
    I_dz = ti.Vector([0, 0, 1], dt=ti.i32)
    for I in ti.grouped(f):
        k = linear_index(I, f)
        f_I = load_vector(f, I, 3, f_snorm)
        v_I = load_flat_vector(v, k, v_snorm)
        laplacian = (
            (load_flat_vector(v, linear_index(sanitize_index(I + I_dx, f), f), v_snorm) - v_I) +
            (load_flat_vector(v, linear_index(sanitize_index(I - I_dx, f), f), v_snorm) - v_I) +
            (load_flat_vector(v, linear_index(sanitize_index(I + I_dy, f), f), v_snorm) - v_I) +
            (load_flat_vector(v, linear_index(sanitize_index(I - I_dy, f), f), v_snorm) - v_I) +
            (load_flat_vector(v, linear_index(sanitize_index(I + I_dz, f), f), v_snorm) - v_I) +
            (load_flat_vector(v, linear_index(sanitize_index(I - I_dz, f), f), v_snorm) - v_I)
        )
        v_new = v_I + μ * laplacian - (v_I - f_I) * f_I.dot(f_I)
        store_flat_vector(v_next, k, v_new, v_snorm)


@ti.kernel
def gvf_finish(
    v: ti.types.ndarray(),
    result: ti.types.ndarray(),
    v_snorm: ti.template()
):
    """
    @taichi.kernel

    Repack the flat vector field `v` into 4 channel 32 bit float cells.

    Args:
      Static:
        `v`: ti.ndarray(shape=[3 * N]) of the diffused vector field.
        `v_snorm`: whether `v` is stored as signed normalised integers.
      Mutated:
        `result`: ti.Vector.ndarray(n=4, dtype=ti.f32, shape=[N]), which is
          updated in place.
    """
    for k in range(result.shape[0]):
        v_k = load_flat_vector(v, k, v_snorm)
        result[k] = ti.Vector([v_k[0], v_k[1], v_k[2], 0.], dt=ti.f32)


@ti.kernel
def gvf_store(
    result: ti.types.ndarray(),
    output: ti.types.ndarray(),
    output_channels: ti.template(),
    output_snorm: ti.template()
):
    """
    @taichi.kernel

    Copy the repacked cells `result` into the volume `output`.

    Args:
      Static:
        `result`: ti.Vector.ndarray(n=4, dtype=ti.f32, shape=[N]).
        `output_channels`: number of channels of `output`.
        `output_snorm`: whether `output` is stored as signed normalised
          integers.
      Mutated:
        `output`: ti.Vector.ndarray(n=3, shape=[Nx, Ny, Nz]), which is
          updated in place.
    """
    for I in ti.grouped(output):
        r = result[linear_index(I, output)]
        v_I = ti.Vector([r[0], r[1], r[2]], dt=ti.f32)
        store_vector(output, I, v_I, 3, output_channels, output_snorm)
