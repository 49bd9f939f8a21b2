"""
    utils
    =====

    Provides miscellaneous computational utilities that can be used on R^2 and
    R^3:
      1. safe indexing into ndarrays, which implements clamp-to-edge sampling.
      2. packing and unpacking of vectors into the storage formats, and the
      format conversion kernel built on top of them.
      3. preparation of an initial edge vector field from an image.
"""

import numpy as np
import taichi as ti
import diplib as dip

# Largest magnitude of a 16 bit signed normalised integer.
SNORM_SCALE = 32767.

# Safe Indexing

@ti.func
def sanitize_index(
    index,
    input: ti.template()
):
    """
    @taichi.func

    Make sure the `index` is inside the shape of `input`, so that reading
    outside the grid returns the value at the nearest edge.

    Args:
        `index`: ti.types.vector(n=dim, dtype=ti.i32) index.
        `input`: ti.ndarray in which we want to index.

    Returns:
        ti.types.vector(n=dim, dtype=ti.i32) of index that is within `input`.
    """
    shape = ti.Vector.zero(ti.i32, ti.static(len(input.shape)))
    for d in ti.static(range(len(input.shape))):
        shape[d] = input.shape[d]
    return ti.math.clamp(index, 0, shape - 1)

# Packing

@ti.func
def unpack_scalar(
    value,
    snorm: ti.template()
) -> ti.f32:
    """
    @taichi.func

    Unpack a single stored channel `value` to a 32 bit float. Signed
    normalised values are mapped to [-1, 1].
    """
    result = ti.cast(value, ti.f32)
    if ti.static(snorm):
        result = ti.max(result / SNORM_SCALE, -1.)
    return result


@ti.func
def pack_snorm(
    value: ti.f32
) -> ti.i16:
    """
    @taichi.func

    Pack a 32 bit float `value` into a signed normalised 16 bit integer,
    clamping it to [-1, 1] first.
    """
    return ti.cast(ti.round(ti.math.clamp(value, -1., 1.) * SNORM_SCALE), ti.i16)


@ti.func
def load_vector(
    u: ti.template(),
    I,
    n: ti.template(),
    snorm: ti.template()
):
    """
    @taichi.func

    Read the first `n` channels of `u` at `I` as a 32 bit float vector.

    Args:
        `u`: ti.Vector.ndarray from which we read.
        `I`: index into `u`.
        `n`: number of components to read, at most the number of channels of
          `u`.
        `snorm`: whether `u` is stored as signed normalised 16 bit integers.

    Returns:
        ti.types.vector(n=`n`, dtype=ti.f32).
    """
    v = ti.Vector.zero(ti.f32, n)
    for c in ti.static(range(n)):
        v[c] = unpack_scalar(u[I][c], snorm)
    return v


@ti.func
def store_vector(
    u: ti.template(),
    I,
    v,
    n: ti.template(),
    channels: ti.template(),
    snorm: ti.template()
):
    """
    @taichi.func

    Write the `n` components of `v` into the `channels` channels of `u` at
    `I`. Channels beyond `n` are set to zero.

    Args:
      Static:
        `I`: index into `u`.
        `v`: ti.types.vector(n=`n`, dtype=ti.f32) to be stored.
        `n`: number of components of `v`.
        `channels`: number of channels of `u`.
        `snorm`: whether `u` is stored as signed normalised 16 bit integers.
      Mutated:
        `u`: ti.Vector.ndarray which is updated in place.
    """
    if ti.static(snorm):
        w = ti.Vector.zero(ti.i16, channels)
        for c in ti.static(range(min(n, channels))):
            w[c] = pack_snorm(v[c])
        u[I] = w
    else:
        w = ti.Vector.zero(ti.f32, channels)
        for c in ti.static(range(min(n, channels))):
            w[c] = v[c]
        u[I] = w

# Conversion

def is_snorm(u):
    """Whether the ndarray `u` stores signed normalised 16 bit integers."""
    return u.dtype == ti.i16


@ti.kernel
def convert_vector_field(
    source: ti.types.ndarray(),
    target: ti.types.ndarray(),
    n: ti.template(),
    channels: ti.template(),
    source_snorm: ti.template(),
    target_snorm: ti.template()
):
    """
    @taichi.kernel

    Requantise the vector field `source` into the storage format of `target`,
    elementwise. Arithmetic happens in 32 bit floats.

    Args:
      Static:
        `source`: ti.Vector.ndarray with at least `n` channels.
        `n`: number of vector components that are carried over.
        `channels`: number of channels of `target`.
        `source_snorm`: whether `source` stores signed normalised integers.
        `target_snorm`: whether `target` stores signed normalised integers.
      Mutated:
        `target`: ti.Vector.ndarray of the same shape as `source`, which is
          updated in place.
    """
    for I in ti.grouped(target):
        v = load_vector(source, I, n, source_snorm)
        store_vector(target, I, v, n, channels, target_snorm)


def transfer(source, target, n):
    """
    Move the first `n` components of the vector ndarray `source` into
    `target`, using a direct copy if both hold as many channels of the same
    data type and the conversion kernel otherwise.

    Returns:
        bool, whether a direct copy was used.
    """
    if source.n == target.n and source.dtype == target.dtype:
        target.copy_from(source)
        return True
    convert_vector_field(source, target, n, target.n, is_snorm(source), is_snorm(target))
    return False

# Image Preprocessing

def image_rescale(image_array, new_max=1.):
    """
    Affinely rescale values in numpy array `image_array` to be between 0. and
    `new_max`. A constant array is mapped to zeros.
    """
    image_max = image_array.max()
    image_min = image_array.min()
    if image_max == image_min:
        return np.zeros_like(image_array)
    return new_max * (image_array - image_min) / (image_max - image_min)


def edge_vector_field(image_array, σs=1.):
    """
    Compute an initial vector field for Gradient Vector Flow from
    `image_array`: the gradient of the edge map of the image, scaled so that
    the longest vector has length 1.

    Args:
        `image_array`: np.ndarray of a grayscale image or volume.
      Optional:
        `σs`: standard deviation(s) of the Gaussian used to smooth the image
          before computing the edge map, taking values greater than 0.
          Defaults to 1.

    Returns:
        np.ndarray(shape=(*image_array.shape, image_array.ndim),
          dtype=np.float32) of the edge vector field, with components ordered
          like the axes of `image_array`.
    """
    image_array = np.asarray(image_array, dtype=np.float32)
    if image_array.ndim not in (2, 3):
        raise ValueError(f"Expected a 2D or 3D image, got an array with {image_array.ndim} dimensions!")
    smoothed = np.array(dip.Gauss(image_array, σs), dtype=np.float32)
    edge_map = image_rescale(np.sqrt(sum(g**2 for g in np.gradient(smoothed))))
    vectors = np.stack(np.gradient(edge_map), axis=-1)
    magnitude_max = np.sqrt((vectors**2).sum(axis=-1)).max()
    if magnitude_max > 0:
        vectors = vectors / magnitude_max
    return vectors.astype(np.float32)
