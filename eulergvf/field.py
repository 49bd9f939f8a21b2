"""
    field
    =====

    Provides the `VectorField` class, a vector field that lives on the
    accelerator as a Taichi ndarray, together with its conversion from and to
    numpy arrays.

    The grid is indexed as [Nx, Ny] or [Nx, Ny, Nz], so that `width` is the
    length of the first axis, `height` of the second, and `depth` of the third.
"""

import numpy as np
import taichi as ti
from eulergvf.formats import (
    ChannelLayout,
    ElementType,
    StorageFormat
)
from eulergvf.utils import SNORM_SCALE


class VectorField():
    """
    Vector field on a 2D or 3D grid, stored on the accelerator.

    Attributes:
        `data`: ti.Vector.ndarray(n=`components`, dtype=[ti.i16 or ti.f32],
          shape=`shape`) holding the vectors.
        `shape`: Tuple[int] of grid extents, [Nx, Ny] or [Nx, Ny, Nz].
        `components`: number of components of each vector.
        `element_type`: ElementType in which the components are stored.
    """

    def __init__(self, shape, components, element_type=ElementType.FLOAT32):
        shape = tuple(int(s) for s in shape)
        if len(shape) not in (2, 3) or min(shape) < 1:
            raise ValueError(f"A vector field must live on a non-empty 2D or 3D grid, got shape {shape}!")
        if not 1 <= components <= 4:
            raise ValueError(f"A vector field must have between 1 and 4 components, got {components}!")
        self.shape = shape
        self.components = int(components)
        self.element_type = ElementType(element_type)
        self.data = ti.Vector.ndarray(self.components, self.element_type.dtype, self.shape)

    @classmethod
    def from_numpy(cls, array, element_type=ElementType.FLOAT32):
        """
        Create a vector field from the np.ndarray `array` of shape
        [*shape, components]. Values are quantised if `element_type` is signed
        normalised.
        """
        array = np.asarray(array, dtype=np.float32)
        if array.ndim not in (3, 4):
            raise ValueError(f"Expected an array of shape [*shape, components], got shape {array.shape}!")
        field = cls(array.shape[:-1], array.shape[-1], element_type=element_type)
        field.from_float_numpy(array)
        return field

    @classmethod
    def like(cls, other):
        """Create an empty vector field with the shape and format of `other`."""
        return cls(other.shape, other.components, element_type=other.element_type)

    @property
    def dimensions(self):
        return len(self.shape)

    @property
    def width(self):
        return self.shape[0]

    @property
    def height(self):
        return self.shape[1]

    @property
    def depth(self):
        return self.shape[2] if self.dimensions == 3 else None

    @property
    def native_format(self):
        """
        StorageFormat equivalent to how this field is held, or `None` if its
        number of components has no matching channel layout.
        """
        try:
            layout = ChannelLayout(self.components)
        except ValueError:
            return None
        return StorageFormat(layout, self.element_type)

    def from_float_numpy(self, array):
        """Fill the field with the float values in `array`."""
        array = np.asarray(array, dtype=np.float32)
        if array.shape != (*self.shape, self.components):
            raise ValueError(f"Expected an array of shape {(*self.shape, self.components)}, got {array.shape}!")
        if self.element_type.is_snorm:
            array = np.round(np.clip(array, -1., 1.) * SNORM_SCALE).astype(np.int16)
        self.data.from_numpy(array)

    def to_numpy(self):
        """
        Return np.ndarray(shape=[*shape, components], dtype=np.float32) of the
        decoded vectors.
        """
        array = self.data.to_numpy()
        if self.element_type.is_snorm:
            return np.maximum(array.astype(np.float32) / SNORM_SCALE, -1.)
        return array.astype(np.float32)

    def print(self):
        """Print attributes."""
        print(f"shape => {self.shape}")
        print(f"components => {self.components}")
        print(f"element_type => {self.element_type}")
