"""
    formats
    =======

    Negotiate the storage format in which the Gradient Vector Flow is held on
    the accelerator while it is being diffused. In particular, provides the
    `DeviceCapabilities` class, which answers which storage formats a device
    can read and write, and whether it can write directly into volumes.

    The primary method is:
      1. `negotiate_format`: walk the fallback chain for the requested
      precision and dimensionality, and return the first storage format the
      device supports.
"""

import enum
import logging
from dataclasses import dataclass
import taichi as ti

logger = logging.getLogger(__name__)


class UnsupportedFormatError(RuntimeError):
    """No storage format in the fallback chain is supported by the device."""


class ChannelLayout(enum.Enum):
    """Number of channels stored per cell."""
    RG = 2
    RGBA = 4

    @property
    def channels(self):
        return self.value


class ElementType(enum.Enum):
    """Precision in which each channel is stored."""
    SNORM_INT16 = "snorm_int16"
    FLOAT32 = "float32"

    @property
    def dtype(self):
        """Taichi data type backing this element type."""
        return ti.i16 if self is ElementType.SNORM_INT16 else ti.f32

    @property
    def is_snorm(self):
        return self is ElementType.SNORM_INT16


class Precision(enum.Enum):
    """Storage precision requested by the caller."""
    BITS_16 = 16
    BITS_32 = 32


@dataclass(frozen=True)
class StorageFormat:
    """
    Resolved (channel layout, element type) pair.

    Attributes:
        `layout`: ChannelLayout of the stored cells.
        `element_type`: ElementType of every channel.
    """
    layout: ChannelLayout
    element_type: ElementType

    @property
    def channels(self):
        return self.layout.channels

    def __str__(self):
        return f"{self.layout.name}/{self.element_type.name}"


RG_SNORM16 = StorageFormat(ChannelLayout.RG, ElementType.SNORM_INT16)
RGBA_SNORM16 = StorageFormat(ChannelLayout.RGBA, ElementType.SNORM_INT16)
RG_FLOAT32 = StorageFormat(ChannelLayout.RG, ElementType.FLOAT32)
RGBA_FLOAT32 = StorageFormat(ChannelLayout.RGBA, ElementType.FLOAT32)

ALL_FORMATS = (RG_SNORM16, RGBA_SNORM16, RG_FLOAT32, RGBA_FLOAT32)

# Volumes only get 4 channel layouts.
FALLBACK_CHAINS = {
    (2, Precision.BITS_16): (RG_SNORM16, RGBA_SNORM16, RG_FLOAT32, RGBA_FLOAT32),
    (2, Precision.BITS_32): (RG_FLOAT32, RGBA_FLOAT32),
    (3, Precision.BITS_16): (RGBA_SNORM16, RGBA_FLOAT32),
    (3, Precision.BITS_32): (RGBA_FLOAT32,),
}

# Conservative assumptions about backends without 16 bit integer storage, or
# without writes into volumes; Taichi does not report either.
_NO_INT16_ARCHS = {"opengl", "gles", "dx11"}
_NO_VOLUME_WRITE_ARCHS = {"gles", "dx11"}


class DeviceCapabilities():
    """
    Describe what a compute device can do with storage formats.

    Attributes:
        `name`: identifier of the device, used for logging.
        `formats`: frozenset of (StorageFormat, dimensions) pairs that the
          device can read and write.
        `direct_volume_write`: whether kernels can write arbitrary cells of a
          volume.
    """

    def __init__(self, formats=None, direct_volume_write=True, name="device"):
        if formats is None:
            formats = [(storage_format, dimensions) for storage_format in ALL_FORMATS for dimensions in (2, 3)]
        self.formats = frozenset(formats)
        self.direct_volume_write = direct_volume_write
        self.name = name

    @classmethod
    def from_arch(cls, arch):
        """
        Derive the capabilities of a Taichi `arch`, e.g. `ti.cpu`.

        Taichi offers no query for these capabilities, so this is a
        conservative table rather than a measurement: 16 bit storage is
        assumed missing on the OpenGL, GLES and DX11 backends, and direct
        writes into volumes on GLES and DX11. Construct DeviceCapabilities
        directly to describe a device more precisely.
        """
        arch_name = getattr(arch, "name", str(arch)).lower()
        formats = [
            (storage_format, dimensions)
            for storage_format in ALL_FORMATS for dimensions in (2, 3)
            if not (storage_format.element_type.is_snorm and arch_name in _NO_INT16_ARCHS)
        ]
        return cls(formats=formats, direct_volume_write=arch_name not in _NO_VOLUME_WRITE_ARCHS, name=arch_name)

    @classmethod
    def from_runtime(cls):
        """Capabilities of the arch Taichi has been initialised with."""
        return cls.from_arch(ti.lang.impl.current_cfg().arch)

    def supports(self, storage_format: StorageFormat, dimensions: int) -> bool:
        return (storage_format, dimensions) in self.formats

    def supports_direct_volume_write(self) -> bool:
        return self.direct_volume_write

    def print(self):
        """Print attributes."""
        print(f"name => {self.name}")
        print(f"formats => {sorted((str(f), d) for f, d in self.formats)}")
        print(f"direct_volume_write => {self.direct_volume_write}")


def negotiate_format(device, precision, dimensions):
    """
    Choose the storage format for diffusing a `dimensions`-dimensional vector
    field on `device`.

    Args:
        `device`: DeviceCapabilities of the target device.
        `precision`: Precision preferred by the caller.
        `dimensions`: dimensionality of the grid, either 2 or 3.

    Returns:
        StorageFormat first in the fallback chain that `device` supports.

    Raises:
        UnsupportedFormatError: if no format in the chain is supported.
    """
    precision = Precision(precision)
    try:
        chain = FALLBACK_CHAINS[(dimensions, precision)]
    except KeyError:
        raise ValueError(f"No storage formats are defined for {dimensions}D grids!") from None
    for storage_format in chain:
        if device.supports(storage_format, dimensions):
            if precision is Precision.BITS_16 and not storage_format.element_type.is_snorm:
                logger.info("16 bit storage not supported on %s. Using %s for GVF instead.", device.name,
                            storage_format)
            else:
                logger.info("Using %s storage for GVF on %s.", storage_format, device.name)
            return storage_format
    raise UnsupportedFormatError(
        f"Device {device.name} supports none of {[str(f) for f in chain]} for {dimensions}D GVF storage!"
    )
