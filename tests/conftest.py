"""Shared fixtures: a CPU Taichi runtime and device capability descriptions."""

import pytest
import taichi as ti

from eulergvf.formats import (
    DeviceCapabilities,
    RGBA_FLOAT32,
    RG_FLOAT32,
)


@pytest.fixture(scope="session", autouse=True)
def taichi_runtime():
    ti.init(arch=ti.cpu, default_fp=ti.f32, offline_cache=False)
    yield


@pytest.fixture
def device():
    """A device that supports every storage format and volume writes."""
    return DeviceCapabilities(name="test-device")


@pytest.fixture
def float_only_device():
    """A device without 16 bit storage."""
    return DeviceCapabilities(
        formats=[(RG_FLOAT32, 2), (RGBA_FLOAT32, 2), (RGBA_FLOAT32, 3)],
        name="float-only",
    )


@pytest.fixture
def no_volume_write_device():
    """A device that cannot write arbitrary cells of a volume."""
    return DeviceCapabilities(direct_volume_write=False, name="no-volume-write")
