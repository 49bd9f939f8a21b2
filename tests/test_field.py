"""
Tests for eulergvf.field: VectorField construction and numpy conversion.
"""

import numpy as np
import pytest

from eulergvf.field import VectorField
from eulergvf.formats import (
    ElementType,
    RG_FLOAT32,
    RG_SNORM16,
)


class TestConstruction:
    def test_2d_extents(self):
        field = VectorField((64, 48), 2)
        assert field.width == 64
        assert field.height == 48
        assert field.depth is None
        assert field.dimensions == 2
        assert field.components == 2

    def test_3d_extents(self):
        field = VectorField((4, 5, 6), 3)
        assert (field.width, field.height, field.depth) == (4, 5, 6)
        assert field.dimensions == 3

    @pytest.mark.parametrize("shape", [(5,), (2, 2, 2, 2), (0, 4)])
    def test_bad_shape(self, shape):
        with pytest.raises(ValueError, match="grid"):
            VectorField(shape, 2)

    def test_bad_components(self):
        with pytest.raises(ValueError, match="components"):
            VectorField((4, 4), 5)

    def test_like(self):
        field = VectorField((4, 5), 2, element_type=ElementType.SNORM_INT16)
        other = VectorField.like(field)
        assert other.shape == field.shape
        assert other.components == field.components
        assert other.element_type is ElementType.SNORM_INT16
        assert other.data is not field.data


class TestNativeFormat:
    def test_two_components(self):
        assert VectorField((3, 3), 2).native_format == RG_FLOAT32
        assert VectorField((3, 3), 2, element_type=ElementType.SNORM_INT16).native_format == RG_SNORM16

    def test_three_components_has_no_layout(self):
        assert VectorField((3, 3, 3), 3).native_format is None


class TestNumpy:
    def test_float_roundtrip(self):
        array = np.random.default_rng(0).normal(size=(7, 5, 2)).astype(np.float32)
        field = VectorField.from_numpy(array)
        assert field.shape == (7, 5)
        np.testing.assert_array_equal(field.to_numpy(), array)

    def test_snorm_roundtrip_within_half_a_step(self):
        array = np.random.default_rng(1).uniform(-1., 1., size=(6, 4, 3, 3)).astype(np.float32)
        field = VectorField.from_numpy(array, element_type=ElementType.SNORM_INT16)
        np.testing.assert_allclose(field.to_numpy(), array, rtol=0, atol=2.**-15)

    def test_snorm_clamps(self):
        array = np.full((2, 2, 2), 3., dtype=np.float32)
        array[..., 1] = -3.
        field = VectorField.from_numpy(array, element_type=ElementType.SNORM_INT16)
        result = field.to_numpy()
        np.testing.assert_allclose(result[..., 0], 1.)
        np.testing.assert_allclose(result[..., 1], -1.)

    def test_wrong_array_rank(self):
        with pytest.raises(ValueError, match="components"):
            VectorField.from_numpy(np.zeros((4, 4)))

    def test_fill_with_wrong_shape(self):
        field = VectorField((4, 4), 2)
        with pytest.raises(ValueError, match="shape"):
            field.from_float_numpy(np.zeros((4, 4, 3)))
