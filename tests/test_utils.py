"""
Tests for eulergvf.utils: format conversion and edge vector fields.
"""

import numpy as np
import pytest
import taichi as ti

from eulergvf.buffers import allocate
from eulergvf.field import VectorField
from eulergvf.formats import ElementType
from eulergvf.utils import (
    convert_vector_field,
    edge_vector_field,
    image_rescale,
    is_snorm,
    transfer,
)


@pytest.fixture
def vectors():
    return np.random.default_rng(2).uniform(-1., 1., size=(5, 6, 2)).astype(np.float32)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

class TestConvert:
    def test_float_to_four_channel_float_pads_zeros(self, vectors):
        field = VectorField.from_numpy(vectors)
        target = allocate(field.shape, ti.f32, n=4)
        convert_vector_field(field.data, target, 2, 4, False, False)
        result = target.to_numpy()
        np.testing.assert_array_equal(result[..., :2], vectors)
        np.testing.assert_array_equal(result[..., 2:], 0.)

    def test_snorm_requantisation(self, vectors):
        field = VectorField.from_numpy(vectors)
        stored = allocate(field.shape, ti.i16, n=2)
        convert_vector_field(field.data, stored, 2, 2, False, True)
        output = VectorField.like(field)
        convert_vector_field(stored, output.data, 2, 2, True, False)
        np.testing.assert_allclose(output.to_numpy(), vectors, rtol=0, atol=2.**-15)

    def test_snorm_packing_clamps(self):
        field = VectorField.from_numpy(np.full((3, 3, 2), 1.5, dtype=np.float32))
        output = VectorField.like(field)
        stored = allocate(field.shape, ti.i16, n=4)
        convert_vector_field(field.data, stored, 2, 4, False, True)
        convert_vector_field(stored, output.data, 2, 2, True, False)
        np.testing.assert_allclose(output.to_numpy(), 1.)

    def test_is_snorm(self):
        assert is_snorm(allocate((2, 2), ti.i16, n=2))
        assert not is_snorm(allocate((2, 2), ti.f32, n=2))


class TestTransfer:
    def test_same_format_is_direct_copy(self, vectors):
        field = VectorField.from_numpy(vectors)
        target = allocate(field.shape, ti.f32, n=2)
        assert transfer(field.data, target, 2)
        np.testing.assert_array_equal(target.to_numpy(), vectors)

    def test_different_element_type_is_converted(self, vectors):
        field = VectorField.from_numpy(vectors)
        target = allocate(field.shape, ti.i16, n=2)
        assert not transfer(field.data, target, 2)
        decoded = np.maximum(target.to_numpy() / 32767., -1.)
        np.testing.assert_allclose(decoded, vectors, rtol=0, atol=2.**-15)

    def test_snorm_field_copies_into_snorm_storage(self, vectors):
        field = VectorField.from_numpy(vectors, element_type=ElementType.SNORM_INT16)
        target = allocate(field.shape, ti.i16, n=2)
        assert transfer(field.data, target, 2)
        np.testing.assert_array_equal(target.to_numpy(), field.data.to_numpy())

    def test_three_components_are_converted_into_four_channels(self):
        array = np.random.default_rng(3).uniform(-1., 1., size=(3, 4, 2, 3)).astype(np.float32)
        field = VectorField.from_numpy(array)
        target = allocate(field.shape, ti.f32, n=4)
        assert not transfer(field.data, target, 3)
        result = target.to_numpy()
        np.testing.assert_array_equal(result[..., :3], array)
        np.testing.assert_array_equal(result[..., 3], 0.)


# ---------------------------------------------------------------------------
# Image preprocessing
# ---------------------------------------------------------------------------

class TestImageRescale:
    def test_range(self):
        result = image_rescale(np.array([2., 4., 6.]))
        np.testing.assert_allclose(result, [0., 0.5, 1.])

    def test_constant_image(self):
        assert not image_rescale(np.full((3, 3), 7.)).any()


class TestEdgeVectorField:
    def test_square_2d(self):
        image = np.zeros((32, 32), dtype=np.float32)
        image[10:22, 10:22] = 1.
        f = edge_vector_field(image, σs=1.5)
        assert f.shape == (32, 32, 2)
        assert f.dtype == np.float32
        magnitude = np.sqrt((f**2).sum(axis=-1))
        assert magnitude.max() == pytest.approx(1., abs=1e-6)
        # Far away from the square the image is flat.
        assert magnitude[0, 0] < 1e-3

    def test_volume(self):
        image = np.zeros((12, 12, 12), dtype=np.float32)
        image[4:8, 4:8, 4:8] = 1.
        assert edge_vector_field(image).shape == (12, 12, 12, 3)

    def test_constant_image_gives_zeros(self):
        assert not edge_vector_field(np.ones((8, 8))).any()

    def test_rejects_1d(self):
        with pytest.raises(ValueError, match="2D or 3D"):
            edge_vector_field(np.ones(8))
