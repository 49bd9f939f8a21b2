"""
Tests for eulergvf.buffers: DoubleBuffer parity and scoped working buffers.
"""

import pytest
import taichi as ti

from eulergvf.buffers import (
    DoubleBuffer,
    allocate,
    working_buffers,
)


# ---------------------------------------------------------------------------
# DoubleBuffer
# ---------------------------------------------------------------------------

class TestDoubleBuffer:
    def test_initial_state(self):
        double_buffer = DoubleBuffer("a", "b")
        assert double_buffer.read == "a"
        assert double_buffer.write == "b"
        assert double_buffer.seed == "a"
        assert double_buffer.steps == 0

    def test_zero_steps_result_is_seed(self):
        double_buffer = DoubleBuffer("a", "b")
        assert double_buffer.result_index == 0
        assert double_buffer.result == "a"

    def test_swap_alternates(self):
        double_buffer = DoubleBuffer("a", "b")
        double_buffer.swap()
        assert double_buffer.read == "b"
        assert double_buffer.write == "a"
        double_buffer.swap()
        assert double_buffer.read == "a"
        assert double_buffer.write == "b"

    @pytest.mark.parametrize("steps", [1, 2, 3, 10, 11])
    def test_parity(self, steps):
        double_buffer = DoubleBuffer("a", "b")
        for _ in range(steps):
            double_buffer.swap()
        assert double_buffer.steps == steps
        assert double_buffer.result_index == steps % 2
        assert double_buffer.result == ("b" if steps % 2 else "a")

    def test_never_reads_what_it_writes(self):
        double_buffer = DoubleBuffer("a", "b")
        for _ in range(7):
            assert double_buffer.read_index != double_buffer.write_index
            assert double_buffer.read is not double_buffer.write
            double_buffer.swap()

    def test_result_is_last_written(self):
        double_buffer = DoubleBuffer("a", "b")
        for _ in range(5):
            written = double_buffer.write
            double_buffer.swap()
            assert double_buffer.result == written

    def test_rejects_aliased_buffers(self):
        buffer = object()
        with pytest.raises(ValueError, match="distinct"):
            DoubleBuffer(buffer, buffer)

    def test_release_keeps_counters(self):
        double_buffer = DoubleBuffer("a", "b")
        double_buffer.swap()
        double_buffer.release()
        assert double_buffer.buffers == []
        assert double_buffer.steps == 1
        assert double_buffer.result_index == 1


# ---------------------------------------------------------------------------
# Scoped allocation
# ---------------------------------------------------------------------------

class TestAllocate:
    def test_vector(self):
        array = allocate((4, 3), ti.f32, n=2)
        assert array.to_numpy().shape == (4, 3, 2)
        assert array.dtype == ti.f32

    def test_scalar(self):
        array = allocate((12,), ti.i16)
        assert array.to_numpy().shape == (12,)
        assert array.dtype == ti.i16

    def test_zeroed(self):
        assert not allocate((3, 3, 2), ti.f32, n=4).to_numpy().any()


class TestWorkingBuffers:
    def test_vector_buffers(self):
        with working_buffers((4, 3), ti.f32, n=2) as double_buffer:
            front, back = double_buffer.buffers
            assert front is not back
            assert front.to_numpy().shape == (4, 3, 2)
            assert back.to_numpy().shape == (4, 3, 2)
            del front, back
        assert double_buffer.buffers == []

    def test_scalar_buffers(self):
        with working_buffers((12,), ti.i16) as double_buffer:
            assert double_buffer.read.to_numpy().shape == (12,)
            assert double_buffer.read.dtype == ti.i16
        assert double_buffer.buffers == []

    def test_buffers_start_zeroed(self):
        with working_buffers((3, 3, 2), ti.f32, n=4) as double_buffer:
            assert not double_buffer.seed.to_numpy().any()
            assert not double_buffer.write.to_numpy().any()

    def test_released_on_error(self):
        with pytest.raises(RuntimeError, match="boom"):
            with working_buffers((4, 4), ti.f32, n=2) as double_buffer:
                raise RuntimeError("boom")
        assert double_buffer.buffers == []

    def test_repeated_allocation_of_different_shapes(self):
        for shape in [(5,), (4, 5, 6), (64, 48)]:
            with working_buffers(shape, ti.f32, n=4) as double_buffer:
                assert double_buffer.seed.to_numpy().shape == (*shape, 4)
