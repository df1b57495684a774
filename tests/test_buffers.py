import numpy as np
import pytest

import PixelBuffer as buffers
from errors import AllocationFailure, InvalidParameter
from PixelBuffer import PixelBuffer, ScalarField


def test_zeros_shapes():
    buf = PixelBuffer.zeros(4, 5)
    assert buf.data.shape == (4, 5, 3)
    assert buf.shape == (4, 5)
    field = ScalarField.zeros(2, 3)
    assert field.data.shape == (2, 3)
    assert not buf.frozen


@pytest.mark.parametrize("rows, cols", [(0, 3), (3, 0), (-1, 2)])
def test_zeros_rejects_empty(rows, cols):
    with pytest.raises(InvalidParameter):
        PixelBuffer.zeros(rows, cols)


def test_offset_is_row_major():
    buf = PixelBuffer.zeros(3, 4)
    assert buf.offset(0, 0) == 0
    assert buf.offset(1, 0) == 4
    assert buf.offset(2, 3) == 11
    with pytest.raises(IndexError):
        buf.offset(3, 0)
    with pytest.raises(IndexError):
        buf.offset(0, -1)


def test_flat_view_follows_offset():
    field = ScalarField(np.arange(12, dtype=float).reshape(3, 4))
    flat = field.flat()
    assert flat[field.offset(2, 1)] == field[2, 1] == 9.0
    assert not flat.flags.writeable


def test_wrong_shapes_are_rejected():
    with pytest.raises(InvalidParameter):
        PixelBuffer(np.zeros((3, 3)))
    with pytest.raises(InvalidParameter):
        ScalarField(np.zeros((3, 3, 3)))
    with pytest.raises(InvalidParameter):
        PixelBuffer(np.zeros((2, 2, 4)))


def test_freeze_blocks_writes():
    buf = PixelBuffer.zeros(2, 2).freeze()
    assert buf.frozen
    with pytest.raises(ValueError):
        buf.data[0, 0, 0] = 1.0


def test_from_raw_scales_to_unit_range():
    raw = np.array([[[0, 255, 51]]], dtype=np.uint8)
    buf = PixelBuffer.from_raw(raw)
    assert buf[0, 0] == pytest.approx((0.0, 1.0, 0.2))
    assert buf.frozen


def test_from_raw_rejects_grayscale():
    with pytest.raises(InvalidParameter):
        PixelBuffer.from_raw(np.zeros((4, 4), dtype=np.uint8))


def test_to_raw_truncates_and_saturates():
    data = np.array([[[0.999, 1.0, 0.5], [1.7, -0.2, 0.0039]]])
    raw = PixelBuffer(data).to_raw()
    assert raw.dtype == np.uint8
    assert raw.tolist() == [[[254, 255, 127], [255, 0, 0]]]


def test_same_storage():
    a = PixelBuffer.zeros(3, 3)
    b = PixelBuffer.zeros(3, 3)
    view = PixelBuffer(a.data[:, :])
    assert a.same_storage(a)
    assert a.same_storage(view)
    assert not a.same_storage(b)


def test_zeros_reports_allocation_failure(monkeypatch):
    def out_of_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(buffers.np, "zeros", out_of_memory)
    with pytest.raises(AllocationFailure):
        PixelBuffer.zeros(10, 10)
    with pytest.raises(AllocationFailure):
        ScalarField.zeros(10, 10)


def test_float_array_is_wrapped_without_copy():
    arr = np.zeros((2, 2))
    field = ScalarField(arr).freeze()
    assert field.data is arr
    assert not arr.flags.writeable


def test_other_dtypes_are_copied():
    arr = np.zeros((2, 2), dtype=np.uint8)
    ScalarField(arr).freeze()
    assert arr.flags.writeable
