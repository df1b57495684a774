import numpy as np
import pytest

from errors import InvalidParameter
from Gradient import combine, edge_magnitude, prewitt_gradients, to_grayscale
from PixelBuffer import PixelBuffer, ScalarField
from StencilParallel import BOUNDARY_CLAMP


def test_grayscale_is_channel_mean():
    data = np.zeros((2, 3, 3))
    data[0, 0] = (0.3, 0.6, 0.9)
    data[1, 2] = (1.0, 0.0, 0.5)
    gray = to_grayscale(PixelBuffer(data), n_jobs=1, block_size=1)
    assert isinstance(gray, ScalarField)
    assert gray[0, 0] == pytest.approx(0.6)
    assert gray[1, 2] == pytest.approx(0.5)
    assert gray[0, 1] == 0.0
    assert gray.frozen


def test_combine_writes_magnitude_to_every_channel():
    fx = ScalarField(np.array([[3.0, 0.0], [-1.0, 0.0]]))
    fy = ScalarField(np.array([[4.0, -2.0], [0.0, 0.0]]))
    out = combine(fx, fy, n_jobs=1)
    assert isinstance(out, PixelBuffer)
    assert out[0, 0] == (5.0, 5.0, 5.0)
    assert out[0, 1] == (2.0, 2.0, 2.0)
    assert out[1, 0] == (1.0, 1.0, 1.0)
    assert out[1, 1] == (0.0, 0.0, 0.0)
    assert out.frozen


def test_combine_rejects_mismatched_fields():
    with pytest.raises(InvalidParameter):
        combine(ScalarField.zeros(2, 2), ScalarField.zeros(2, 3))
    with pytest.raises(InvalidParameter):
        combine(PixelBuffer.zeros(2, 2), ScalarField.zeros(2, 2))


def test_grayscale_rejects_scalar_field():
    with pytest.raises(InvalidParameter):
        to_grayscale(ScalarField.zeros(2, 2))


@pytest.mark.parametrize("value", [0.0, 0.25, 0.5, 1.0])
def test_uniform_field_has_no_interior_gradient(value):
    gray = ScalarField(np.full((6, 7), value)).freeze()
    grad_x, grad_y = prewitt_gradients(gray, n_jobs=1)
    magnitude = combine(grad_x, grad_y, n_jobs=1)
    np.testing.assert_allclose(magnitude.data[1:-1, 1:-1], 0.0, atol=1e-12)
    if value:
        # skipped neighbours leave the border unbalanced
        assert (magnitude.data[0, :] > 0).all()
        assert (magnitude.data[:, 0] > 0).all()


@pytest.mark.parametrize("value", [0.0, 0.25, 0.5, 1.0])
def test_uniform_field_has_no_gradient_with_clamped_border(value):
    gray = ScalarField(np.full((6, 7), value)).freeze()
    grad_x, grad_y = prewitt_gradients(gray, boundary=BOUNDARY_CLAMP, n_jobs=1)
    magnitude = combine(grad_x, grad_y, n_jobs=1)
    np.testing.assert_allclose(magnitude.data, 0.0, atol=1e-12)


def test_horizontal_ramp():
    step = 0.1
    gray = ScalarField(np.tile(np.arange(6) * step, (5, 1))).freeze()
    grad_x, grad_y = prewitt_gradients(gray, n_jobs=1)
    np.testing.assert_allclose(grad_x.data[1:-1, 1:-1], 6 * step)
    np.testing.assert_allclose(grad_y.data[1:-1, 1:-1], 0.0, atol=1e-12)


def test_vertical_ramp_sign():
    step = 0.1
    gray = ScalarField(np.tile((np.arange(5) * step)[:, None], (1, 4))).freeze()
    grad_x, grad_y = prewitt_gradients(gray, n_jobs=1)
    # Y kernel weights the row above positively
    np.testing.assert_allclose(grad_y.data[1:-1, 1:-1], -6 * step)
    np.testing.assert_allclose(grad_x.data[1:-1, 1:-1], 0.0, atol=1e-12)


def test_edge_magnitude_of_step_edge():
    data = np.zeros((6, 6, 3))
    data[:, 3:] = 1.0
    out = edge_magnitude(PixelBuffer(data).freeze(), n_jobs=1)
    # edge sits between columns 2 and 3
    assert out.data[2, 2, 0] == pytest.approx(3.0)
    assert out.data[2, 3, 0] == pytest.approx(3.0)
    assert out.data[2, 1, 0] == pytest.approx(0.0, abs=1e-12)
    assert (out.data[..., 0] == out.data[..., 1]).all()
    assert (out.data[..., 1] == out.data[..., 2]).all()
