#!/usr/bin/env python3
"""
Grayscale projection and Prewitt gradient-magnitude composition.
"""
import logging

import numpy as np

from errors import InvalidParameter
from KernelGen import generate_prewitt_x, generate_prewitt_y
from PixelBuffer import PixelBuffer, ScalarField
from StencilParallel import BOUNDARY_SKIP, SCALAR, apply_stencil, map_blocks

logger = logging.getLogger(__name__)


def grayscale_block(pixels, start_i, end_i, start_j, end_j):
    block = pixels[start_i:end_i, start_j:end_j]
    return (block[:, :, 0] + block[:, :, 1] + block[:, :, 2]) / 3.0


def magnitude_block(field_x, field_y, start_i, end_i, start_j, end_j):
    gx = field_x[start_i:end_i, start_j:end_j]
    gy = field_y[start_i:end_i, start_j:end_j]
    return np.sqrt(gx * gx + gy * gy)


def to_grayscale(buffer, n_jobs=-1, block_size=None, prefer="threads"):
    """Per-cell mean of the three channels."""
    if not isinstance(buffer, PixelBuffer):
        raise InvalidParameter(f"grayscale needs a PixelBuffer, got {type(buffer).__name__}")
    field = ScalarField.zeros(buffer.rows, buffer.cols)
    results = map_blocks(grayscale_block, buffer.rows, buffer.cols, args=(buffer.data,),
                         n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    for start_i, end_i, start_j, end_j, block in results:
        field.data[start_i:end_i, start_j:end_j] = block
    return field.freeze()


def combine(field_x, field_y, n_jobs=-1, block_size=None, prefer="threads"):
    """Euclidean norm of two gradient fields, written to all three channels."""
    for field in (field_x, field_y):
        if not isinstance(field, ScalarField):
            raise InvalidParameter(f"combine needs ScalarField inputs, got {type(field).__name__}")
    if field_x.shape != field_y.shape:
        raise InvalidParameter(f"gradient fields differ in size: {field_x.shape} vs {field_y.shape}")

    out = PixelBuffer.zeros(field_x.rows, field_x.cols)
    results = map_blocks(magnitude_block, field_x.rows, field_x.cols, args=(field_x.data, field_y.data),
                         n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    for start_i, end_i, start_j, end_j, block in results:
        # achromatic: same magnitude in every channel
        out.data[start_i:end_i, start_j:end_j] = block[:, :, None]
    return out.freeze()


def prewitt_gradients(gray, boundary=BOUNDARY_SKIP, n_jobs=-1, block_size=None, prefer="threads"):
    """Apply both Prewitt kernels to the same grayscale field."""
    grad_x = ScalarField.zeros(gray.rows, gray.cols)
    grad_y = ScalarField.zeros(gray.rows, gray.cols)
    apply_stencil(generate_prewitt_x(), gray, grad_x, mode=SCALAR, boundary=boundary,
                  n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    apply_stencil(generate_prewitt_y(), gray, grad_y, mode=SCALAR, boundary=boundary,
                  n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    return grad_x, grad_y


def edge_magnitude(blurred, boundary=BOUNDARY_SKIP, n_jobs=-1, block_size=None, prefer="threads"):
    """Blurred PixelBuffer -> achromatic gradient-magnitude PixelBuffer."""
    gray = to_grayscale(blurred, n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    grad_x, grad_y = prewitt_gradients(gray, boundary=boundary, n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("gradient ranges x=[%g, %g] y=[%g, %g]",
                     grad_x.data.min(), grad_x.data.max(), grad_y.data.min(), grad_y.data.max())
    return combine(grad_x, grad_y, n_jobs=n_jobs, block_size=block_size, prefer=prefer)
