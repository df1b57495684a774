#!/usr/bin/env python3
"""
Kernel generators: normalized Gaussian blur and the fixed Prewitt gradients.
Kernels are square float64 arrays of odd size 2r+1, returned read-only.
"""
import math

import numpy as np

from errors import InvalidParameter
from Reduction import normalize_kernel

# Prewitt presets, row-major: row index is the vertical offset
KERNEL_PREWITT_X = np.array([[-1, 0, 1],
                             [-1, 0, 1],
                             [-1, 0, 1]], dtype=float)
KERNEL_PREWITT_Y = np.array([[1, 1, 1],
                             [0, 0, 0],
                             [-1, -1, -1]], dtype=float)
KERNEL_PREWITT_X.flags.writeable = False
KERNEL_PREWITT_Y.flags.writeable = False


def kernel_radius(kernel):
    """Radius r of a (2r+1)x(2r+1) kernel."""
    shape = np.shape(kernel)
    if len(shape) != 2 or shape[0] != shape[1]:
        raise InvalidParameter(f"kernel must be square, got shape {shape}")
    if shape[0] % 2 == 0 or shape[0] < 3:
        raise InvalidParameter(f"kernel size must be odd and at least 3, got {shape[0]}")
    return shape[0] // 2


def gaussian_weights(radius, stddev):
    """Gaussian weights over the (2r+1)^2 window, without the 1/(2*pi*stddev^2) factor.

    Normalization cancels the constant factor. When 2*stddev^2 underflows to 0
    the off-centre cells go to exp(-inf) = 0 and the centre keeps exp(0) = 1.
    """
    denom = 2.0 * stddev * stddev
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    dist_sq = offsets[:, None] ** 2 + offsets[None, :] ** 2
    exponent = np.zeros_like(dist_sq)
    off_centre = dist_sq > 0
    with np.errstate(divide="ignore", over="ignore"):
        exponent[off_centre] = -dist_sq[off_centre] / np.float64(denom)
    return np.exp(exponent)


def generate_gaussian(radius, stddev, n_parts=None, n_jobs=1):
    if not math.isfinite(radius) or radius < 1 or int(radius) != radius:
        raise InvalidParameter(f"Gaussian radius must be an integer >= 1, got {radius!r}")
    if not stddev > 0 or not math.isfinite(stddev):
        raise InvalidParameter(f"Gaussian stddev must be > 0, got {stddev!r}")
    weights = gaussian_weights(int(radius), float(stddev))
    return normalize_kernel(weights, n_parts=n_parts, n_jobs=n_jobs)


def generate_prewitt_x():
    return KERNEL_PREWITT_X.copy()


def generate_prewitt_y():
    return KERNEL_PREWITT_Y.copy()
