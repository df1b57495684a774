#!/usr/bin/env python3
"""
Parallel stencil convolution using joblib.

The output index space is split into blocks; each block is computed from the
read-only input and the kernel, then assembled into the output buffer.

Boundary policies:
  skip  - window cells outside the image are left out of the sum and their
          weight is not redistributed, so pixels within `radius` of an edge
          get a smaller sum than interior pixels (default).
  clamp - window cells outside the image read the nearest edge pixel.
"""
import logging
import multiprocessing

import numpy as np
from joblib import Parallel, delayed

from errors import AliasingViolation, InvalidParameter
from KernelGen import kernel_radius
from PixelBuffer import PixelBuffer, ScalarField

logger = logging.getLogger(__name__)

PER_CHANNEL = "per-channel"
SCALAR = "scalar"
CHANNEL_MODES = {PER_CHANNEL: PixelBuffer, SCALAR: ScalarField}

BOUNDARY_SKIP = "skip"
BOUNDARY_CLAMP = "clamp"
BOUNDARIES = (BOUNDARY_SKIP, BOUNDARY_CLAMP)


def auto_block_size(rows, cols, n_jobs=-1):
    # Aim for ~4 blocks per core for better load balancing
    n_cores = multiprocessing.cpu_count() if n_jobs == -1 else max(1, n_jobs)
    total_blocks = n_cores * 4
    return max(16, int(np.sqrt(rows * cols / total_blocks)))


def make_blocks(rows, cols, block_size):
    """Block coordinates (start_i, end_i, start_j, end_j) covering rows x cols."""
    if block_size < 1:
        raise InvalidParameter(f"block_size must be >= 1, got {block_size}")
    blocks = []
    for i in range(0, rows, block_size):
        for j in range(0, cols, block_size):
            end_i = min(i + block_size, rows)
            end_j = min(j + block_size, cols)
            blocks.append((i, end_i, j, end_j))
    return blocks


def map_blocks(task, rows, cols, args=(), n_jobs=-1, block_size=None, prefer="threads"):
    """Run task(*args, start_i, end_i, start_j, end_j) on every block in parallel.

    Returns a list of (start_i, end_i, start_j, end_j, block_result).
    """
    if block_size is None:
        block_size = auto_block_size(rows, cols, n_jobs)
    blocks = make_blocks(rows, cols, block_size)
    logger.debug("%s: %d blocks of size %d over %dx%d", task.__name__, len(blocks), block_size, rows, cols)

    results = Parallel(n_jobs=n_jobs, prefer=prefer)(
        delayed(task)(*args, start_i, end_i, start_j, end_j)
        for start_i, end_i, start_j, end_j in blocks
    )
    return [block + (result,) for block, result in zip(blocks, results)]


def stencil_block(source, kernel, boundary, start_i, end_i, start_j, end_j):
    """Weighted window sums for one block of output cells.

    Works on (rows, cols) and (rows, cols, 3) sources alike: channels are
    carried along the trailing axis. Kernel cells are visited in the same
    order for every output cell, whatever the block shape.
    """
    rows, cols = source.shape[0], source.shape[1]
    radius = kernel.shape[0] // 2
    out = np.zeros((end_i - start_i, end_j - start_j) + source.shape[2:], dtype=np.float64)

    if boundary == BOUNDARY_CLAMP:
        out_i = np.arange(start_i, end_i)
        out_j = np.arange(start_j, end_j)
        for a in range(kernel.shape[0]):
            src_i = np.clip(out_i + a - radius, 0, rows - 1)
            for b in range(kernel.shape[1]):
                src_j = np.clip(out_j + b - radius, 0, cols - 1)
                out += kernel[a, b] * source[np.ix_(src_i, src_j)]
        return out

    for a in range(kernel.shape[0]):
        dy = a - radius
        lo_i = max(start_i, -dy)
        hi_i = min(end_i, rows - dy)
        if lo_i >= hi_i:
            continue
        for b in range(kernel.shape[1]):
            dx = b - radius
            lo_j = max(start_j, -dx)
            hi_j = min(end_j, cols - dx)
            if lo_j >= hi_j:
                continue
            # in-range overlap only
            out[lo_i - start_i:hi_i - start_i, lo_j - start_j:hi_j - start_j] += (
                kernel[a, b] * source[lo_i + dy:hi_i + dy, lo_j + dx:hi_j + dx])
    return out


def check_stencil_args(kernel, source, dest, mode, boundary):
    grids = tuple(CHANNEL_MODES.values())
    if source is dest or (isinstance(source, grids) and isinstance(dest, grids) and source.same_storage(dest)):
        raise AliasingViolation("stencil input and output must be distinct buffers")
    if mode not in CHANNEL_MODES:
        raise InvalidParameter(f"unknown channel mode {mode!r}, expected one of {sorted(CHANNEL_MODES)}")
    if boundary not in BOUNDARIES:
        raise InvalidParameter(f"unknown boundary policy {boundary!r}, expected one of {BOUNDARIES}")
    expected = CHANNEL_MODES[mode]
    if not isinstance(source, expected) or not isinstance(dest, expected):
        raise InvalidParameter(
            f"{mode} mode needs {expected.__name__} buffers, got "
            f"{type(source).__name__} -> {type(dest).__name__}")
    if source.shape != dest.shape:
        raise InvalidParameter(f"size mismatch: input {source.shape}, output {dest.shape}")
    if dest.frozen:
        raise InvalidParameter(f"output {dest!r} is frozen")
    return kernel_radius(kernel)


def apply_stencil(kernel, source, dest, mode=PER_CHANNEL, boundary=BOUNDARY_SKIP,
                  n_jobs=-1, block_size=None, prefer="threads"):
    """Convolve source into the pre-allocated dest and freeze it."""
    radius = check_stencil_args(kernel, source, dest, mode, boundary)
    kernel = np.asarray(kernel, dtype=np.float64)
    logger.debug("stencil r=%d (%s, %s) over %dx%d", radius, mode, boundary, source.rows, source.cols)

    results = map_blocks(stencil_block, source.rows, source.cols, args=(source.data, kernel, boundary),
                         n_jobs=n_jobs, block_size=block_size, prefer=prefer)

    # ==== ASSEMBLE BLOCKS ====
    for start_i, end_i, start_j, end_j, block in results:
        dest.data[start_i:end_i, start_j:end_j] = block
    return dest.freeze()


def convolve(kernel, source, mode=PER_CHANNEL, boundary=BOUNDARY_SKIP,
             n_jobs=-1, block_size=None, prefer="threads"):
    """Allocate an output buffer and apply the stencil into it."""
    dest = CHANNEL_MODES.get(mode, type(source)).zeros(source.rows, source.cols)
    return apply_stencil(kernel, source, dest, mode=mode, boundary=boundary,
                         n_jobs=n_jobs, block_size=block_size, prefer=prefer)
