#!/usr/bin/env python3
"""
Pixel containers passed between pipeline stages.

PixelBuffer holds rows x cols RGB float triples, ScalarField holds one float
per cell (grayscale intensity or a directional gradient). Both are row-major:
cell (i, j) lives at linear offset i*cols + j.
"""
import logging

import numpy as np

from errors import AllocationFailure, InvalidParameter

logger = logging.getLogger(__name__)


class _Grid:
    """Common part of PixelBuffer and ScalarField.

    A float64 array passed in is wrapped, not copied: the grid takes ownership
    of it, and freeze() also makes the caller's array read-only.
    """

    channels = None

    def __init__(self, data):
        data = np.asarray(data, dtype=np.float64)
        if data.shape[2:] != self._tail_shape() or data.ndim != len(self._tail_shape()) + 2:
            raise InvalidParameter(
                f"{type(self).__name__} needs shape (rows, cols{', 3' if self.channels else ''}), got {data.shape}")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise InvalidParameter(f"empty {type(self).__name__}: {data.shape}")
        self.data = data

    @classmethod
    def _tail_shape(cls):
        return (cls.channels,) if cls.channels else ()

    @classmethod
    def zeros(cls, rows, cols):
        """Allocate a zero-filled, writeable grid."""
        if rows < 1 or cols < 1:
            raise InvalidParameter(f"buffer dimensions must be positive, got {rows}x{cols}")
        try:
            data = np.zeros((rows, cols) + cls._tail_shape(), dtype=np.float64)
        except MemoryError as exc:
            raise AllocationFailure(f"cannot allocate {rows}x{cols} {cls.__name__}") from exc
        return cls(data)

    @property
    def rows(self):
        return self.data.shape[0]

    @property
    def cols(self):
        return self.data.shape[1]

    @property
    def shape(self):
        return self.rows, self.cols

    @property
    def frozen(self):
        return not self.data.flags.writeable

    def offset(self, i, j):
        """Linear index of cell (i, j)."""
        if not (0 <= i < self.rows and 0 <= j < self.cols):
            raise IndexError(f"cell ({i}, {j}) outside {self.rows}x{self.cols}")
        return i * self.cols + j

    def flat(self):
        """Read-only linear view following offset()."""
        view = self.data.reshape((self.rows * self.cols,) + self._tail_shape())
        view.flags.writeable = False
        return view

    def freeze(self):
        """Mark the grid immutable once its producing stage is done."""
        self.data.flags.writeable = False
        return self

    def same_storage(self, other):
        return self is other or np.shares_memory(self.data, other.data)

    def __getitem__(self, ij):
        i, j = ij
        self.offset(i, j)
        cell = self.data[i, j]
        return tuple(float(c) for c in cell) if self.channels else float(cell)

    def __repr__(self):
        return f"{type(self).__name__}({self.rows}x{self.cols}{', frozen' if self.frozen else ''})"


class PixelBuffer(_Grid):
    channels = 3

    @classmethod
    def from_raw(cls, raw):
        """Scale an (H, W, 3) uint8 image to floats in [0, 1]."""
        raw = np.asarray(raw)
        if raw.ndim != 3 or raw.shape[2] != 3:
            raise InvalidParameter(f"raw image must be (height, width, 3), got {raw.shape}")
        try:
            data = raw.astype(np.float64) / 255.0
        except MemoryError as exc:
            raise AllocationFailure(f"cannot allocate buffer for {raw.shape} image") from exc
        logger.debug("ingested %dx%d image", raw.shape[0], raw.shape[1])
        return cls(data).freeze()

    def to_raw(self):
        """Truncate channels back to uint8 (floor, saturating at 0 and 255)."""
        return np.clip(np.floor(self.data * 255.0), 0, 255).astype(np.uint8)


class ScalarField(_Grid):
    channels = None
