#!/usr/bin/env python3
"""
Parallel sum over kernel cells and kernel normalization.
Partial sums are computed per chunk with joblib and merged pairwise at the join.
"""
import logging

import numpy as np
from joblib import Parallel, delayed

from errors import InvalidParameter

logger = logging.getLogger(__name__)

# partition of the kernel cells, independent of n_jobs
DEFAULT_PARTS = 8


def partial_sum(chunk):
    """Sum of one chunk of cells."""
    return float(np.sum(chunk))


def tree_merge(partials):
    """Pairwise merge of partial sums, level by level."""
    level = list(partials)
    if not level:
        return 0.0
    while len(level) > 1:
        merged = [level[k] + level[k + 1] for k in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            merged.append(level[-1])
        level = merged
    return level[0]


def kernel_sum(kernel, n_parts=None, n_jobs=1, prefer="threads"):
    """Sum every kernel cell.

    The flattened kernel is cut into n_parts contiguous chunks whose partial
    sums are merged by tree_merge, so any partition gives the same total
    within floating-point tolerance.
    """
    cells = np.asarray(kernel, dtype=np.float64).ravel()
    if n_parts is None:
        n_parts = DEFAULT_PARTS
    n_parts = max(1, min(int(n_parts), cells.size))
    chunks = np.array_split(cells, n_parts)

    partials = Parallel(n_jobs=n_jobs, prefer=prefer)(
        delayed(partial_sum)(chunk) for chunk in chunks
    )
    return tree_merge(partials)


def normalize(kernel, total):
    """Return a read-only copy of kernel with every cell divided by total."""
    if total == 0 or not np.isfinite(total):
        raise InvalidParameter(f"cannot normalize kernel by sum {total!r}")
    out = np.asarray(kernel, dtype=np.float64) / total
    out.flags.writeable = False
    return out


def normalize_kernel(kernel, n_parts=None, n_jobs=1, prefer="threads"):
    total = kernel_sum(kernel, n_parts=n_parts, n_jobs=n_jobs, prefer=prefer)
    logger.debug("kernel %s sums to %r before normalization", np.shape(kernel), total)
    return normalize(kernel, total)
