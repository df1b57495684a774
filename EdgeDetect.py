#!/usr/bin/env python3
"""
Parallel edge detection: Gaussian blur, grayscale, Prewitt X/Y, gradient magnitude.

Usage: python EdgeDetect.py imageName
Writes out.jpg in the working directory and prints the elapsed time.
"""
import logging
import os
import sys
import time
from pathlib import Path

import numpy as np
from PIL import Image

from errors import AllocationFailure, DecodeFailure, EncodeFailure, InvalidParameter, StencilError
from Gradient import edge_magnitude
from KernelGen import generate_gaussian
from PixelBuffer import PixelBuffer
from StencilParallel import BOUNDARY_SKIP, PER_CHANNEL, apply_stencil

logger = logging.getLogger(__name__)

# ==== PARAMETERS ====
BLUR_RADIUS = 3
BLUR_STDDEV = 32.0
OUTPUT_PATH = "out.jpg"
N_JOBS = -1  # -1 uses all available cores
BLOCK_SIZE = None  # None = automatic, or set manually (e.g., 128, 256)
PREFER = "threads"

EXIT_USAGE = 1
EXIT_DECODE = 2
EXIT_FAILURE = 3


# ============================================
# ================ CODEC =====================
# ============================================
def load_image(path):
    """Decode an image file into a frozen PixelBuffer."""
    try:
        with Image.open(path) as img:
            arr = np.array(img.convert("RGB"))
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeFailure(f"Error opening {path}: {exc}") from exc
    except MemoryError as exc:
        raise AllocationFailure(f"cannot decode {path}: out of memory") from exc
    return PixelBuffer.from_raw(arr)


def save_image(buffer, path):
    """Encode buffer to path; the file only appears once fully written."""
    path = Path(path)
    fmt = Image.registered_extensions().get(path.suffix.lower())
    if fmt is None:
        raise InvalidParameter(f"no image format for extension {path.suffix!r}")

    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        Image.fromarray(buffer.to_raw()).save(tmp_path, format=fmt)
        os.replace(tmp_path, path)
    except OSError as exc:
        raise EncodeFailure(f"cannot write {path}: {exc}") from exc
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    logger.info("saved %s (%dx%d)", path, buffer.cols, buffer.rows)


# ============================================
# ================ PIPELINE ==================
# ============================================
def blur(buffer, radius=BLUR_RADIUS, stddev=BLUR_STDDEV, boundary=BOUNDARY_SKIP,
         n_jobs=N_JOBS, block_size=BLOCK_SIZE, prefer=PREFER):
    kernel = generate_gaussian(radius, stddev, n_jobs=n_jobs)
    blurred = PixelBuffer.zeros(buffer.rows, buffer.cols)
    return apply_stencil(kernel, buffer, blurred, mode=PER_CHANNEL, boundary=boundary,
                         n_jobs=n_jobs, block_size=block_size, prefer=prefer)


def detect_edges(buffer, radius=BLUR_RADIUS, stddev=BLUR_STDDEV, boundary=BOUNDARY_SKIP,
                 n_jobs=N_JOBS, block_size=BLOCK_SIZE, prefer=PREFER):
    """Blur -> grayscale -> Prewitt X/Y -> magnitude. Each stage is a full barrier."""
    blurred = blur(buffer, radius=radius, stddev=stddev, boundary=boundary,
                   n_jobs=n_jobs, block_size=block_size, prefer=prefer)
    return edge_magnitude(blurred, boundary=boundary, n_jobs=n_jobs, block_size=block_size, prefer=prefer)


def detect_edges_timed(buffer, **options):
    t0 = time.perf_counter()
    out = detect_edges(buffer, **options)
    t1 = time.perf_counter()
    return out, (t1 - t0)


def run(input_path, output_path=OUTPUT_PATH, **options):
    """Load, process and save one image. Returns elapsed seconds."""
    t0 = time.perf_counter()
    buffer = load_image(input_path)
    logger.info("processing image: %dx%d pixels", buffer.rows, buffer.cols)
    result = detect_edges(buffer, **options)
    save_image(result, output_path)
    return time.perf_counter() - t0


# ============================================
# ================== MAIN ====================
# ============================================
def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if len(argv) != 1:
        print(f"Usage: {Path(sys.argv[0]).name} imageName", file=sys.stderr)
        return EXIT_USAGE

    try:
        elapsed = run(argv[0], OUTPUT_PATH)
    except DecodeFailure as exc:
        logger.error("%s", exc)
        return EXIT_DECODE
    except StencilError as exc:
        logger.error("edge detection failed: %s", exc)
        return EXIT_FAILURE

    print(f"ptime = {elapsed:f}")
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
