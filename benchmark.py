#!/usr/bin/env python3
"""
Benchmark the edge detection pipeline under different worker counts and tilings.
Every configuration must give the same result as the first one.
"""
import json
import multiprocessing
import sys
import time

import numpy as np

import EdgeDetect
from PixelBuffer import PixelBuffer

DEFAULT_CONFIGS = [
    {"n_jobs": 1, "block_size": None},
    {"n_jobs": 2, "block_size": None},
    {"n_jobs": -1, "block_size": None},
    {"n_jobs": -1, "block_size": 64},
    {"n_jobs": -1, "block_size": 256},
]


def synthetic_image(size, seed=0):
    """Random RGB image as a frozen PixelBuffer."""
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_raw(rng.integers(0, 256, size=(size, size, 3), dtype=np.uint8))


def benchmark_pipeline(buffer, configs=DEFAULT_CONFIGS, n_runs=3, radius=EdgeDetect.BLUR_RADIUS,
                       stddev=EdgeDetect.BLUR_STDDEV, verbose=True):
    """Time detect_edges for every config and check the results agree."""
    records = []
    reference = None

    for config in configs:
        times = []
        for i in range(n_runs):
            start = time.perf_counter()
            result = EdgeDetect.detect_edges(buffer, radius=radius, stddev=stddev, **config)
            elapsed = time.perf_counter() - start
            times.append(elapsed)
            if verbose:
                print(f"n_jobs={config['n_jobs']} block_size={config['block_size']} run {i+1}: {elapsed:.4f} seconds")

        if reference is None:
            reference = result.data
        max_diff = float(np.abs(reference - result.data).max())

        records.append({
            "image_size": buffer.rows,
            "kernel_size": 2 * radius + 1,
            "n_jobs": config["n_jobs"],
            "block_size": config["block_size"],
            "python_seconds": float(np.mean(times)),
            "std_seconds": float(np.std(times)),
            "max_diff": max_diff,
        })
        if verbose:
            print(f"Average: {np.mean(times):.4f} ± {np.std(times):.4f} seconds (max diff {max_diff})")

    return records


def save_results(records, path="benchmark_results.json"):
    data = {
        "metadata": {"cpu_count": multiprocessing.cpu_count(), "timestamp": time.time()},
        "results": records,
    }
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return data


if __name__ == "__main__":
    # ==== PARAMETERS ====
    sizes = [256, 512, 1024]
    n_runs = 3

    print("=" * 70)
    print("EDGE DETECTION BENCHMARK: worker counts and tilings")
    print("=" * 70)
    print(f"CPU cores: {multiprocessing.cpu_count()}")

    all_records = []
    for size in sizes:
        print(f"\nImage size: {size}x{size} pixels")
        print("-" * 70)
        all_records.extend(benchmark_pipeline(synthetic_image(size), n_runs=n_runs))

    save_results(all_records)

    mismatched = [r for r in all_records if r["max_diff"] != 0]
    if mismatched:
        print(f"⚠ {len(mismatched)} configurations differ from the reference")
        sys.exit(1)
    print("\n✓ All results are identical! Saved benchmark_results.json")
