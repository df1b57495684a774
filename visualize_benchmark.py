#!/usr/bin/env python3
"""
Visualize benchmark results from benchmark_results.json
Creates bar charts of execution time and speedup vs a single worker.
"""

import json
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


def load_results(json_path='benchmark_results.json'):
    """Load benchmark results from JSON file."""
    with open(json_path, 'r') as f:
        data = json.load(f)
    return data


def config_label(entry):
    block = entry['block_size'] if entry['block_size'] is not None else 'auto'
    return f"jobs={entry['n_jobs']} block={block}"


def organize_data(data):
    """Map image size -> {config label: time in ms}."""
    results = {}
    for entry in data['results']:
        results.setdefault(entry['image_size'], {})[config_label(entry)] = entry['python_seconds'] * 1000
    return results


def baseline_label(times):
    """Single-worker config if present, else the slowest one."""
    for label in times:
        if label.startswith('jobs=1 '):
            return label
    return max(times, key=times.get)


def plot_benchmark_results(data, output_path='benchmark_plot.png'):
    """Create execution time and speedup bar charts, one column per image size."""
    results = organize_data(data)
    img_sizes = sorted(results)
    n_sizes = len(img_sizes)

    fig = plt.figure(figsize=(8 * n_sizes, 12))
    gs = fig.add_gridspec(2, n_sizes, hspace=0.3, wspace=0.25)
    fig.text(0.5, 0.96, 'Edge Detection Benchmark Results',
             ha='center', fontsize=16, fontweight='bold')

    for idx, img_size in enumerate(img_sizes):
        times = results[img_size]
        labels = list(times)
        x = np.arange(len(labels))
        baseline = baseline_label(times)

        # Row 1: Execution times
        ax = fig.add_subplot(gs[0, idx])
        bars = ax.bar(x, [times[label] for label in labels], color='#2E86AB', alpha=0.8)
        for bar in bars:
            height = bar.get_height()
            ax.text(bar.get_x() + bar.get_width()/2., height, f'{height:.1f}',
                    ha='center', va='bottom', fontsize=7)
        ax.set_ylabel('Time (ms)', fontsize=11, fontweight='bold')
        ax.set_title(f'Execution Time - {img_size}x{img_size}', fontsize=12, fontweight='bold')
        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=30, ha='right', fontsize=8)
        ax.grid(True, alpha=0.3, axis='y')

        # Row 2: Speedups
        ax = fig.add_subplot(gs[1, idx])
        speedups = [times[baseline] / times[label] if times[label] > 0 else 0 for label in labels]
        bars = ax.bar(x, speedups, color='#A23B72', alpha=0.8)
        for bar in bars:
            height = bar.get_height()
            ax.text(bar.get_x() + bar.get_width()/2., height, f'{height:.1f}x',
                    ha='center', va='bottom', fontsize=7)
        ax.axhline(y=1.0, color='red', linestyle='--', linewidth=1, alpha=0.7,
                   label=f'Baseline ({baseline})')
        ax.set_ylabel('Speedup', fontsize=11, fontweight='bold')
        ax.set_title(f'Speedup - {img_size}x{img_size}', fontsize=12, fontweight='bold')
        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=30, ha='right', fontsize=8)
        ax.legend(fontsize=8, loc='best')
        ax.grid(True, alpha=0.3, axis='y')

    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"✓ Execution times plot saved to: {output_path}")
    return output_path


def print_summary(data):
    """Print summary statistics."""
    results = organize_data(data)

    print("\n" + "="*80)
    print("BENCHMARK SUMMARY")
    print("="*80)

    for img_size, times in sorted(results.items()):
        print(f"\nImage: {img_size}x{img_size}")
        print("-" * 80)

        sorted_times = sorted(times.items(), key=lambda x: x[1])
        for label, time_ms in sorted_times:
            print(f"  {label:30s}: {time_ms:10.2f} ms")

        baseline = baseline_label(times)
        print(f"\n  Speedups vs {baseline}:")
        for label, time_ms in sorted_times:
            if label != baseline and time_ms > 0:
                print(f"    {label:30s}: {times[baseline] / time_ms:6.2f}x")


def main():
    json_path = Path('benchmark_results.json')
    if not json_path.exists():
        print(f"Error: {json_path} not found!")
        print("Run 'python benchmark.py' first to generate results.")
        return 1

    data = load_results(json_path)
    print_summary(data)

    print("\nGenerating plot...")
    plot_benchmark_results(data)

    print("\n✓ Visualization complete!")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
