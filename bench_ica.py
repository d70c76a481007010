#!/usr/bin/env python3
"""
ICA Benchmark — run_ica timing across problem sizes.

Usage:
    python bench_ica.py
    python bench_ica.py --repeats 5 --nonlinearity cubic
"""

import argparse
import time
import warnings

import numpy as np

from fastsep import ConvergenceWarning, run_ica


# (channels, samples)
CASES = [
    (4, 1_000),
    (8, 5_000),
    (16, 10_000),
    (32, 20_000),
    (64, 30_000),
]

APPROACHES = ('symmetric', 'deflation')


def make_mixture(n_channels: int, n_samples: int, seed: int = 0) -> np.ndarray:
    """Random mixture of Laplace and uniform sources."""
    rng = np.random.default_rng(seed)
    half = n_channels // 2
    sources = np.vstack([
        rng.laplace(size=(half, n_samples)),
        rng.uniform(-1, 1, size=(n_channels - half, n_samples)),
    ])
    return rng.standard_normal((n_channels, n_channels)) @ sources


def main():
    parser = argparse.ArgumentParser(description="Benchmark run_ica")
    parser.add_argument('--repeats', type=int, default=3, help='Runs per case (best is reported)')
    parser.add_argument('--nonlinearity', default='tanh', help='Contrast function')
    parser.add_argument('--max-iterations', type=int, default=1000)
    args = parser.parse_args()

    print("=" * 70)
    print("FASTSEP ICA BENCHMARK")
    print("=" * 70)
    print(f"Nonlinearity: {args.nonlinearity}")
    print(f"Repeats:      {args.repeats}")
    print()

    results = []

    for n_channels, n_samples in CASES:
        X = make_mixture(n_channels, n_samples)
        for approach in APPROACHES:
            label = f"{n_channels:>3d} x {n_samples:<7,d} {approach}"
            best = float('inf')
            result = None
            for _ in range(args.repeats):
                t0 = time.perf_counter()
                with warnings.catch_warnings():
                    warnings.simplefilter('ignore', ConvergenceWarning)
                    result = run_ica(
                        X,
                        approach=approach,
                        nonlinearity=args.nonlinearity,
                        max_iterations=args.max_iterations,
                        random_seed=0,
                    )
                best = min(best, time.perf_counter() - t0)

            summary = result.summary()
            status = "OK" if summary['converged'] else "NOT CONVERGED"
            results.append((label, best, summary['iterations'], status))
            print(f"  {label:<32s}  {best:8.3f}s  {summary['iterations']:>5d} it  {status}", flush=True)

    print("\n\nTiming Summary:")
    print(f"{'Case':<32s}  {'Time':>9s}  {'Iter':>8s}  {'Status'}")
    print("-" * 65)
    for label, elapsed, iterations, status in results:
        print(f"{label:<32s}  {elapsed:8.3f}s  {iterations:>8d}  {status}")


if __name__ == '__main__':
    main()
