"""Benchmark Chandrupatla's method.

Counts function evaluations against plain bisection (and SciPy's brentq
when installed) on a few standard test functions, then times batched
solves across batch sizes.
"""

import math
import time

import torch

from chandrupatla import chandrupatla, solve

try:
    from scipy.optimize import brentq

    scipy_available = True
except ImportError:
    scipy_available = False


PROBLEMS = [
    ("x - cos(x)", lambda x: x - math.cos(x), 0.0, 1.0),
    ("(x + 3)(x - 1)^2", lambda x: (x + 3) * (x - 1) ** 2, -4.0, 4.0 / 3),
    ("x^3 - 2x - 5", lambda x: x**3 - 2 * x - 5, 2.0, 3.0),
    ("exp(x) - 10", lambda x: math.exp(x) - 10.0, 0.0, 5.0),
    ("sin(x) - 0.5", lambda x: math.sin(x) - 0.5, 0.0, 1.5),
]

REL_TOL = 1e-12


class _Counter:
    def __init__(self, f):
        self.f = f
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return self.f(x)


def _bisection_evaluations(f, x0: float, x1: float, rel_tol: float) -> int:
    """Number of evaluations plain bisection needs for the same tolerance."""
    f_lo = f(x0)
    f(x1)
    calls = 2
    lo, hi = x0, x1
    while abs(hi - lo) > rel_tol * max(abs(lo), abs(hi)):
        mid = 0.5 * (lo + hi)
        f_mid = f(mid)
        calls += 1
        if f_mid == 0:
            break
        if (f_mid < 0) == (f_lo < 0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    return calls


def benchmark_batched(batch_size: int, n_iterations: int = 10) -> float:
    """Benchmark a batched solve of x^2 = c.

    Parameters
    ----------
    batch_size : int
        Number of independent brackets.
    n_iterations : int
        Number of iterations for timing.

    Returns
    -------
    float
        Average time per batched solve in milliseconds.
    """
    c = torch.rand(batch_size, dtype=torch.float64) * 100.0 + 1.0
    f = lambda x: x**2 - c
    x0 = torch.zeros(batch_size, dtype=torch.float64)
    x1 = torch.full((batch_size,), 11.0, dtype=torch.float64)

    # Warmup
    for _ in range(3):
        _ = chandrupatla(f, x0, x1, xtol=0.0, rtol=REL_TOL)

    start = time.perf_counter()
    for _ in range(n_iterations):
        _ = chandrupatla(f, x0, x1, xtol=0.0, rtol=REL_TOL)

    elapsed = time.perf_counter() - start
    return elapsed / n_iterations * 1000  # ms


def main():
    """Run evaluation-count and batched timing benchmarks."""
    print("Function evaluations (rel_tol = 1e-12)")
    print("=" * 70)
    print(f"{'Function':>20} {'Chandrupatla':>14} {'Bisection':>12} {'brentq':>10}")
    print("-" * 70)

    for name, f, x0, x1 in PROBLEMS:
        counted = _Counter(f)
        solve(counted, x0, x1, 0.0, REL_TOL, 200)

        n_bisection = _bisection_evaluations(f, x0, x1, REL_TOL)

        if scipy_available:
            _, info = brentq(f, x0, x1, rtol=4 * REL_TOL, full_output=True)
            n_brentq = str(info.function_calls)
        else:
            n_brentq = "n/a"

        print(f"{name:>20} {counted.calls:>14} {n_bisection:>12} {n_brentq:>10}")

    print()
    print("Batched solve of x^2 = c")
    print("=" * 40)
    print(f"{'Batch size':>12} {'Time (ms)':>14}")
    print("-" * 40)

    for batch_size in [1, 16, 256, 4096, 65536]:
        ms = benchmark_batched(batch_size)
        print(f"{batch_size:>12} {ms:>14.3f}")


if __name__ == "__main__":
    main()
