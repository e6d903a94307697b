# tests/chandrupatla/test__solve.py
import math

import pytest

from chandrupatla import (
    ConvergenceFailureError,
    InvalidBracketError,
    solve,
)

# Check if scipy is available for comparison tests
try:
    from scipy.optimize import brentq

    scipy_available = True
except ImportError:
    scipy_available = False


class _CountingFunction:
    """Wraps a function and counts how often it is evaluated."""

    def __init__(self, f):
        self.f = f
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return self.f(x)


class TestSolve:
    """Tests for the scalar interface."""

    def test_x_minus_cos_x(self):
        """Solve x = cos(x) to twelve significant figures."""
        root = solve(lambda x: x - math.cos(x), 0.0, 1.0, 0.0, 1e-12, 20)

        assert isinstance(root, float)
        assert root == pytest.approx(0.7390851332151607, rel=1e-11)

    def test_polynomial_exact_root(self):
        """(x + 3)(x - 1)^2 has an exactly representable root at -3."""
        f = lambda x: (x + 3) * (x - 1) ** 2

        assert solve(f, -4.0, 4.0 / 3, 0.0, 1e-12, 25) == -3.0

    def test_polynomial_within_eight_iterations(self):
        """The polynomial root is found without exceeding 8 iterations."""
        f = lambda x: (x + 3) * (x - 1) ** 2

        assert solve(f, -4.0, 4.0 / 3, 0.0, 1e-12, 8) == -3.0

    def test_accepts_integer_endpoints(self):
        root = solve(lambda x: x * x - 2.0, 1, 2, 0.0, 1e-12, 50)

        assert root == pytest.approx(math.sqrt(2), rel=1e-11)

    def test_symmetric_in_endpoints(self):
        """Swapping x0 and x1 finds the same root."""
        f = lambda x: math.exp(x) - 3.0

        forward = solve(f, 0.0, 2.0, 0.0, 1e-12, 50)
        backward = solve(f, 2.0, 0.0, 0.0, 1e-12, 50)

        assert forward == pytest.approx(math.log(3.0), rel=1e-11)
        assert backward == pytest.approx(forward, rel=1e-11)

    def test_absolute_tolerance(self):
        """A coarse absolute tolerance stops early but stays within it."""
        root = solve(lambda x: x**3 - 2.0, 0.0, 2.0, 1e-4, 0.0, 100)

        assert abs(root - 2.0 ** (1.0 / 3.0)) <= 1e-4

    def test_root_at_x0(self):
        """Return x0 after only the endpoint evaluations if f(x0) == 0."""
        f = _CountingFunction(lambda x: x - 1.0)

        root = solve(f, 1.0, 5.0, 0.0, 1e-12, 20)

        assert root == 1.0
        assert f.calls == 2

    def test_root_at_x1(self):
        """Return x1 after only the endpoint evaluations if f(x1) == 0."""
        f = _CountingFunction(lambda x: x - 5.0)

        root = solve(f, 1.0, 5.0, 0.0, 1e-12, 20)

        assert root == 5.0
        assert f.calls == 2

    def test_root_at_both_endpoints(self):
        """x0 is preferred when both endpoints are roots."""
        root = solve(lambda x: x * (x - 1.0), 0.0, 1.0, 0.0, 1e-12, 20)

        assert root == 0.0

    def test_invalid_bracket_raises(self):
        """Same-signed endpoints fail after the two endpoint evaluations."""
        f = _CountingFunction(lambda x: x * x + 1.0)

        with pytest.raises(InvalidBracketError, match="Invalid bracket"):
            solve(f, -1.0, 2.0, 0.0, 1e-12, 20)

        assert f.calls == 2

    def test_invalid_bracket_negative_side(self):
        with pytest.raises(InvalidBracketError):
            solve(lambda x: -(x * x) - 1.0, -1.0, 2.0, 0.0, 1e-12, 20)

    def test_iteration_budget_raises(self):
        """An exhausted budget is a ConvergenceFailureError."""
        with pytest.raises(
            ConvergenceFailureError, match="failed to converge in 1 iterations"
        ) as info:
            solve(lambda x: x - math.cos(x), 0.0, 1.0, 0.0, 1e-12, 1)

        assert info.value.max_iterations == 1
        assert not isinstance(info.value, InvalidBracketError)

    def test_unreachable_tolerance_raises(self):
        """Zero tolerances cannot be met on a sign change between floats."""
        f = lambda x: -1.0 if x < 0.1 else 1.0

        with pytest.raises(ConvergenceFailureError):
            solve(f, 0.0, 1.0, 0.0, 0.0, 200)

    def test_discontinuous_sign_change(self):
        """A step function is located by the bisection fallback."""
        f = lambda x: -1.0 if x < 0.3 else 1.0

        root = solve(f, 0.0, 1.0, 1e-10, 0.0, 100)

        assert abs(root - 0.3) <= 1e-10

    def test_calls_function_with_floats(self):
        seen = []

        def f(x):
            seen.append(type(x))
            return x - 0.5

        solve(f, 0.0, 2.0, 0.0, 1e-12, 50)

        assert set(seen) == {float}

    def test_max_iterations_must_be_positive(self):
        with pytest.raises(ValueError, match="maxiter"):
            solve(lambda x: x, -1.0, 1.0, 0.0, 1e-12, 0)

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            solve(lambda x: x, -1.0, 2.0, -1e-3, 1e-12, 10)

    @pytest.mark.skipif(not scipy_available, reason="scipy not available")
    def test_matches_scipy_transcendental(self):
        """Results match scipy.optimize.brentq."""
        f = lambda x: math.exp(-x) - x

        scipy_root = brentq(f, 0.0, 1.0, xtol=1e-14, rtol=1e-14)
        our_root = solve(f, 0.0, 1.0, 0.0, 1e-13, 50)

        assert our_root == pytest.approx(scipy_root, rel=1e-12)
