# tests/chandrupatla/test__exceptions.py
import pytest

from chandrupatla._exceptions import (
    ConvergenceFailureError,
    InvalidBracketError,
    RootFindingError,
)


class TestExceptions:
    """Tests for root finding exceptions."""

    def test_root_finding_error_is_exception(self):
        """RootFindingError is a base Exception."""
        assert issubclass(RootFindingError, Exception)

    def test_invalid_bracket_error_hierarchy(self):
        """InvalidBracketError is a RootFindingError and a ValueError."""
        assert issubclass(InvalidBracketError, RootFindingError)
        assert issubclass(InvalidBracketError, ValueError)

    def test_convergence_failure_error_hierarchy(self):
        """ConvergenceFailureError is a RootFindingError and a RuntimeError."""
        assert issubclass(ConvergenceFailureError, RootFindingError)
        assert issubclass(ConvergenceFailureError, RuntimeError)

    def test_failure_kinds_are_distinct(self):
        """Neither failure kind is a subclass of the other."""
        assert not issubclass(InvalidBracketError, ConvergenceFailureError)
        assert not issubclass(ConvergenceFailureError, InvalidBracketError)

    def test_invalid_bracket_error_carries_indices(self):
        """InvalidBracketError keeps the offending indices."""
        with pytest.raises(InvalidBracketError, match="bad bracket") as info:
            raise InvalidBracketError("bad bracket", indices=[0, 2])

        assert info.value.indices == [0, 2]

    def test_invalid_bracket_error_default_indices(self):
        assert InvalidBracketError("bad bracket").indices == []

    def test_convergence_failure_error_carries_budget(self):
        """ConvergenceFailureError keeps the iteration budget."""
        with pytest.raises(ConvergenceFailureError, match="20 iterations") as info:
            raise ConvergenceFailureError(
                "no root after 20 iterations", max_iterations=20
            )

        assert info.value.max_iterations == 20
