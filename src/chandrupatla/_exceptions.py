"""Exception classes for Chandrupatla root finding."""


class RootFindingError(Exception):
    """Base exception for root finding errors."""

    pass


class InvalidBracketError(RootFindingError, ValueError):
    """Raised when an interval does not bracket a root.

    Parameters
    ----------
    message : str
        Error message.
    indices : list[int], optional
        Flat indices of the invalid brackets.
    """

    def __init__(self, message: str, indices: list[int] | None = None):
        super().__init__(message)
        self.indices = [] if indices is None else list(indices)


class ConvergenceFailureError(RootFindingError, RuntimeError):
    """Raised when the iteration budget is exhausted before convergence."""

    def __init__(self, message: str, max_iterations: int | None = None):
        super().__init__(message)
        self.max_iterations = max_iterations
