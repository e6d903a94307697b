"""chandrupatla: Chandrupatla's bracketed root finder for PyTorch."""

from ._chandrupatla import BracketState, chandrupatla
from ._convergence import (
    check_convergence,
    default_tolerances,
    tolerance_ratio,
)
from ._exceptions import (
    ConvergenceFailureError,
    InvalidBracketError,
    RootFindingError,
)
from ._solve import solve

__all__ = [
    "chandrupatla",
    "check_convergence",
    "default_tolerances",
    "solve",
    "tolerance_ratio",
    "BracketState",
    "ConvergenceFailureError",
    "InvalidBracketError",
    "RootFindingError",
]

__version__ = "0.1.0"
