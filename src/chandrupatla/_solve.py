"""Scalar interface to Chandrupatla's method."""

from typing import Callable

import torch
from torch import Tensor

from ._chandrupatla import _chandrupatla


def solve(
    f: Callable[[float], float],
    x0: float,
    x1: float,
    abs_tolerance: float = 0.0,
    rel_tolerance: float = 1e-12,
    max_iterations: int = 100,
) -> float:
    """Find a root of a scalar function inside ``[x0, x1]``.

    The interval must bracket a root: ``sign(f(x0)) * sign(f(x1)) <= 0``.
    Evaluation is in double precision and ``f`` is called with plain
    Python floats, once per endpoint and then at most once per iteration.

    Parameters
    ----------
    f : Callable[[float], float]
        The function to be solved.
    x0, x1 : float
        Ends of the initial search interval.
    abs_tolerance : float
        Acceptable absolute error in the root.
    rel_tolerance : float
        Acceptable relative error in the root.
    max_iterations : int
        The maximum number of iterations to perform.

    Returns
    -------
    float
        A root of ``f``.

    Raises
    ------
    InvalidBracketError
        If ``f(x0)`` and ``f(x1)`` have the same strict sign.
    ConvergenceFailureError
        If no root was found within ``max_iterations`` iterations, either
        because none exists or because the tolerance is too fine.

    Examples
    --------
    >>> import math
    >>> round(solve(lambda x: x - math.cos(x), 0.0, 1.0, 0.0, 1e-12, 20), 12)
    0.739085133215
    """

    def _f(x: Tensor) -> Tensor:
        return torch.tensor(float(f(x.item())), dtype=torch.float64)

    root, _ = _chandrupatla(
        _f,
        torch.tensor(float(x0), dtype=torch.float64),
        torch.tensor(float(x1), dtype=torch.float64),
        xtol=abs_tolerance,
        rtol=rel_tolerance,
        maxiter=max_iterations,
        callback=None,
        verbose=0,
    )
    return root.item()
