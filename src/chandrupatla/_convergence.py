"""Convergence utilities for Chandrupatla's method."""

import torch
from torch import Tensor


def default_tolerances(dtype: torch.dtype) -> dict[str, float]:
    """Return dtype-appropriate default tolerances.

    Parameters
    ----------
    dtype : torch.dtype
        The tensor dtype.

    Returns
    -------
    dict[str, float]
        Dictionary with keys 'xtol' and 'rtol'.
    """
    if dtype in (torch.float16, torch.bfloat16):
        return {"xtol": 1e-3, "rtol": 1e-2}
    elif dtype == torch.float32:
        return {"xtol": 1e-6, "rtol": 1e-5}
    else:  # float64 and others
        return {"xtol": 1e-12, "rtol": 1e-9}


def tolerance_ratio(
    x_m: Tensor,
    a: Tensor,
    b: Tensor,
    xtol: float,
    rtol: float,
) -> Tensor:
    """Working tolerance as a fraction of the bracket width.

    The working tolerance is ``max(rtol * |x_m|, xtol)``; the returned
    ratio ``t_l = tol / |a - b|`` reaches 1 once the bracket is no wider
    than the tolerance. A zero-width bracket gives ``inf`` (or ``nan`` when
    the tolerance is also zero).

    Parameters
    ----------
    x_m : Tensor
        Current best estimate of the root.
    a, b : Tensor
        Bracket endpoints.
    xtol : float
        Absolute tolerance.
    rtol : float
        Relative tolerance.

    Returns
    -------
    Tensor
        The ratio ``t_l`` for each element.
    """
    tol = torch.clamp(rtol * torch.abs(x_m), min=xtol)
    return tol / torch.abs(a - b)


def check_convergence(t_l: Tensor, f_m: Tensor) -> Tensor:
    """Check convergence for each element.

    Convergence is achieved when EITHER:
    - ``t_l >= 1`` (bracket width within tolerance)
    - ``f_m == 0`` (exact root)

    Parameters
    ----------
    t_l : Tensor
        Tolerance ratio from :func:`tolerance_ratio`.
    f_m : Tensor
        Function value at the best estimate.

    Returns
    -------
    Tensor
        Boolean mask where True indicates convergence.
    """
    return (t_l >= 1.0) | (f_m == 0)
