"""Chandrupatla's bracketed root-finding method."""

import warnings
from typing import Callable, NamedTuple, Optional

import torch
from torch import Tensor

from ._convergence import check_convergence, default_tolerances, tolerance_ratio
from ._exceptions import ConvergenceFailureError, InvalidBracketError
from ._implicit_grad import attach_implicit_grad


class BracketState(NamedTuple):
    """Snapshot of the iteration state, passed to ``callback``.

    Parameters
    ----------
    iteration : int
        1-based index of the iteration that produced this state.
    a, fa : Tensor
        Most recent sample and its function value.
    b, fb : Tensor
        The other bracket endpoint and its function value.
    c, fc : Tensor
        The point displaced from the bracket, kept for interpolation.
    converged : Tensor
        Boolean mask of elements that have converged.
    """

    iteration: int
    a: Tensor
    b: Tensor
    c: Tensor
    fa: Tensor
    fb: Tensor
    fc: Tensor
    converged: Tensor


def _evaluate(
    f: Callable[[Tensor], Tensor], x: Tensor, orig_shape: torch.Size
) -> Tensor:
    """Evaluate ``f`` in the caller's shape and return a flat tensor."""
    fx = f(x.reshape(orig_shape))
    if not isinstance(fx, Tensor):
        fx = torch.as_tensor(fx, dtype=x.dtype, device=x.device)
    return fx.expand(orig_shape).reshape(-1)


def _chandrupatla(
    f: Callable[[Tensor], Tensor],
    x0: Tensor,
    x1: Tensor,
    *,
    xtol: Optional[float],
    rtol: Optional[float],
    maxiter: int,
    callback: Optional[Callable[[BracketState], None]],
    verbose: int,
) -> tuple[Tensor, bool]:
    """Run the iteration.

    Returns the detached roots in the input shape and whether ``f`` closes
    over tensors that require gradients.
    """
    # Input validation
    if x0.shape != x1.shape:
        raise ValueError(
            f"x0 and x1 must have same shape, got {x0.shape} and {x1.shape}"
        )
    if maxiter < 1:
        raise ValueError(f"maxiter must be a positive integer, got {maxiter}")

    if not x0.is_floating_point():
        x0 = x0.to(torch.get_default_dtype())
    if not x1.is_floating_point():
        x1 = x1.to(torch.get_default_dtype())
    if x0.dtype != x1.dtype:
        dtype = torch.promote_types(x0.dtype, x1.dtype)
        x0, x1 = x0.to(dtype), x1.to(dtype)

    defaults = default_tolerances(x0.dtype)
    if xtol is None:
        xtol = defaults["xtol"]
    if rtol is None:
        rtol = defaults["rtol"]
    if xtol < 0 or rtol < 0:
        raise ValueError(
            f"Tolerances must be non-negative, got xtol={xtol} and rtol={rtol}"
        )

    orig_shape = x0.shape

    if x0.numel() == 0:
        return x0.clone(), False

    if torch.any(~torch.isfinite(x0)) or torch.any(~torch.isfinite(x1)):
        raise ValueError("x0 and x1 must not contain NaN or Inf")

    a = x1.detach().flatten()
    b = x0.detach().flatten()

    # The first endpoint is evaluated with autograd recording so the root
    # knows whether it needs an implicit backward.
    fa = _evaluate(f, a, orig_shape)
    needs_grad = fa.requires_grad
    fa = fa.detach()

    with torch.no_grad():
        fb = _evaluate(f, b, orig_shape)

        invalid = torch.sign(fa) * torch.sign(fb) > 0
        if torch.any(invalid):
            invalid_indices = torch.where(invalid)[0].tolist()
            raise InvalidBracketError(
                f"Invalid bracket: sign(f(x0)) and sign(f(x1)) must differ. "
                f"{invalid.sum().item()} of {invalid.numel()} brackets are "
                f"invalid at indices {invalid_indices}.",
                indices=invalid_indices,
            )

        # An exact zero at either endpoint is final; x0 wins a tie.
        converged = (fb == 0) | (fa == 0)
        result = torch.where(fb == 0, b, a)

        c = b.clone()
        fc = fb.clone()
        t = torch.full_like(a, 0.5)

        num_iterations = 0
        for iteration in range(1, maxiter + 1):
            if torch.all(converged):
                break
            num_iterations = iteration

            active = ~converged

            x_t = a + t * (b - a)
            f_t = _evaluate(f, x_t, orig_shape)

            # Keep the endpoint on the other side of the root from x_t
            same_side = torch.sign(f_t) == torch.sign(fa)
            c = torch.where(active, torch.where(same_side, a, b), c)
            fc = torch.where(active, torch.where(same_side, fa, fb), fc)
            b = torch.where(active & ~same_side, a, b)
            fb = torch.where(active & ~same_side, fa, fb)
            a = torch.where(active, x_t, a)
            fa = torch.where(active, f_t, fa)

            a_is_best = torch.abs(fa) < torch.abs(fb)
            x_m = torch.where(a_is_best, a, b)
            f_m = torch.where(a_is_best, fa, fb)

            t_l = tolerance_ratio(x_m, a, b, xtol, rtol)
            newly_converged = check_convergence(t_l, f_m) & active
            result = torch.where(newly_converged, x_m, result)
            converged = converged | newly_converged

            if callback is not None:
                callback(
                    BracketState(
                        iteration=iteration,
                        a=a.reshape(orig_shape),
                        b=b.reshape(orig_shape),
                        c=c.reshape(orig_shape),
                        fa=fa.reshape(orig_shape),
                        fb=fb.reshape(orig_shape),
                        fc=fc.reshape(orig_shape),
                        converged=converged.reshape(orig_shape),
                    )
                )

            if verbose > 1:
                width = torch.abs(a - b)[~converged]
                max_width = width.max().item() if width.numel() else 0.0
                warnings.warn(
                    f"Iteration {iteration}: {int(converged.sum())} of "
                    f"{converged.numel()} converged, max bracket width = "
                    f"{max_width:.2e}",
                    RuntimeWarning,
                    stacklevel=3,
                )

            # Interpolate only where the points are consistent with a
            # monotone quadratic; NaN comparisons are False.
            xi = (a - b) / (c - b)
            phi = (fa - fb) / (fc - fb)
            use_iqi = ((1.0 - torch.sqrt(1.0 - xi)) < phi) & (
                phi < torch.sqrt(xi)
            )
            t_iqi = (fa / (fb - fa)) * (fc / (fb - fc)) + (
                (c - a) / (b - a)
            ) * (fa / (fc - fa)) * (fb / (fc - fb))
            t_next = torch.where(use_iqi, t_iqi, 0.5)

            # Stay at least tol away from both endpoints
            t_next = torch.where(
                t_next < t_l,
                t_l,
                torch.where(t_next > 1.0 - t_l, 1.0 - t_l, t_next),
            )
            t_next = torch.where(t_l > 0.5, 0.5, t_next)

            t = torch.where(converged, t, t_next)

        if not torch.all(converged):
            n_failed = int((~converged).sum())
            raise ConvergenceFailureError(
                f"chandrupatla: failed to converge in {maxiter} iterations "
                f"({n_failed} of {converged.numel()} elements unconverged)",
                max_iterations=maxiter,
            )

    if verbose > 0:
        warnings.warn(
            f"Converged in {num_iterations} iterations",
            RuntimeWarning,
            stacklevel=3,
        )

    return result.reshape(orig_shape), needs_grad


def chandrupatla(
    f: Callable[[Tensor], Tensor],
    x0: Tensor,
    x1: Tensor,
    *,
    xtol: Optional[float] = None,
    rtol: Optional[float] = None,
    maxiter: int = 100,
    callback: Optional[Callable[[BracketState], None]] = None,
    verbose: int = 0,
) -> Tensor:
    r"""
    Find roots of f(x) = 0 using Chandrupatla's method.

    Chandrupatla's method is a bracketed root-finding algorithm that uses
    inverse quadratic interpolation whenever the three most recent points
    are consistent with a monotone quadratic fit, and bisection otherwise.
    Compared to Brent's method it decides between the two with a single
    test, and it never samples closer than the working tolerance to a
    bracket endpoint.

    Parameters
    ----------
    f : Callable[[Tensor], Tensor]
        Element-wise function. Called with a tensor shaped like ``x0`` and
        must return a tensor of the same shape (or one that broadcasts to
        it). Evaluated once per endpoint and then exactly once per iteration
        for the whole batch.
    x0, x1 : Tensor
        Bracket endpoints. Must have the same shape and satisfy
        ``sign(f(x0)) * sign(f(x1)) <= 0`` for each element.
    xtol : float, optional
        Absolute tolerance on the bracket width.
        Default: dtype-aware (1e-3 for float16/bfloat16, 1e-6 for float32,
        1e-12 for float64).
    rtol : float, optional
        Relative tolerance on the bracket width, scaled by the magnitude of
        the current best estimate.
        Default: dtype-aware (1e-2 for float16/bfloat16, 1e-5 for float32,
        1e-9 for float64).
    maxiter : int, default=100
        Maximum iterations. Raises ConvergenceFailureError if exceeded.
    callback : Callable[[BracketState], None], optional
        Called after every iteration with a detached snapshot of the
        bracket.
    verbose : int, default=0
        Verbosity level. 0 = silent, 1 = summary, 2 = per-iteration.
        Uses warnings.warn() for messages (not print).

    Returns
    -------
    Tensor
        Roots with the same shape and dtype as ``x0`` and ``x1``.

    Raises
    ------
    ValueError
        If ``x0`` and ``x1`` have different shapes or contain NaN/Inf, if a
        tolerance is negative, or if ``maxiter < 1``.
    InvalidBracketError
        If ``f(x0)`` and ``f(x1)`` are both strictly positive or both
        strictly negative for some element. Subclass of ValueError.
    ConvergenceFailureError
        If some element has not converged after ``maxiter`` iterations.
        Subclass of RuntimeError.

    Examples
    --------
    Solve x = cos(x):

    >>> import torch
    >>> from chandrupatla import chandrupatla
    >>> f = lambda x: x - torch.cos(x)
    >>> x0 = torch.tensor(0.0, dtype=torch.float64)
    >>> x1 = torch.tensor(1.0, dtype=torch.float64)
    >>> float(chandrupatla(f, x0, x1, xtol=0.0, rtol=1e-12))  # doctest: +ELLIPSIS
    0.739085133215...

    Batched root-finding (find sqrt(2), sqrt(3), sqrt(4)):

    >>> c = torch.tensor([2.0, 3.0, 4.0])
    >>> f = lambda x: x**2 - c
    >>> roots = chandrupatla(f, torch.ones(3), torch.full((3,), 10.0))
    >>> [f"{v:.4f}" for v in roots.tolist()]
    ['1.4142', '1.7321', '2.0000']

    Notes
    -----
    **Algorithm**: The state is the newest sample ``a``, the opposite
    bracket endpoint ``b`` and the displaced point ``c``. The next sample is
    ``a + t (b - a)``. With :math:`\xi = (a - b)/(c - b)` and
    :math:`\phi = (f_a - f_b)/(f_c - f_b)`, inverse quadratic interpolation
    is used when

    .. math::

        1 - \sqrt{1 - \xi} < \phi < \sqrt{\xi}

    and ``t = 1/2`` otherwise. Degenerate configurations make
    :math:`\xi` or :math:`\phi` non-finite, which fails the test and falls
    back to bisection. ``t`` is then clamped to ``[t_l, 1 - t_l]`` with
    ``t_l = tol / |a - b|``.

    **Convergence Criterion**: An element converges when
    ``|a - b| <= max(rtol * |x_m|, xtol)`` or ``f(x_m) == 0``, where
    ``x_m`` is whichever endpoint has the smaller residual. An exact zero
    at ``x0`` (or else ``x1``) is returned without iterating.

    **Autograd Support**: The iteration runs without recording a graph.
    If ``f`` depends on tensors that require gradients, the root receives
    a backward based on the implicit function theorem:

    .. math::

        \frac{dx^*}{d\theta} = -\left[\frac{\partial f}{\partial x}\right]^{-1}
        \frac{\partial f}{\partial \theta}

    **CUDA Support**: Works on any device (CPU or CUDA) as long as all
    inputs are on the same device.

    See Also
    --------
    solve : Scalar interface operating on Python floats.
    scipy.optimize.brentq : SciPy's scalar Brent implementation
    """
    root, needs_grad = _chandrupatla(
        f,
        x0,
        x1,
        xtol=xtol,
        rtol=rtol,
        maxiter=maxiter,
        callback=callback,
        verbose=verbose,
    )
    return attach_implicit_grad(root, f, needs_grad)
