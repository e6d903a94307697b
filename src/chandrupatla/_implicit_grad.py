"""Implicit differentiation through root-finding."""

from typing import Callable

import torch
from torch import Tensor


class _ChandrupatlaImplicitGrad(torch.autograd.Function):
    """Custom autograd for implicit differentiation through root-finding."""

    @staticmethod
    def forward(ctx, root: Tensor, f_callable) -> Tensor:
        ctx.f_callable = f_callable
        ctx.save_for_backward(root)
        return root.clone()

    @staticmethod
    def backward(ctx, grad_output: Tensor) -> tuple[Tensor | None, None]:
        (root,) = ctx.saved_tensors

        x = root.detach().requires_grad_(True)
        with torch.enable_grad():
            fx = ctx.f_callable(x)
            df_dx = torch.autograd.grad(
                fx,
                x,
                grad_outputs=torch.ones_like(fx),
                create_graph=True,
                retain_graph=True,
            )[0]

            # dL/dtheta = -dL/dx* * [df/dx]^{-1} * df/dtheta, obtained by
            # backpropagating through f with a rescaled upstream gradient.
            if fx.grad_fn is not None:
                eps = torch.finfo(df_dx.dtype).eps * 10
                safe_df_dx = torch.where(
                    torch.abs(df_dx) < eps,
                    torch.sign(df_dx) * eps,
                    df_dx,
                )
                # sign() is zero for an exactly flat tangent
                safe_df_dx = torch.where(safe_df_dx == 0, eps, safe_df_dx)
                modified_grad = -grad_output / safe_df_dx
                torch.autograd.backward(fx, modified_grad)

        return None, None


def attach_implicit_grad(
    result: Tensor,
    f: Callable[[Tensor], Tensor],
    needs_grad: bool,
) -> Tensor:
    """Attach an implicit-differentiation backward to ``result`` if needed.

    ``needs_grad`` says whether an evaluation of ``f`` made during the solve
    produced a tensor that requires gradients, i.e. whether ``f`` closes over
    parameters that are being differentiated. ``f`` is not called here.
    """
    if result.numel() == 0 or not needs_grad:
        return result

    if not result.requires_grad:
        result = result.clone().requires_grad_(True)

    return _ChandrupatlaImplicitGrad.apply(result, f)
