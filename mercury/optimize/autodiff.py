"""Exact derivatives through PyTorch autograd.

Write the objective (or model) with ``torch`` operations on a 1D float64
tensor, and these helpers return NumPy-in / NumPy-out callables for the
value, gradient and Jacobian, ready to plug into the optimizers.

Example
-------
>>> import torch
>>> from mercury.optimize.autodiff import torch_gradient
>>> grad = torch_gradient(lambda p: (p ** 2).sum())
>>> grad([1.0, -2.0]).tolist()
[2.0, -4.0]
"""

from __future__ import annotations

from typing import Callable

import numpy as np
import torch

from .core import Array
from .functions import DifferentiableMultivariateFunction, DifferentiableVectorialFunction

TorchObjective = Callable[[torch.Tensor], torch.Tensor]


def _as_tensor(x: Array) -> torch.Tensor:
    arr = np.asarray(x, dtype=np.float64).reshape(-1)
    return torch.as_tensor(arr, dtype=torch.float64)


def autograd_gradient(objective: TorchObjective, params: torch.Tensor) -> torch.Tensor:
    """
    Compute the gradient of a scalar objective using PyTorch's autograd.

    Args:
        objective: Callable taking a 1D tensor of parameters and returning a
            scalar tensor.
        params: 1D parameter tensor.

    Returns:
        1D tensor containing gradients, same shape as params.

    Raises:
        ValueError: If params is not 1D or the objective is not scalar.
        RuntimeError: If autograd did not produce gradients for params.
    """
    if params.ndim != 1:
        raise ValueError(f"params must be a 1D tensor, got shape {tuple(params.shape)}")

    params_local = params.clone().detach().requires_grad_(True)
    value = objective(params_local)
    if value.ndim != 0:
        raise ValueError(
            f"objective must return a scalar tensor (0D), got shape {tuple(value.shape)}"
        )

    value.backward()
    grad = params_local.grad
    if grad is None:
        raise RuntimeError("Autograd did not produce gradients for params.")
    return grad.detach()


def torch_value(fun: TorchObjective) -> Callable[[Array], Array]:
    """NumPy wrapper around a torch function (scalar or vector output)."""

    def value(x: Array):
        with torch.no_grad():
            out = fun(_as_tensor(x))
        arr = out.detach().cpu().numpy()
        return float(arr) if arr.ndim == 0 else arr.astype(float)

    return value


def torch_gradient(fun: TorchObjective) -> Callable[[Array], Array]:
    """Gradient callable of a scalar torch objective."""

    def gradient(x: Array) -> Array:
        return autograd_gradient(fun, _as_tensor(x)).cpu().numpy()

    return gradient


def torch_jacobian(fun: TorchObjective) -> Callable[[Array], Array]:
    """Jacobian callable of a vector torch model; shape ``(m, n)``."""

    def jacobian(x: Array) -> Array:
        params = _as_tensor(x)
        jac = torch.autograd.functional.jacobian(fun, params)
        if jac.ndim == 1:
            jac = jac.reshape(1, -1)
        return jac.detach().cpu().numpy()

    return jacobian


def autograd_function(fun: TorchObjective) -> DifferentiableMultivariateFunction:
    """Scalar objective whose gradient comes from autograd."""
    return DifferentiableMultivariateFunction(torch_value(fun), grad=torch_gradient(fun))


def autograd_vectorial_function(fun: TorchObjective) -> DifferentiableVectorialFunction:
    """Vector model whose Jacobian comes from autograd."""
    return DifferentiableVectorialFunction(torch_value(fun), jac=torch_jacobian(fun))


__all__ = [
    "autograd_function",
    "autograd_gradient",
    "autograd_vectorial_function",
    "torch_gradient",
    "torch_jacobian",
    "torch_value",
]
