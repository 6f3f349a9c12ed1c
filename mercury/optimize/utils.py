"""Finite differences and the linear algebra behind the normal equations.

These utilities avoid any dependency on SciPy and provide deterministic,
pure NumPy implementations suitable for small to medium scale problems.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from ..exceptions import OptimizationError

Array = np.ndarray
Objective = Callable[[Array], float]
VectorFunction = Callable[[Array], Array]


def approx_grad(
    fun: Objective, x: Array, eps: float = 1e-6, return_evals: bool = False
) -> Array | tuple[Array, int]:
    """Compute a central-difference gradient approximation.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    eps:
        Perturbation size for finite differences.
    return_evals:
        Also return the number of function evaluations spent.
    """
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float).copy()
    grad = np.zeros_like(x, dtype=float)
    evals = 0
    for i in range(x.size):
        ei = np.zeros_like(x)
        ei[i] = eps
        fx_plus = fun(x + ei)
        fx_minus = fun(x - ei)
        evals += 2
        grad[i] = (fx_plus - fx_minus) / (2.0 * eps)
    if return_evals:
        return grad, evals
    return grad


def approx_jacobian(
    fun: VectorFunction, x: Array, eps: float = 1e-6, return_evals: bool = False
) -> Array | tuple[Array, int]:
    """Central-difference Jacobian of a vector function.

    Row ``i`` holds the gradient of output ``i``; the result has shape
    ``(m, n)`` for ``m`` outputs and ``n`` parameters.
    """
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float).copy()
    columns = []
    evals = 0
    for i in range(x.size):
        ei = np.zeros_like(x)
        ei[i] = eps
        f_plus = np.asarray(fun(x + ei), dtype=float)
        f_minus = np.asarray(fun(x - ei), dtype=float)
        evals += 2
        columns.append((f_plus - f_minus) / (2.0 * eps))
    if columns:
        jac = np.stack(columns, axis=1)
    else:
        jac = np.zeros((np.asarray(fun(x)).size, 0))
        evals += 1
    if return_evals:
        return jac, evals
    return jac


def normal_equations(
    jacobian: Array, residuals: Array, weights: Array
) -> tuple[Array, Array]:
    """Build the weighted normal equations ``A = J^T W J`` and ``b = J^T W r``."""
    weighted = jacobian * weights[:, None]
    a = jacobian.T @ weighted
    b = weighted.T @ residuals
    return a, b


def solve_lu(a: Array, b: Array) -> Array:
    """Solve ``a x = b`` by LU decomposition, raising on a singular matrix."""
    try:
        x = np.linalg.solve(a, b)
    except np.linalg.LinAlgError as exc:
        raise OptimizationError("unable to solve: singular problem") from exc
    if not np.all(np.isfinite(x)):
        raise OptimizationError("unable to solve: singular problem")
    return x


def solve_qr(a: Array, b: Array, threshold: float | None = None) -> Array:
    """Solve ``a x = b`` through a QR decomposition.

    The matrix is declared singular when a diagonal entry of ``R`` is tiny
    relative to the largest one.
    """
    q, r = np.linalg.qr(a)
    diag = np.abs(np.diag(r))
    if threshold is None:
        threshold = max(a.shape) * np.finfo(float).eps
    scale = diag.max() if diag.size else 0.0
    if scale == 0.0 or np.any(diag <= threshold * scale):
        raise OptimizationError("unable to solve: singular problem")
    return np.linalg.solve(r, q.T @ b)


def invert(a: Array) -> Array:
    """Inverse of a square matrix, raising ``OptimizationError`` when singular."""
    try:
        inv = np.linalg.inv(a)
    except np.linalg.LinAlgError as exc:
        raise OptimizationError("unable to compute covariances: singular problem") from exc
    if not np.all(np.isfinite(inv)):
        raise OptimizationError("unable to compute covariances: singular problem")
    return inv


__all__ = [
    "Array",
    "Objective",
    "VectorFunction",
    "approx_grad",
    "approx_jacobian",
    "invert",
    "normal_equations",
    "solve_lu",
    "solve_qr",
]
