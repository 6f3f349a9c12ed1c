"""Wrappers pairing user functions with their derivatives.

The optimizers never call user callables directly: they go through
:class:`DifferentiableMultivariateFunction` (scalar objective + gradient) or
:class:`DifferentiableVectorialFunction` (vector model + Jacobian). When no
derivative is supplied a central finite-difference approximation is used.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..exceptions import DimensionMismatchError, FunctionEvaluationError
from .core import Array, Gradient, Jacobian, Objective, VectorFunction
from .utils import approx_grad, approx_jacobian


class DifferentiableMultivariateFunction:
    """Scalar function of a vector argument together with its gradient."""

    def __init__(
        self,
        fun: Objective,
        grad: Optional[Gradient] = None,
        eps: float = 1e-6,
    ) -> None:
        if eps <= 0:
            raise ValueError("eps must be positive")
        self.fun = fun
        self.grad = grad
        self.eps = eps

    @property
    def has_exact_gradient(self) -> bool:
        return self.grad is not None

    def value(self, x: Array) -> float:
        return float(self.fun(np.asarray(x, dtype=float)))

    def gradient(self, x: Array) -> Array:
        x = np.asarray(x, dtype=float)
        if self.grad is not None:
            g = np.asarray(self.grad(x), dtype=float).reshape(-1)
        else:
            g = approx_grad(self.fun, x, eps=self.eps)
        if g.size != x.size:
            raise FunctionEvaluationError(
                f"gradient has {g.size} entries for {x.size} parameters", x
            )
        return g

    __call__ = value


class DifferentiableVectorialFunction:
    """Vector-valued model ``f: R^n -> R^m`` together with its Jacobian."""

    def __init__(
        self,
        fun: VectorFunction,
        jac: Optional[Jacobian] = None,
        eps: float = 1e-6,
    ) -> None:
        if eps <= 0:
            raise ValueError("eps must be positive")
        self.fun = fun
        self.jac = jac
        self.eps = eps

    @property
    def has_exact_jacobian(self) -> bool:
        return self.jac is not None

    def value(self, x: Array) -> Array:
        return np.asarray(self.fun(np.asarray(x, dtype=float)), dtype=float).reshape(-1)

    def jacobian(self, x: Array) -> Array:
        x = np.asarray(x, dtype=float)
        if self.jac is not None:
            jac = np.asarray(self.jac(x), dtype=float)
        else:
            jac = approx_jacobian(self.value, x, eps=self.eps)
        if jac.ndim == 1:
            jac = jac.reshape(-1, x.size) if x.size else jac.reshape(-1, 0)
        return jac

    __call__ = value


def as_vectorial(function, jac: Optional[Jacobian] = None) -> DifferentiableVectorialFunction:
    """Wrap a plain callable unless it already is a vectorial function."""
    if isinstance(function, DifferentiableVectorialFunction):
        return function
    return DifferentiableVectorialFunction(function, jac=jac)


def as_differentiable(function, grad: Optional[Gradient] = None):
    """Wrap a plain callable unless it already exposes ``value``/``gradient``."""
    if hasattr(function, "value") and hasattr(function, "gradient"):
        return function
    return DifferentiableMultivariateFunction(function, grad=grad)


class LeastSquaresConverter:
    """Turn a vector model and observations into a scalar sum of squares.

    With ``weights`` the value is ``sum_i w_i (f_i(x) - y_i)^2``; with a
    ``scale`` matrix ``S`` it is ``|S (f(x) - y)|^2``; otherwise the plain
    sum of squared residuals. When the model has an exact Jacobian the
    converter also provides the exact gradient, so it can be handed to
    :class:`~mercury.optimize.conjugate_gradient.NonLinearConjugateGradientOptimizer`.
    """

    def __init__(
        self,
        function,
        observations: Array,
        weights: Optional[Array] = None,
        scale: Optional[Array] = None,
    ) -> None:
        if weights is not None and scale is not None:
            raise ValueError("weights and scale are mutually exclusive")
        self.function = as_vectorial(function)
        self.observations = np.array(observations, dtype=float).reshape(-1)
        self.weights = None
        self.scale = None
        if weights is not None:
            weights = np.array(weights, dtype=float).reshape(-1)
            if weights.size != self.observations.size:
                raise DimensionMismatchError(weights.size, self.observations.size, "weights")
            self.weights = weights
        if scale is not None:
            scale = np.array(scale, dtype=float)
            if scale.ndim != 2 or scale.shape[1] != self.observations.size:
                raise DimensionMismatchError(
                    scale.shape[-1], self.observations.size, "scale columns"
                )
            self.scale = scale

    def _residuals(self, x: Array) -> Array:
        values = self.function.value(x)
        if values.size != self.observations.size:
            raise FunctionEvaluationError(
                f"model returned {values.size} values for "
                f"{self.observations.size} observations",
                x,
            )
        return values - self.observations

    def value(self, x: Array) -> float:
        r = self._residuals(x)
        if self.weights is not None:
            return float(np.dot(self.weights * r, r))
        if self.scale is not None:
            y = self.scale @ r
            return float(np.dot(y, y))
        return float(np.dot(r, r))

    def gradient(self, x: Array) -> Array:
        x = np.asarray(x, dtype=float)
        if not self.function.has_exact_jacobian:
            return approx_grad(self.value, x)
        r = self._residuals(x)
        jac = self.function.jacobian(x)
        if self.weights is not None:
            return 2.0 * jac.T @ (self.weights * r)
        if self.scale is not None:
            return 2.0 * jac.T @ (self.scale.T @ (self.scale @ r))
        return 2.0 * jac.T @ r

    __call__ = value


__all__ = [
    "DifferentiableMultivariateFunction",
    "DifferentiableVectorialFunction",
    "LeastSquaresConverter",
    "as_differentiable",
    "as_vectorial",
]
