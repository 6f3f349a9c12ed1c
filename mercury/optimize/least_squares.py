"""Base class for weighted nonlinear least-squares optimizers.

A least-squares problem fits the parameters ``x`` of a vector model
``f: R^n -> R^m`` to ``m`` observed ``target`` values by minimising

    chi^2(x) = sum_i w_i (target_i - f_i(x))^2

The base class owns everything that does not depend on the iteration
scheme: budgets and counters, residual / cost bookkeeping, the (weighted)
Jacobian, and the covariance-based error estimates available once a
solution has been found. Subclasses implement :meth:`_do_optimize`.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..diagnostics import assert_finite, is_debug_enabled
from ..exceptions import (
    DimensionMismatchError,
    FunctionEvaluationError,
    MaxEvaluationsExceededError,
    MaxIterationsExceededError,
    OptimizationError,
)
from ..logging import get_logger
from .convergence import SimpleVectorialValueChecker
from .core import DEFAULT_MAX_ITERATIONS, Array, Jacobian, VectorialPointValuePair
from .functions import as_vectorial
from .utils import invert

logger = get_logger(__name__)


class LeastSquaresOptimizer(ABC):
    """Shared machinery for least-squares optimizers.

    Parameters
    ----------
    max_iterations:
        Iteration budget; exceeding it raises
        :class:`~mercury.exceptions.MaxIterationsExceededError`.
    max_evaluations:
        Model evaluation budget, ``None`` for unbounded.
    checker:
        Vectorial convergence checker, defaults to
        :class:`~mercury.optimize.convergence.SimpleVectorialValueChecker`.
    """

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        max_evaluations: Optional[int] = None,
        checker=None,
    ) -> None:
        self.max_iterations = max_iterations
        self.max_evaluations = max_evaluations
        self.checker = checker if checker is not None else SimpleVectorialValueChecker()

        self._iterations = 0
        self._evaluations = 0
        self._jacobian_evaluations = 0

        self._function = None
        self._target: Array = np.zeros(0)
        self._weights: Array = np.zeros(0)
        self._sqrt_weights: Array = np.zeros(0)
        self._point: Array = np.zeros(0)
        self._objective: Array = np.zeros(0)
        self._residuals: Array = np.zeros(0)
        self._weighted_residuals: Array = np.zeros(0)
        # Jacobian of the residuals, i.e. the negated model Jacobian
        self._jacobian: Array = np.zeros((0, 0))
        self._weighted_jacobian: Array = np.zeros((0, 0))
        self._cost = math.inf

    # ------------------------------------------------------------------
    # settings and counters

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, value: int) -> None:
        if value < 0:
            raise ValueError("max_iterations must be non-negative")
        self._max_iterations = int(value)

    @property
    def max_evaluations(self) -> Optional[int]:
        return self._max_evaluations

    @max_evaluations.setter
    def max_evaluations(self, value: Optional[int]) -> None:
        if value is not None and value < 0:
            raise ValueError("max_evaluations must be non-negative")
        self._max_evaluations = value

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def evaluations(self) -> int:
        return self._evaluations

    @property
    def jacobian_evaluations(self) -> int:
        return self._jacobian_evaluations

    @property
    def rows(self) -> int:
        return self._target.size

    @property
    def cols(self) -> int:
        return self._point.size

    # ------------------------------------------------------------------
    # statistics

    @property
    def cost(self) -> float:
        """Square root of the weighted sum of squared residuals."""
        return self._cost

    @property
    def chi_square(self) -> float:
        return self._cost * self._cost

    def get_rms(self) -> float:
        """Root mean square of the weighted residuals, ``sqrt(chi^2 / m)``."""
        return math.sqrt(self.chi_square / self.rows)

    @property
    def residuals(self) -> Array:
        return self._residuals.copy()

    def get_covariances(self) -> Array:
        """Covariance matrix ``(J^T W J)^-1`` of the fitted parameters.

        Re-evaluates the Jacobian at the current point.

        Raises:
            OptimizationError: If ``J^T W J`` is singular.
        """
        self._update_jacobian()
        jw = self._weighted_jacobian
        return invert(jw.T @ jw)

    def guess_parameters_errors(self) -> Array:
        """Rough standard errors of the fitted parameters.

        Scales the square roots of the covariance diagonal by
        ``sqrt(chi^2 / (m - n))``.

        Raises:
            OptimizationError: If there are no degrees of freedom
                (``m <= n``) or the covariance matrix is singular.
        """
        if self.rows <= self.cols:
            raise OptimizationError(
                f"no degrees of freedom ({self.rows} measurements, "
                f"{self.cols} parameters)"
            )
        c = math.sqrt(self.chi_square / (self.rows - self.cols))
        covariances = self.get_covariances()
        return np.sqrt(np.diag(covariances)) * c

    # ------------------------------------------------------------------
    # optimization driver

    def optimize(
        self,
        function,
        target: Array,
        weights: Array,
        start_point: Array,
        jac: Optional[Jacobian] = None,
    ) -> VectorialPointValuePair:
        """Fit the model ``function`` to ``target``.

        Parameters
        ----------
        function:
            A :class:`~mercury.optimize.functions.DifferentiableVectorialFunction`
            or a plain callable returning the ``m`` model values.
        target:
            Observed values, shape ``(m,)``.
        weights:
            Non-negative weight of each observation, shape ``(m,)``.
        start_point:
            Initial parameters, shape ``(n,)``.
        jac:
            Jacobian callable used when ``function`` is a plain callable.

        Returns
        -------
        VectorialPointValuePair
            The converged parameters and the model values there.
        """
        target = np.array(target, dtype=float).reshape(-1)
        weights = np.array(weights, dtype=float).reshape(-1)
        if target.size != weights.size:
            raise DimensionMismatchError(weights.size, target.size, "weights")
        if np.any(weights < 0):
            raise ValueError("weights must be non-negative")

        self._iterations = 0
        self._evaluations = 0
        self._jacobian_evaluations = 0

        self._function = as_vectorial(function, jac=jac)
        self._target = target
        self._weights = weights
        self._sqrt_weights = np.sqrt(weights)
        self._point = np.array(start_point, dtype=float).reshape(-1)
        self._objective = np.zeros(self.rows)
        self._residuals = np.zeros(self.rows)
        self._weighted_residuals = np.zeros(self.rows)
        self._jacobian = np.zeros((self.rows, self.cols))
        self._weighted_jacobian = np.zeros((self.rows, self.cols))
        self._cost = math.inf

        logger.info(
            "%s: fitting %d parameters to %d observations",
            type(self).__name__,
            self.cols,
            self.rows,
        )
        result = self._do_optimize()
        logger.info(
            "%s: converged after %d iterations (cost=%.6g, evaluations=%d)",
            type(self).__name__,
            self._iterations,
            self._cost,
            self._evaluations,
        )
        return result

    @abstractmethod
    def _do_optimize(self) -> VectorialPointValuePair:
        """Run the iteration scheme from ``self._point``."""

    # ------------------------------------------------------------------
    # helpers for subclasses

    def _increment_iterations_counter(self) -> None:
        self._iterations += 1
        if self._iterations > self._max_iterations:
            raise MaxIterationsExceededError(self._max_iterations, self._point)

    def _update_residuals_and_cost(self) -> None:
        """Evaluate the model at the current point and refresh residuals and cost."""
        self._evaluations += 1
        if self._max_evaluations is not None and self._evaluations > self._max_evaluations:
            raise MaxEvaluationsExceededError(self._max_evaluations, self._point)

        objective = self._function.value(self._point)
        if objective.size != self.rows:
            raise FunctionEvaluationError(
                f"model returned {objective.size} values for {self.rows} observations",
                self._point,
            )
        if is_debug_enabled():
            assert_finite(objective, "model value", self._point)

        self._objective = objective
        self._residuals = self._target - objective
        self._weighted_residuals = self._residuals * self._sqrt_weights
        self._cost = math.sqrt(float(np.dot(self._weighted_residuals, self._weighted_residuals)))

    def _update_jacobian(self) -> None:
        """Evaluate the model Jacobian at the current point."""
        self._jacobian_evaluations += 1
        jacobian = self._function.jacobian(self._point)
        if jacobian.shape != (self.rows, self.cols):
            raise FunctionEvaluationError(
                f"jacobian has shape {jacobian.shape}, expected {(self.rows, self.cols)}",
                self._point,
            )
        if is_debug_enabled():
            assert_finite(jacobian, "jacobian", self._point)

        self._jacobian = -jacobian
        self._weighted_jacobian = self._jacobian * self._sqrt_weights[:, None]


__all__ = ["LeastSquaresOptimizer"]
