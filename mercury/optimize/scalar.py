"""Base class for gradient-based optimizers of scalar objectives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..diagnostics import assert_finite, is_debug_enabled
from ..exceptions import (
    FunctionEvaluationError,
    MaxEvaluationsExceededError,
    MaxIterationsExceededError,
)
from ..logging import get_logger
from .convergence import SimpleScalarValueChecker
from .core import DEFAULT_MAX_ITERATIONS, Array, GoalType, Gradient, PointValuePair
from .functions import as_differentiable

logger = get_logger(__name__)


class ScalarDifferentiableOptimizer(ABC):
    """Budgets, counters and evaluation plumbing for scalar optimizers.

    Parameters
    ----------
    max_iterations:
        Iteration budget; exceeding it raises
        :class:`~mercury.exceptions.MaxIterationsExceededError`.
    max_evaluations:
        Objective evaluation budget, ``None`` for unbounded.
    checker:
        Scalar convergence checker, defaults to
        :class:`~mercury.optimize.convergence.SimpleScalarValueChecker`.
    """

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        max_evaluations: Optional[int] = None,
        checker=None,
    ) -> None:
        self.max_iterations = max_iterations
        self.max_evaluations = max_evaluations
        self.checker = checker if checker is not None else SimpleScalarValueChecker()

        self._iterations = 0
        self._evaluations = 0
        self._gradient_evaluations = 0
        self._function = None
        self.goal = GoalType.MINIMIZE
        self._point: Array = np.zeros(0)

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
    def gradient_evaluations(self) -> int:
        return self._gradient_evaluations

    def optimize(
        self,
        function,
        goal: GoalType,
        start_point: Array,
        grad: Optional[Gradient] = None,
    ) -> PointValuePair:
        """Optimize ``function`` from ``start_point``.

        ``function`` is either an object with ``value``/``gradient`` methods
        (for instance :class:`~mercury.optimize.functions.LeastSquaresConverter`)
        or a plain callable, in which case ``grad`` supplies the gradient and
        finite differences are used when it is omitted.
        """
        if not isinstance(goal, GoalType):
            raise ValueError(f"goal must be a GoalType, got {goal!r}")
        self._iterations = 0
        self._evaluations = 0
        self._gradient_evaluations = 0

        self._function = as_differentiable(function, grad=grad)
        self.goal = goal
        self._point = np.array(start_point, dtype=float).reshape(-1)

        logger.info(
            "%s: %s over %d parameters",
            type(self).__name__,
            goal.value,
            self._point.size,
        )
        result = self._do_optimize()
        logger.info(
            "%s: converged after %d iterations (value=%.6g, evaluations=%d)",
            type(self).__name__,
            self._iterations,
            result.value,
            self._evaluations,
        )
        return result

    @abstractmethod
    def _do_optimize(self) -> PointValuePair:
        """Run the iteration scheme from ``self._point``."""

    def _increment_iterations_counter(self) -> None:
        self._iterations += 1
        if self._iterations > self.max_iterations:
            raise MaxIterationsExceededError(self.max_iterations, self._point)

    def _compute_objective_value(self, point: Array) -> float:
        self._evaluations += 1
        if self.max_evaluations is not None and self._evaluations > self.max_evaluations:
            raise MaxEvaluationsExceededError(self.max_evaluations, point)
        value = self._function.value(point)
        if is_debug_enabled():
            assert_finite(value, "objective value", point)
        return value

    def _compute_objective_gradient(self, point: Array) -> Array:
        self._gradient_evaluations += 1
        gradient = np.asarray(self._function.gradient(point), dtype=float).reshape(-1)
        if gradient.size != point.size:
            raise FunctionEvaluationError(
                f"gradient has {gradient.size} entries for {point.size} parameters", point
            )
        if is_debug_enabled():
            assert_finite(gradient, "gradient", point)
        return gradient


__all__ = ["ScalarDifferentiableOptimizer"]
