"""Nonlinear conjugate-gradient optimizer with exact line search.

The search direction is built from the (optionally preconditioned)
steepest-descent direction and the previous direction, with the ``beta``
parameter given by the Fletcher-Reeves or Polak-Ribiere formula. The step
along each direction is the root of the directional derivative
``phi'(a) = grad(x + a d) . d``, bracketed by :func:`find_upper_bound` and
located by a univariate root solver (Brent by default).

References:
    - Nocedal & Wright, *Numerical Optimization* (2006), section 5.2
    - Shewchuk, *An Introduction to the Conjugate Gradient Method Without
      the Agonizing Pain* (1994), appendix B5
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Union

import numpy as np

from ..exceptions import ConvergenceError, MaxCountExceededError, OptimizationError
from ..logging import get_logger
from .core import (
    DEFAULT_MAX_ITERATIONS,
    Array,
    ConjugateGradientFormula,
    GoalType,
    Gradient,
    OptimizeResult,
    PointValuePair,
)
from .functions import as_differentiable
from .scalar import ScalarDifferentiableOptimizer
from .solvers import BrentSolver, UnivariateSolver, find_upper_bound

logger = get_logger(__name__)


class Preconditioner(Protocol):
    """Maps the steepest-descent direction ``r`` at ``point`` to a better
    scaled one, typically ``M^-1 r`` for an approximation ``M`` of the Hessian."""

    def precondition(self, point: Array, r: Array) -> Array:
        ...


class IdentityPreconditioner:
    """No preconditioning: returns a copy of ``r``."""

    def precondition(self, point: Array, r: Array) -> Array:
        return np.array(r, dtype=float)


class DiagonalPreconditioner:
    """Jacobi preconditioning by a positive diagonal.

    ``diagonal`` is either a fixed vector or a callable returning the
    diagonal at the current point (for instance the Hessian diagonal).
    """

    def __init__(self, diagonal: Union[Array, Callable[[Array], Array]]) -> None:
        if callable(diagonal):
            self._diagonal_fn = diagonal
            self._diagonal = None
        else:
            self._diagonal_fn = None
            self._diagonal = self._check(np.asarray(diagonal, dtype=float))

    @staticmethod
    def _check(diagonal: Array) -> Array:
        if np.any(diagonal <= 0):
            raise ValueError("preconditioner diagonal must be strictly positive")
        return diagonal

    def precondition(self, point: Array, r: Array) -> Array:
        if self._diagonal_fn is not None:
            diagonal = self._check(np.asarray(self._diagonal_fn(point), dtype=float))
        else:
            diagonal = self._diagonal
        return np.asarray(r, dtype=float) / diagonal


class NonLinearConjugateGradientOptimizer(ScalarDifferentiableOptimizer):
    """Nonlinear conjugate gradient with preconditioning.

    Parameters
    ----------
    update_formula:
        Formula used for ``beta``.
    preconditioner:
        Preconditioner, identity when None.
    line_search_solver:
        Univariate root solver for the line search, Brent when None.
    initial_step:
        First trial step when bracketing the line-search root; a
        non-positive value resets it to 1.0.

    Other keyword arguments are forwarded to
    :class:`~mercury.optimize.scalar.ScalarDifferentiableOptimizer`.
    """

    def __init__(
        self,
        update_formula: ConjugateGradientFormula = ConjugateGradientFormula.POLAK_RIBIERE,
        preconditioner: Optional[Preconditioner] = None,
        line_search_solver: Optional[UnivariateSolver] = None,
        initial_step: float = 1.0,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        if not isinstance(update_formula, ConjugateGradientFormula):
            raise ValueError(f"unknown update formula {update_formula!r}")
        self.update_formula = update_formula
        self.set_preconditioner(preconditioner)
        self.set_line_search_solver(line_search_solver)
        self.set_initial_step(initial_step)

    def set_preconditioner(self, preconditioner: Optional[Preconditioner]) -> None:
        self.preconditioner = (
            preconditioner if preconditioner is not None else IdentityPreconditioner()
        )

    def set_line_search_solver(self, solver: Optional[UnivariateSolver]) -> None:
        self.line_search_solver = solver if solver is not None else BrentSolver()

    def set_initial_step(self, initial_step: float) -> None:
        self.initial_step = initial_step if initial_step > 0 else 1.0

    def _steepest(self, point: Array) -> Array:
        r = self._compute_objective_gradient(point)
        if self.goal is GoalType.MINIMIZE:
            r = -r
        return r

    def _line_search(self, direction: Array) -> float:
        point = self._point

        def directional_derivative(alpha: float) -> float:
            return float(np.dot(self._compute_objective_gradient(point + alpha * direction), direction))

        upper = find_upper_bound(directional_derivative, 0.0, self.initial_step)
        try:
            return self.line_search_solver.solve(directional_derivative, 0.0, upper)
        except ConvergenceError as exc:
            raise OptimizationError("line search did not converge") from exc

    def _do_optimize(self) -> PointValuePair:
        n = self._point.size
        if n == 0:
            raise ValueError("start point must have at least one parameter")

        r = self._steepest(self._point)
        steepest_descent = self.preconditioner.precondition(self._point, r)
        search_direction = steepest_descent.copy()
        delta = float(np.dot(r, search_direction))

        current: Optional[PointValuePair] = None
        while True:
            objective = self._compute_objective_value(self._point)
            previous = current
            current = PointValuePair(self._point, objective)
            if previous is not None and self.checker.converged(
                self.iterations, previous, current
            ):
                return current

            self._increment_iterations_counter()

            step = self._line_search(search_direction)
            self._point = self._point + step * search_direction

            r = self._steepest(self._point)
            delta_old = delta
            new_steepest_descent = self.preconditioner.precondition(self._point, r)
            delta = float(np.dot(r, new_steepest_descent))

            if delta_old == 0.0:
                beta = 0.0
            elif self.update_formula is ConjugateGradientFormula.FLETCHER_REEVES:
                beta = delta / delta_old
            else:
                delta_mid = float(np.dot(r, steepest_descent))
                beta = (delta - delta_mid) / delta_old
            steepest_descent = new_steepest_descent

            if self.iterations % n == 0 or beta < 0:
                # restart: drop conjugacy
                search_direction = steepest_descent.copy()
            else:
                search_direction = steepest_descent + beta * search_direction

            logger.debug(
                "iteration %d: value=%.6g step=%.3g beta=%.3g",
                self.iterations,
                objective,
                step,
                beta,
            )


def nonlinear_cg(
    fun,
    x0: Array,
    grad: Optional[Gradient] = None,
    formula: ConjugateGradientFormula = ConjugateGradientFormula.POLAK_RIBIERE,
    goal: GoalType = GoalType.MINIMIZE,
    preconditioner: Optional[Preconditioner] = None,
    line_search_solver: Optional[UnivariateSolver] = None,
    initial_step: float = 1.0,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    max_evaluations: Optional[int] = None,
    checker=None,
) -> OptimizeResult:
    """Run :class:`NonLinearConjugateGradientOptimizer` and report an ``OptimizeResult``.

    Exhausting the iteration or evaluation budget yields ``success=False``
    with the last point reached instead of raising. The objective is
    evaluated once more at that point to report ``fun``, and ``nfev``
    includes this extra evaluation.
    """
    function = as_differentiable(fun, grad=grad)
    optimizer = NonLinearConjugateGradientOptimizer(
        update_formula=formula,
        preconditioner=preconditioner,
        line_search_solver=line_search_solver,
        initial_step=initial_step,
        max_iterations=max_iterations,
        max_evaluations=max_evaluations,
        checker=checker,
    )
    try:
        pair = optimizer.optimize(function, goal, x0)
        x, value = pair.point, pair.value
        nfev = optimizer.evaluations
        success = True
        message = "Convergence checker satisfied."
    except MaxCountExceededError as exc:
        logger.warning("nonlinear_cg stopped early: %s", exc)
        x = exc.point if exc.point is not None else np.asarray(x0, dtype=float)
        value = function.value(x)
        nfev = optimizer.evaluations
        if optimizer.max_evaluations is not None:
            nfev = min(nfev, optimizer.max_evaluations)
        nfev += 1
        success = False
        message = str(exc).capitalize() + "."
    return OptimizeResult(
        x=x,
        fun=float(value),
        nit=optimizer.iterations,
        success=success,
        message=message,
        nfev=nfev,
        njev=optimizer.gradient_evaluations,
    )


__all__ = [
    "DiagonalPreconditioner",
    "IdentityPreconditioner",
    "NonLinearConjugateGradientOptimizer",
    "Preconditioner",
    "nonlinear_cg",
]
