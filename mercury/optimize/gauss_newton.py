"""Gauss-Newton least-squares optimizer.

Each iteration linearises the model around the current point and solves
the weighted normal equations

    (J^T W J) dx = J^T W (target - f(x))

for the parameter update, by LU or by QR decomposition.

References:
    - Nocedal & Wright, *Numerical Optimization* (2006), section 10.3
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from ..exceptions import MaxCountExceededError, OptimizationError
from ..logging import get_logger
from .core import DEFAULT_MAX_ITERATIONS, Array, Jacobian, OptimizeResult, VectorialPointValuePair
from .functions import as_vectorial
from .least_squares import LeastSquaresOptimizer
from .utils import normal_equations, solve_lu, solve_qr

logger = get_logger(__name__)


class GaussNewtonOptimizer(LeastSquaresOptimizer):
    """Gauss-Newton iterations on the weighted normal equations.

    Parameters
    ----------
    use_lu:
        Solve the normal equations by LU decomposition when True, by QR
        decomposition otherwise.

    Other keyword arguments are forwarded to
    :class:`~mercury.optimize.least_squares.LeastSquaresOptimizer`.

    Example
    -------
    >>> import numpy as np
    >>> from mercury.optimize import GaussNewtonOptimizer
    >>> xs = np.array([0.0, 1.0, 2.0, 3.0])
    >>> model = lambda p: p[0] + p[1] * xs
    >>> opt = GaussNewtonOptimizer()
    >>> pair = opt.optimize(model, 1.0 + 2.0 * xs, np.ones(4), [0.0, 0.0])
    >>> np.round(pair.point, 6).tolist()
    [1.0, 2.0]
    """

    def __init__(self, use_lu: bool = True, **kwargs) -> None:
        super().__init__(**kwargs)
        self.use_lu = use_lu

    def _do_optimize(self) -> VectorialPointValuePair:
        current: Optional[VectorialPointValuePair] = None
        converged = False
        while not converged:
            self._increment_iterations_counter()

            previous = current
            self._update_residuals_and_cost()
            self._update_jacobian()
            current = VectorialPointValuePair(self._point, self._objective)

            # stored jacobian rows are the residual gradients, hence f - target
            a, b = normal_equations(
                self._jacobian, self._objective - self._target, self._weights
            )
            try:
                dx = solve_lu(a, b) if self.use_lu else solve_qr(a, b)
            except OptimizationError as exc:
                raise OptimizationError("unable to solve singular problem") from exc

            self._point = self._point + dx
            logger.debug(
                "iteration %d: cost=%.6g |dx|=%.3g",
                self.iterations,
                self.cost,
                float(np.linalg.norm(dx)),
            )

            if previous is not None:
                converged = self.checker.converged(self.iterations, previous, current)

        return current


def gauss_newton(
    fun,
    x0: Array,
    target: Array,
    weights: Optional[Array] = None,
    jac: Optional[Jacobian] = None,
    use_lu: bool = True,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    max_evaluations: Optional[int] = None,
    checker=None,
) -> OptimizeResult:
    """Fit ``fun`` to ``target`` with Gauss-Newton and report an ``OptimizeResult``.

    Unlike :meth:`GaussNewtonOptimizer.optimize`, exhausting the iteration or
    evaluation budget does not raise: the result carries ``success=False``
    and the last point reached. That point has not been evaluated by the
    optimizer, so the model is evaluated there once more and ``fun``,
    ``cost``, ``rms`` and ``residuals`` describe it; ``nfev`` includes this
    extra evaluation.
    """
    target = np.asarray(target, dtype=float).reshape(-1)
    if weights is None:
        weights = np.ones_like(target)
    weights = np.asarray(weights, dtype=float).reshape(-1)
    function = as_vectorial(fun, jac=jac)
    optimizer = GaussNewtonOptimizer(
        use_lu=use_lu,
        max_iterations=max_iterations,
        max_evaluations=max_evaluations,
        checker=checker,
    )
    try:
        pair = optimizer.optimize(function, target, weights, x0)
    except MaxCountExceededError as exc:
        logger.warning("gauss_newton stopped early: %s", exc)
        x = exc.point if exc.point is not None else np.asarray(x0, dtype=float)
        residuals = target - function.value(x)
        chi_square = float(np.dot(weights * residuals, residuals))
        nfev = optimizer.evaluations
        if optimizer.max_evaluations is not None:
            nfev = min(nfev, optimizer.max_evaluations)
        return OptimizeResult(
            x=x,
            fun=chi_square,
            nit=optimizer.iterations,
            success=False,
            message=str(exc).capitalize() + ".",
            nfev=nfev + 1,
            njev=optimizer.jacobian_evaluations,
            cost=math.sqrt(chi_square),
            rms=math.sqrt(chi_square / target.size) if target.size else None,
            residuals=residuals,
        )
    return OptimizeResult(
        x=pair.point,
        fun=optimizer.chi_square,
        nit=optimizer.iterations,
        success=True,
        message="Convergence checker satisfied.",
        nfev=optimizer.evaluations,
        njev=optimizer.jacobian_evaluations,
        cost=optimizer.cost,
        rms=optimizer.get_rms() if optimizer.rows else None,
        residuals=optimizer.residuals,
    )


__all__ = ["GaussNewtonOptimizer", "gauss_newton"]
