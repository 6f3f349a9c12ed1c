"""Nonlinear least-squares and gradient-based optimizers.

Example
-------
>>> import numpy as np
>>> from mercury.optimize import gauss_newton
>>> t = np.linspace(0.0, 1.0, 20)
>>> y = 2.0 * np.exp(-1.5 * t)
>>> res = gauss_newton(lambda p: p[0] * np.exp(-p[1] * t), [1.0, 1.0], y)
>>> res.success
True
>>> np.round(res.x, 6).tolist()
[2.0, 1.5]
"""

from .autodiff import (
    autograd_function,
    autograd_gradient,
    autograd_vectorial_function,
    torch_gradient,
    torch_jacobian,
)
from .conjugate_gradient import (
    DiagonalPreconditioner,
    IdentityPreconditioner,
    NonLinearConjugateGradientOptimizer,
    Preconditioner,
    nonlinear_cg,
)
from .convergence import (
    SimpleRealPointChecker,
    SimpleScalarValueChecker,
    SimpleVectorialPointChecker,
    SimpleVectorialValueChecker,
)
from .core import (
    DEFAULT_MAX_ITERATIONS,
    ConjugateGradientFormula,
    GoalType,
    OptimizeResult,
    PointValuePair,
    VectorialPointValuePair,
)
from .functions import (
    DifferentiableMultivariateFunction,
    DifferentiableVectorialFunction,
    LeastSquaresConverter,
)
from .gauss_newton import GaussNewtonOptimizer, gauss_newton
from .least_squares import LeastSquaresOptimizer
from .scalar import ScalarDifferentiableOptimizer
from .solvers import BisectionSolver, BrentSolver, find_upper_bound
from .utils import approx_grad, approx_jacobian

__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "BisectionSolver",
    "BrentSolver",
    "ConjugateGradientFormula",
    "DiagonalPreconditioner",
    "DifferentiableMultivariateFunction",
    "DifferentiableVectorialFunction",
    "GaussNewtonOptimizer",
    "GoalType",
    "IdentityPreconditioner",
    "LeastSquaresConverter",
    "LeastSquaresOptimizer",
    "NonLinearConjugateGradientOptimizer",
    "OptimizeResult",
    "PointValuePair",
    "Preconditioner",
    "ScalarDifferentiableOptimizer",
    "SimpleRealPointChecker",
    "SimpleScalarValueChecker",
    "SimpleVectorialPointChecker",
    "SimpleVectorialValueChecker",
    "VectorialPointValuePair",
    "approx_grad",
    "approx_jacobian",
    "autograd_function",
    "autograd_gradient",
    "autograd_vectorial_function",
    "find_upper_bound",
    "gauss_newton",
    "nonlinear_cg",
    "torch_gradient",
    "torch_jacobian",
]
