"""mercury - nonlinear least-squares and conjugate-gradient optimizers on NumPy."""

__version__ = "0.1.0"

# Curve fitting
from .fitting import (
    CurveFitter,
    GaussianFitter,
    GaussianFunction,
    HarmonicFitter,
    HarmonicFunction,
    PolynomialFitter,
    WeightedObservedPoint,
)

# Diagnostics, errors and logging
from .diagnostics import debug_context, is_debug_enabled, set_debug_enabled
from .exceptions import (
    ConvergenceError,
    DimensionMismatchError,
    FunctionEvaluationError,
    MaxCountExceededError,
    MaxEvaluationsExceededError,
    MaxIterationsExceededError,
    MercuryError,
    NoBracketingError,
    OptimizationError,
)
from .logging import configure_logging, get_logger, set_log_level

# Optimization
from .optimize import (
    ConjugateGradientFormula,
    DifferentiableMultivariateFunction,
    DifferentiableVectorialFunction,
    GaussNewtonOptimizer,
    GoalType,
    LeastSquaresConverter,
    LeastSquaresOptimizer,
    NonLinearConjugateGradientOptimizer,
    OptimizeResult,
    PointValuePair,
    ScalarDifferentiableOptimizer,
    SimpleRealPointChecker,
    SimpleScalarValueChecker,
    SimpleVectorialPointChecker,
    SimpleVectorialValueChecker,
    VectorialPointValuePair,
    gauss_newton,
    nonlinear_cg,
)

__all__ = [
    "__version__",
    # Optimization
    "ConjugateGradientFormula",
    "DifferentiableMultivariateFunction",
    "DifferentiableVectorialFunction",
    "GaussNewtonOptimizer",
    "GoalType",
    "LeastSquaresConverter",
    "LeastSquaresOptimizer",
    "NonLinearConjugateGradientOptimizer",
    "OptimizeResult",
    "PointValuePair",
    "ScalarDifferentiableOptimizer",
    "SimpleRealPointChecker",
    "SimpleScalarValueChecker",
    "SimpleVectorialPointChecker",
    "SimpleVectorialValueChecker",
    "VectorialPointValuePair",
    "gauss_newton",
    "nonlinear_cg",
    # Curve fitting
    "CurveFitter",
    "GaussianFitter",
    "GaussianFunction",
    "HarmonicFitter",
    "HarmonicFunction",
    "PolynomialFitter",
    "WeightedObservedPoint",
    # Errors
    "ConvergenceError",
    "DimensionMismatchError",
    "FunctionEvaluationError",
    "MaxCountExceededError",
    "MaxEvaluationsExceededError",
    "MaxIterationsExceededError",
    "MercuryError",
    "NoBracketingError",
    "OptimizationError",
    # Diagnostics and logging
    "configure_logging",
    "debug_context",
    "get_logger",
    "is_debug_enabled",
    "set_debug_enabled",
    "set_log_level",
]
