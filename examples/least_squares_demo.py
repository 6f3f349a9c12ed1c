"""
Example: Least-squares fitting and conjugate-gradient minimization with Mercury

Fits an exponential decay with Gauss-Newton, a Gaussian peak with the
curve-fitting helpers, and minimizes a badly scaled quadratic with
preconditioned nonlinear conjugate gradient.
"""

import numpy as np

from mercury import GaussianFitter, PolynomialFitter
from mercury.optimize import (
    BrentSolver,
    ConjugateGradientFormula,
    DiagonalPreconditioner,
    GaussNewtonOptimizer,
    GoalType,
    NonLinearConjugateGradientOptimizer,
    SimpleScalarValueChecker,
    SimpleVectorialValueChecker,
    gauss_newton,
)


def example_exponential_decay(rng: np.random.Generator):
    """Example: Radioactive decay counts fitted with Gauss-Newton."""
    print("=" * 60)
    print("Example 1: Gauss-Newton - Exponential Decay")
    print("=" * 60)

    t = np.linspace(0.0, 4.0, 30)
    counts = 120.0 * np.exp(-0.9 * t) + rng.normal(0.0, 1.0, t.size)

    def model(p: np.ndarray) -> np.ndarray:
        return p[0] * np.exp(-p[1] * t)

    def jac(p: np.ndarray) -> np.ndarray:
        e = np.exp(-p[1] * t)
        return np.column_stack([e, -p[0] * t * e])

    res = gauss_newton(
        model,
        [100.0, 1.0],
        counts,
        jac=jac,
        checker=SimpleVectorialValueChecker(1e-10, 1e-12),
    )
    print(f"Success: {res.success}")
    print(f"Fitted amplitude, rate: {res.x}")
    print(f"RMS residual: {res.rms:.4f}")
    print(f"Iterations: {res.nit}")
    print()


def example_curve_fitting(rng: np.random.Generator):
    """Example: Peak and baseline fits with the curve-fitting helpers."""
    print("=" * 60)
    print("Example 2: Curve Fitting - Gaussian Peak and Quadratic Baseline")
    print("=" * 60)

    checker = SimpleVectorialValueChecker(1e-9, 1e-12)
    optimizer = GaussNewtonOptimizer(checker=checker)

    peak = GaussianFitter(optimizer)
    for x in np.linspace(-3.0, 3.0, 50):
        y = 0.2 + 2.0 * np.exp(-((x - 0.4) ** 2) / (2 * 0.6**2))
        peak.add_observed_point(x, y + rng.normal(0.0, 0.01))
    gaussian = peak.fit()
    print(f"Gaussian: a={gaussian.a:.3f} b={gaussian.b:.3f} c={gaussian.c:.3f} d={abs(gaussian.d):.3f}")
    print(f"Parameter errors: {optimizer.guess_parameters_errors()}")

    baseline = PolynomialFitter(2, GaussNewtonOptimizer(checker=checker))
    for x in np.linspace(0.0, 10.0, 20):
        baseline.add_observed_point(x, 1.0 - 0.3 * x + 0.05 * x**2 + rng.normal(0.0, 0.05))
    print(f"Baseline polynomial: {baseline.fit()}")
    print()


def example_conjugate_gradient():
    """Example: Preconditioned conjugate gradient on a badly scaled quadratic."""
    print("=" * 60)
    print("Example 3: Nonlinear Conjugate Gradient - Preconditioning")
    print("=" * 60)

    scale = np.array([1.0, 50.0, 2500.0])
    target = np.array([1.0, -1.0, 0.5])

    def fun(x: np.ndarray) -> float:
        return float(0.5 * np.sum(scale * (x - target) ** 2) + 1.0)

    def grad(x: np.ndarray) -> np.ndarray:
        return scale * (x - target)

    for name, preconditioner in [("identity", None), ("diagonal", DiagonalPreconditioner(scale))]:
        optimizer = NonLinearConjugateGradientOptimizer(
            update_formula=ConjugateGradientFormula.POLAK_RIBIERE,
            preconditioner=preconditioner,
            line_search_solver=BrentSolver(absolute_accuracy=1e-12),
            checker=SimpleScalarValueChecker(1e-12, 1e-14),
            max_iterations=500,
        )
        pair = optimizer.optimize(fun, GoalType.MINIMIZE, np.zeros(3), grad=grad)
        print(
            f"{name:>8} preconditioner: x = {np.round(pair.point, 6)}, "
            f"iterations = {optimizer.iterations}"
        )
    print()


def main():
    """Run all examples."""
    rng = np.random.default_rng(7)
    print("\n" + "=" * 60)
    print("Mercury Optimization Examples")
    print("=" * 60 + "\n")

    example_exponential_decay(rng)
    example_curve_fitting(rng)
    example_conjugate_gradient()

    print("=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
