import math

import numpy as np
import pytest

from mercury.exceptions import OptimizationError
from mercury.optimize import (
    DifferentiableVectorialFunction,
    GaussNewtonOptimizer,
    SimpleVectorialValueChecker,
)

X = np.array([0.0, 1.0, 2.0, 3.0, 4.0])
Y = np.array([1.0, 2.9, 5.2, 7.1, 8.8])


def line(p: np.ndarray) -> np.ndarray:
    return p[0] + p[1] * X


def line_jac(p: np.ndarray) -> np.ndarray:
    return np.column_stack([np.ones_like(X), X])


@pytest.fixture
def fitted() -> GaussNewtonOptimizer:
    optimizer = GaussNewtonOptimizer(checker=SimpleVectorialValueChecker(1e-12, 1e-14))
    optimizer.optimize(line, Y, np.ones(X.size), [0.0, 0.0], jac=line_jac)
    return optimizer


def test_cost_statistics(fitted: GaussNewtonOptimizer):
    design = line_jac(None)
    coef, *_ = np.linalg.lstsq(design, Y, rcond=None)
    residuals = Y - design @ coef
    chi2 = float(residuals @ residuals)

    assert fitted.rows == 5
    assert fitted.cols == 2
    assert fitted.chi_square == pytest.approx(chi2, rel=1e-8)
    assert fitted.cost == pytest.approx(math.sqrt(chi2), rel=1e-8)
    assert fitted.get_rms() == pytest.approx(math.sqrt(chi2 / 5), rel=1e-8)
    assert np.allclose(fitted.residuals, residuals, atol=1e-10)


def test_covariances_and_parameter_errors(fitted: GaussNewtonOptimizer):
    design = line_jac(None)
    expected_cov = np.linalg.inv(design.T @ design)
    cov = fitted.get_covariances()
    assert np.allclose(cov, expected_cov)

    errors = fitted.guess_parameters_errors()
    sigma = math.sqrt(fitted.chi_square / (5 - 2))
    assert np.allclose(errors, sigma * np.sqrt(np.diag(expected_cov)))


def test_covariances_scale_with_weights():
    optimizer = GaussNewtonOptimizer(checker=SimpleVectorialValueChecker(1e-12, 1e-14))
    optimizer.optimize(line, Y, 4.0 * np.ones(X.size), [0.0, 0.0], jac=line_jac)
    design = line_jac(None)
    assert np.allclose(optimizer.get_covariances(), np.linalg.inv(design.T @ design) / 4.0)


def test_no_degrees_of_freedom():
    optimizer = GaussNewtonOptimizer()
    optimizer.optimize(lambda p: p[0] + p[1] * X[:2], Y[:2], np.ones(2), [0.0, 0.0])
    with pytest.raises(OptimizationError, match="degrees of freedom"):
        optimizer.guess_parameters_errors()


def test_singular_covariances():
    model = DifferentiableVectorialFunction(lambda p: p[0] * X, jac=lambda p: X[:, None])
    optimizer = GaussNewtonOptimizer()
    optimizer.optimize(model, Y, np.ones(X.size), [0.0])
    # covariances re-evaluate the jacobian at the solution
    model.jac = lambda p: np.zeros((X.size, 1))
    with pytest.raises(OptimizationError, match="singular"):
        optimizer.get_covariances()


def test_counters_reset_between_runs(fitted: GaussNewtonOptimizer):
    first = fitted.iterations
    fitted.optimize(line, Y, np.ones(X.size), [0.0, 0.0], jac=line_jac)
    assert fitted.iterations == first
    assert fitted.evaluations == first


def test_budget_settings_validated():
    with pytest.raises(ValueError):
        GaussNewtonOptimizer(max_iterations=-1)
    with pytest.raises(ValueError):
        GaussNewtonOptimizer(max_evaluations=-5)
    optimizer = GaussNewtonOptimizer()
    optimizer.max_evaluations = 10
    assert optimizer.max_evaluations == 10
    with pytest.raises(ValueError):
        optimizer.max_iterations = -1
