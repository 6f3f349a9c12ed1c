import numpy as np
import pytest

from mercury.exceptions import MaxEvaluationsExceededError, MaxIterationsExceededError
from mercury.optimize import (
    BisectionSolver,
    BrentSolver,
    ConjugateGradientFormula,
    DiagonalPreconditioner,
    GoalType,
    IdentityPreconditioner,
    LeastSquaresConverter,
    NonLinearConjugateGradientOptimizer,
    PointValuePair,
    SimpleScalarValueChecker,
    nonlinear_cg,
)

A = np.array([[4.0, 1.0], [1.0, 3.0]])
B = np.array([1.0, 2.0])
X_STAR = np.linalg.solve(A, B)


def quadratic(x: np.ndarray) -> float:
    return float(0.5 * x @ A @ x - B @ x)


def quadratic_grad(x: np.ndarray) -> np.ndarray:
    return A @ x - B


def make_optimizer(**kwargs) -> NonLinearConjugateGradientOptimizer:
    kwargs.setdefault("checker", SimpleScalarValueChecker(1e-12, 1e-14))
    kwargs.setdefault("line_search_solver", BrentSolver(absolute_accuracy=1e-10))
    return NonLinearConjugateGradientOptimizer(**kwargs)


@pytest.mark.parametrize(
    "formula",
    [ConjugateGradientFormula.FLETCHER_REEVES, ConjugateGradientFormula.POLAK_RIBIERE],
)
def test_quadratic_minimum(formula):
    optimizer = make_optimizer(update_formula=formula)
    pair = optimizer.optimize(quadratic, GoalType.MINIMIZE, [0.0, 0.0], grad=quadratic_grad)
    assert isinstance(pair, PointValuePair)
    assert np.allclose(pair.point, X_STAR, atol=1e-6)
    assert pair.value == pytest.approx(-0.5 * B @ X_STAR, rel=1e-10)
    assert optimizer.iterations < 10
    assert optimizer.gradient_evaluations > optimizer.evaluations


def test_finite_difference_gradient_when_none_given():
    optimizer = make_optimizer()
    pair = optimizer.optimize(quadratic, GoalType.MINIMIZE, [2.0, -1.0])
    assert np.allclose(pair.point, X_STAR, atol=1e-5)


def test_nonquadratic_minimum():
    def f(x: np.ndarray) -> float:
        return float(np.exp(x[0]) + np.exp(-x[0]) + (x[1] - 1.0) ** 2)

    def grad(x: np.ndarray) -> np.ndarray:
        return np.array([np.exp(x[0]) - np.exp(-x[0]), 2.0 * (x[1] - 1.0)])

    optimizer = make_optimizer()
    pair = optimizer.optimize(f, GoalType.MINIMIZE, [1.5, -0.5], grad=grad)
    assert np.allclose(pair.point, [0.0, 1.0], atol=1e-4)
    assert pair.value == pytest.approx(2.0, rel=1e-8)


def test_maximize():
    def f(x: np.ndarray) -> float:
        return float(3.0 - (x[0] - 1.0) ** 2 - 2.0 * (x[1] + 2.0) ** 2)

    def grad(x: np.ndarray) -> np.ndarray:
        return np.array([-2.0 * (x[0] - 1.0), -4.0 * (x[1] + 2.0)])

    pair = make_optimizer().optimize(f, GoalType.MAXIMIZE, [0.0, 0.0], grad=grad)
    assert np.allclose(pair.point, [1.0, -2.0], atol=1e-6)
    assert pair.value == pytest.approx(3.0)


def test_diagonal_preconditioner_on_badly_scaled_quadratic():
    scale = np.array([1.0, 100.0])

    def f(x: np.ndarray) -> float:
        return float(0.5 * np.sum(scale * x * x) - np.sum(x))

    def grad(x: np.ndarray) -> np.ndarray:
        return scale * x - 1.0

    optimizer = make_optimizer(preconditioner=DiagonalPreconditioner(scale))
    pair = optimizer.optimize(f, GoalType.MINIMIZE, [0.0, 0.0], grad=grad)
    assert np.allclose(pair.point, 1.0 / scale, atol=1e-6)


def test_diagonal_preconditioner_validation_and_callable():
    with pytest.raises(ValueError):
        DiagonalPreconditioner([1.0, 0.0])
    pre = DiagonalPreconditioner(lambda x: np.abs(x) + 1.0)
    assert pre.precondition(np.array([1.0, 3.0]), np.array([4.0, 4.0])).tolist() == [2.0, 1.0]
    bad = DiagonalPreconditioner(lambda x: -np.ones_like(x))
    with pytest.raises(ValueError):
        bad.precondition(np.zeros(2), np.ones(2))


def test_least_squares_converter_objective():
    xs = np.array([0.0, 1.0, 2.0, 3.0])
    ys = np.array([1.1, 2.9, 5.2, 6.8])
    design = np.column_stack([np.ones_like(xs), xs])
    expected, *_ = np.linalg.lstsq(design, ys, rcond=None)

    converter = LeastSquaresConverter(lambda p: p[0] + p[1] * xs, ys)
    pair = make_optimizer().optimize(converter, GoalType.MINIMIZE, [0.0, 0.0])
    assert np.allclose(pair.point, expected, atol=1e-5)


def test_setters():
    optimizer = NonLinearConjugateGradientOptimizer()
    assert isinstance(optimizer.preconditioner, IdentityPreconditioner)
    assert isinstance(optimizer.line_search_solver, BrentSolver)

    optimizer.set_initial_step(-3.0)
    assert optimizer.initial_step == 1.0
    optimizer.set_initial_step(0.25)
    assert optimizer.initial_step == 0.25

    optimizer.set_line_search_solver(BisectionSolver(absolute_accuracy=1e-10))
    optimizer.checker = SimpleScalarValueChecker(1e-12, 1e-14)
    pair = optimizer.optimize(quadratic, GoalType.MINIMIZE, [0.0, 0.0], grad=quadratic_grad)
    assert np.allclose(pair.point, X_STAR, atol=1e-6)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        NonLinearConjugateGradientOptimizer(update_formula="polak")
    with pytest.raises(ValueError):
        NonLinearConjugateGradientOptimizer(max_iterations=-1)
    optimizer = NonLinearConjugateGradientOptimizer()
    with pytest.raises(ValueError):
        optimizer.optimize(quadratic, "minimize", [0.0, 0.0])
    with pytest.raises(ValueError):
        optimizer.optimize(lambda x: 0.0, GoalType.MINIMIZE, [])


def test_budgets_raise():
    with pytest.raises(MaxIterationsExceededError) as info:
        make_optimizer(max_iterations=1).optimize(
            quadratic, GoalType.MINIMIZE, [0.0, 0.0], grad=quadratic_grad
        )
    assert info.value.point.shape == (2,)
    with pytest.raises(MaxEvaluationsExceededError):
        make_optimizer(max_evaluations=1).optimize(
            quadratic, GoalType.MINIMIZE, [0.0, 0.0], grad=quadratic_grad
        )


def test_nonlinear_cg_wrapper():
    res = nonlinear_cg(
        quadratic,
        [0.0, 0.0],
        grad=quadratic_grad,
        formula=ConjugateGradientFormula.FLETCHER_REEVES,
        checker=SimpleScalarValueChecker(1e-12, 1e-14),
    )
    assert res.success
    assert np.allclose(res.x, X_STAR, atol=1e-5)
    assert res.fun == pytest.approx(quadratic(X_STAR), rel=1e-9)
    assert res.njev > 0


def test_nonlinear_cg_wrapper_reports_exhausted_budget():
    res = nonlinear_cg(quadratic, [0.0, 0.0], grad=quadratic_grad, max_iterations=1)
    assert not res.success
    assert res.nit == 2
    assert res.x.shape == (2,)
    assert res.fun == pytest.approx(quadratic(res.x))


@pytest.mark.parametrize("budget", [{"max_evaluations": 1}, {"max_iterations": 1}])
def test_nonlinear_cg_counts_final_evaluation(budget):
    calls = []

    def counted(x):
        calls.append(np.array(x))
        return quadratic(x)

    res = nonlinear_cg(counted, [0.0, 0.0], grad=quadratic_grad, **budget)
    assert not res.success
    assert res.nfev == len(calls)
    assert np.array_equal(calls[-1], res.x)
    assert res.fun == pytest.approx(quadratic(res.x))


def test_budget_setters_reject_negative_values():
    optimizer = make_optimizer()
    with pytest.raises(ValueError, match="max_iterations"):
        optimizer.max_iterations = -1
    with pytest.raises(ValueError, match="max_evaluations"):
        optimizer.max_evaluations = -1
    with pytest.raises(ValueError):
        make_optimizer(max_evaluations=-3)
    optimizer.max_evaluations = None
    optimizer.max_iterations = 7
    assert optimizer.max_iterations == 7
    assert optimizer.max_evaluations is None
