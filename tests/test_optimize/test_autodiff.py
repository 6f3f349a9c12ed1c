import numpy as np
import pytest
import torch

from mercury.optimize import (
    GaussNewtonOptimizer,
    GoalType,
    NonLinearConjugateGradientOptimizer,
    SimpleScalarValueChecker,
    SimpleVectorialValueChecker,
    autograd_function,
    autograd_gradient,
    autograd_vectorial_function,
    torch_gradient,
    torch_jacobian,
)


def test_torch_gradient_matches_analytic():
    grad = torch_gradient(lambda p: (p**2).sum() + torch.sin(p[0]))
    g = grad([1.0, -2.0])
    assert isinstance(g, np.ndarray)
    assert np.allclose(g, [2.0 + np.cos(1.0), -4.0])


def test_torch_jacobian_matches_analytic():
    jac = torch_jacobian(lambda p: torch.stack([p[0] * p[1], p[0] ** 2, torch.sin(p[1])]))
    j = jac(np.array([1.5, 0.3]))
    expected = np.array([[0.3, 1.5], [3.0, 0.0], [0.0, np.cos(0.3)]])
    assert j.shape == (3, 2)
    assert np.allclose(j, expected)


def test_torch_jacobian_of_scalar_output_is_a_row():
    jac = torch_jacobian(lambda p: (p**2).sum())
    assert jac([1.0, 2.0]).shape == (1, 2)


def test_autograd_gradient_validates_inputs():
    with pytest.raises(ValueError, match="1D"):
        autograd_gradient(lambda p: p.sum(), torch.zeros(2, 2))
    with pytest.raises(ValueError, match="scalar"):
        autograd_gradient(lambda p: p * 2.0, torch.zeros(3))


def test_autograd_gradient_does_not_touch_input():
    params = torch.tensor([1.0, 2.0], dtype=torch.float64)
    grad = autograd_gradient(lambda p: (p**3).sum(), params)
    assert torch.allclose(grad, torch.tensor([3.0, 12.0], dtype=torch.float64))
    assert not params.requires_grad


def test_conjugate_gradient_with_autograd_objective():
    target = torch.tensor([0.5, -1.0, 2.0], dtype=torch.float64)
    function = autograd_function(lambda p: ((p - target) ** 2).sum() + 1.0)
    assert function.has_exact_gradient

    optimizer = NonLinearConjugateGradientOptimizer(
        checker=SimpleScalarValueChecker(1e-12, 1e-14)
    )
    pair = optimizer.optimize(function, GoalType.MINIMIZE, np.zeros(3))
    assert np.allclose(pair.point, target.numpy(), atol=1e-5)
    assert pair.value == pytest.approx(1.0)


def test_gauss_newton_with_autograd_model():
    t = torch.linspace(0.0, 2.0, 20, dtype=torch.float64)
    model = autograd_vectorial_function(lambda p: p[0] * torch.exp(-p[1] * t))
    assert model.has_exact_jacobian
    target = 2.5 * np.exp(-0.8 * t.numpy())

    optimizer = GaussNewtonOptimizer(checker=SimpleVectorialValueChecker(1e-10, 1e-12))
    pair = optimizer.optimize(model, target, np.ones(t.numel()), [1.0, 0.5])
    assert np.allclose(pair.point, [2.5, 0.8], atol=1e-8)
