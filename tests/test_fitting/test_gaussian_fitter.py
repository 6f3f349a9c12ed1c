import math

import numpy as np
import pytest

from mercury.exceptions import DimensionMismatchError
from mercury.fitting import (
    GaussianFitter,
    GaussianFunction,
    GaussianParametersGuesser,
    ParametricGaussianFunction,
    WeightedObservedPoint,
)
from mercury.optimize import GaussNewtonOptimizer, SimpleVectorialValueChecker, approx_grad

SIGMA_PER_FWHM = 1.0 / (2.0 * math.sqrt(2.0 * math.log(2.0)))


def points(pairs):
    return [WeightedObservedPoint(1.0, x, y) for x, y in pairs]


def test_guesser_uses_half_maximum_crossings():
    # given out of order on purpose
    observations = points([(4.0, 0.0), (2.0, 4.0), (0.0, 0.0), (3.0, 2.0), (1.0, 2.0)])
    guess = GaussianParametersGuesser(observations).guess()
    assert guess[:3].tolist() == [0.0, 4.0, 2.0]
    assert guess[3] == pytest.approx(2.0 * SIGMA_PER_FWHM)


def test_guesser_interpolates_between_points():
    observations = points([(0.0, 0.0), (1.0, 1.0), (2.0, 5.0), (3.0, 4.0), (4.0, 0.0)])
    guess = GaussianParametersGuesser(observations).guess()
    # half maximum 2.5 is crossed at x = 1.375 and x = 3.375
    assert guess[3] == pytest.approx(2.0 * SIGMA_PER_FWHM)


def test_guesser_falls_back_to_full_range():
    observations = points([(0.0, 0.0), (1.0, 1.0), (2.0, 3.0), (3.0, 6.0)])
    guess = GaussianParametersGuesser(observations).guess()
    assert guess[2] == 3.0
    assert guess[3] == pytest.approx(3.0 * SIGMA_PER_FWHM)


def test_guesser_requires_three_points_and_returns_copies():
    with pytest.raises(ValueError):
        GaussianParametersGuesser(points([(0.0, 1.0), (1.0, 2.0)]))
    guesser = GaussianParametersGuesser(points([(0.0, 0.0), (1.0, 2.0), (2.0, 0.0)]))
    first = guesser.guess()
    first[0] = 99.0
    assert guesser.guess()[0] == 0.0


def test_parametric_gradient_matches_finite_differences():
    f = ParametricGaussianFunction()
    params = np.array([0.3, 2.0, 1.0, 0.8])
    for x in (-0.5, 1.0, 2.2):
        numeric = approx_grad(lambda p: f.value(x, p), params)
        assert np.allclose(f.gradient(x, params), numeric, atol=1e-6)


def test_parametric_function_validates_parameters():
    f = ParametricGaussianFunction()
    with pytest.raises(DimensionMismatchError):
        f.value(0.0, [1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        f.gradient(0.0, [1.0, 2.0, 3.0, 0.0])


def test_gaussian_function():
    g = GaussianFunction(1.0, 5.0, 2.0, 0.7)
    assert g(2.0) == pytest.approx(6.0)
    assert g.derivative(2.0) == pytest.approx(0.0)
    xs = np.array([1.0, 2.5])
    numeric = (g(xs + 1e-6) - g(xs - 1e-6)) / 2e-6
    assert np.allclose(g.derivative(xs), numeric, atol=1e-6)
    assert GaussianFunction.from_parameters(g.parameters) == g
    with pytest.raises(ValueError):
        GaussianFunction(0.0, 1.0, 0.0, 0.0)
    with pytest.raises(DimensionMismatchError):
        GaussianFunction.from_parameters([1.0, 2.0])


def test_fitter_recovers_gaussian():
    truth = GaussianFunction(1.0, 5.0, 2.0, 0.7)
    fitter = GaussianFitter(GaussNewtonOptimizer(checker=SimpleVectorialValueChecker(1e-10, 1e-12)))
    for x in np.linspace(-1.0, 5.0, 40):
        fitter.add_observed_point(x, float(truth(x)))
    assert len(fitter.observations) == 40

    fitted = fitter.fit()
    assert isinstance(fitted, GaussianFunction)
    assert np.allclose(np.abs(fitted.parameters), truth.parameters, atol=1e-6)


def test_fitter_on_noisy_peak(rng):
    truth = GaussianFunction(0.0, 3.0, -1.0, 1.5)
    fitter = GaussianFitter(GaussNewtonOptimizer(checker=SimpleVectorialValueChecker(1e-9, 1e-12)))
    for x in np.linspace(-6.0, 4.0, 60):
        fitter.add_observed_point(x, float(truth(x)) + 0.02 * rng.standard_normal())
    fitted = fitter.fit()
    assert fitted.c == pytest.approx(-1.0, abs=0.05)
    assert abs(fitted.d) == pytest.approx(1.5, abs=0.1)
    assert fitted.b == pytest.approx(3.0, abs=0.1)
