"""Least-squares polynomial fitting."""

from __future__ import annotations

import numpy as np
from numpy.polynomial import Polynomial

from ..optimize.core import Array
from ..optimize.least_squares import LeastSquaresOptimizer
from .curve import CurveFitter


class ParametricPolynomial:
    """``p0 + p1 x + ... + pk x^k`` as a function of its coefficients."""

    def value(self, x: float, parameters: Array) -> float:
        y = 0.0
        for coefficient in reversed(parameters):
            y = y * x + coefficient
        return y

    def gradient(self, x: float, parameters: Array) -> Array:
        return np.power(float(x), np.arange(len(parameters)))


class PolynomialFitter:
    """Fits a polynomial of fixed degree, starting from all-zero coefficients."""

    def __init__(self, degree: int, optimizer: LeastSquaresOptimizer) -> None:
        if degree < 0:
            raise ValueError("degree must be non-negative")
        self.degree = degree
        self._fitter = CurveFitter(optimizer)

    def add_observed_point(self, x: float, y: float, weight: float = 1.0) -> None:
        self._fitter.add_observed_point(x, y, weight)

    def clear_observations(self) -> None:
        self._fitter.clear_observations()

    def fit(self) -> Polynomial:
        coefficients = self._fitter.fit(ParametricPolynomial(), np.zeros(self.degree + 1))
        return Polynomial(coefficients)


__all__ = ["ParametricPolynomial", "PolynomialFitter"]
