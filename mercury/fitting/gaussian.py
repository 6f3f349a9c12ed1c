"""Gaussian curve fitting.

The fitted model is ``f(x) = a + b exp(-(x - c)^2 / (2 d^2))``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..exceptions import DimensionMismatchError
from ..logging import get_logger
from ..optimize.core import Array
from ..optimize.least_squares import LeastSquaresOptimizer
from .curve import CurveFitter, WeightedObservedPoint

logger = get_logger(__name__)

# FWHM = 2 sqrt(2 ln 2) sigma
_FWHM_TO_SIGMA = 1.0 / (2.0 * math.sqrt(2.0 * math.log(2.0)))


def _validate(parameters: Array) -> Array:
    parameters = np.asarray(parameters, dtype=float)
    if parameters.size != 4:
        raise DimensionMismatchError(parameters.size, 4, "gaussian parameters")
    if parameters[3] == 0.0:
        raise ValueError("gaussian width d must be non-zero")
    return parameters


class ParametricGaussianFunction:
    """Gaussian as a function of ``(a, b, c, d)``."""

    def value(self, x: float, parameters: Array) -> float:
        a, b, c, d = _validate(parameters)
        x_mc = x - c
        return a + b * math.exp(-x_mc * x_mc / (2.0 * d * d))

    def gradient(self, x: float, parameters: Array) -> Array:
        _, b, c, d = _validate(parameters)
        x_mc = x - c
        d2 = d * d
        exp = math.exp(-x_mc * x_mc / (2.0 * d2))
        f = b * exp * x_mc / d2
        return np.array([1.0, exp, f, f * x_mc / d])


@dataclass(frozen=True)
class GaussianFunction:
    """A fitted Gaussian ``a + b exp(-(x - c)^2 / (2 d^2))``."""

    a: float
    b: float
    c: float
    d: float

    def __post_init__(self) -> None:
        if self.d == 0.0:
            raise ValueError("gaussian width d must be non-zero")

    @classmethod
    def from_parameters(cls, parameters: Array) -> "GaussianFunction":
        a, b, c, d = _validate(parameters)
        return cls(float(a), float(b), float(c), float(d))

    @property
    def parameters(self) -> Array:
        return np.array([self.a, self.b, self.c, self.d])

    def __call__(self, x):
        x_mc = np.asarray(x, dtype=float) - self.c
        return self.a + self.b * np.exp(-x_mc * x_mc / (2.0 * self.d * self.d))

    def derivative(self, x):
        x_mc = np.asarray(x, dtype=float) - self.c
        d2 = self.d * self.d
        return -self.b * x_mc / d2 * np.exp(-x_mc * x_mc / (2.0 * d2))


class GaussianParametersGuesser:
    """Initial ``(a, b, c, d)`` guess from raw observations.

    ``a`` is the smallest observed ``y``, ``b`` the largest and ``c`` the
    ``x`` of the largest. ``d`` comes from the full width at half maximum
    found by linear interpolation on each side of the peak; when the half
    maximum is not crossed on both sides the whole ``x`` range is used.
    """

    def __init__(self, observations: Sequence[WeightedObservedPoint]) -> None:
        if len(observations) < 3:
            raise ValueError(
                f"at least 3 observations are required, got {len(observations)}"
            )
        self._observations = list(observations)
        self._parameters: Optional[Array] = None

    def guess(self) -> Array:
        if self._parameters is None:
            self._parameters = self._basic_guess()
        return self._parameters.copy()

    def _basic_guess(self) -> Array:
        points = sorted(self._observations, key=lambda p: (p.x, p.y, p.weight))
        ys = [p.y for p in points]
        min_idx = int(np.argmin(ys))
        max_idx = int(np.argmax(ys))
        a = points[min_idx].y
        b = points[max_idx].y
        c = points[max_idx].x

        half_y = a + (b - a) / 2.0
        x1 = self._interpolate_x_at_y(points, max_idx, -1, half_y)
        x2 = self._interpolate_x_at_y(points, max_idx, +1, half_y)
        if x1 is None or x2 is None:
            logger.info("half maximum %.6g not bracketed; using full x range as FWHM", half_y)
            fwhm = points[-1].x - points[0].x
        else:
            fwhm = x2 - x1
        return np.array([a, b, c, fwhm * _FWHM_TO_SIGMA])

    @staticmethod
    def _interpolate_x_at_y(points, start: int, step: int, y: float) -> Optional[float]:
        i = start
        while 0 <= i + step < len(points):
            p, q = points[i], points[i + step]
            if min(p.y, q.y) <= y <= max(p.y, q.y):
                if step < 0:
                    p, q = q, p
                if p.y == y:
                    return p.x
                if q.y == y:
                    return q.x
                return p.x + (y - p.y) * (q.x - p.x) / (q.y - p.y)
            i += step
        return None


class GaussianFitter:
    """Fits a Gaussian to observations, seeding the optimizer with
    :class:`GaussianParametersGuesser`."""

    def __init__(self, optimizer: LeastSquaresOptimizer) -> None:
        self._fitter = CurveFitter(optimizer)

    def add_observed_point(self, x: float, y: float, weight: float = 1.0) -> None:
        self._fitter.add_observed_point(x, y, weight)

    @property
    def observations(self):
        return self._fitter.observations

    def fit(self) -> GaussianFunction:
        guess = GaussianParametersGuesser(self._fitter.observations).guess()
        parameters = self._fitter.fit(ParametricGaussianFunction(), guess)
        return GaussianFunction.from_parameters(parameters)


__all__ = [
    "GaussianFitter",
    "GaussianFunction",
    "GaussianParametersGuesser",
    "ParametricGaussianFunction",
]
