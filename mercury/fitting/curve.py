"""Fitting parametric curves to weighted observations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence

import numpy as np

from ..optimize.core import Array
from ..optimize.functions import DifferentiableVectorialFunction
from ..optimize.least_squares import LeastSquaresOptimizer


@dataclass(frozen=True)
class WeightedObservedPoint:
    """One observation ``(x, y)`` with its weight in the fit."""

    weight: float
    x: float
    y: float


class ParametricRealFunction(Protocol):
    """A univariate function ``y = f(x; parameters)`` with its parameter gradient."""

    def value(self, x: float, parameters: Array) -> float:
        ...

    def gradient(self, x: float, parameters: Array) -> Array:
        ...


class CurveFitter:
    """Collects observations and fits a parametric function to them.

    The fit is delegated to a least-squares optimizer, with the observed
    ``y`` values as targets and the observation weights as weights.
    """

    def __init__(self, optimizer: LeastSquaresOptimizer) -> None:
        self.optimizer = optimizer
        self._observations: List[WeightedObservedPoint] = []

    def add_observed_point(self, x: float, y: float, weight: float = 1.0) -> None:
        self._observations.append(WeightedObservedPoint(float(weight), float(x), float(y)))

    def add_observations(self, points: Sequence[WeightedObservedPoint]) -> None:
        self._observations.extend(points)

    @property
    def observations(self) -> List[WeightedObservedPoint]:
        return list(self._observations)

    def clear_observations(self) -> None:
        self._observations.clear()

    def fit(self, f: ParametricRealFunction, initial_guess: Array) -> Array:
        """Return the parameters of ``f`` that best fit the observations."""
        if not self._observations:
            raise ValueError("no observations to fit")
        xs = np.array([p.x for p in self._observations])
        target = np.array([p.y for p in self._observations])
        weights = np.array([p.weight for p in self._observations])

        def model(parameters: Array) -> Array:
            return np.array([f.value(x, parameters) for x in xs])

        def jacobian(parameters: Array) -> Array:
            return np.array([f.gradient(x, parameters) for x in xs], dtype=float)

        function = DifferentiableVectorialFunction(model, jac=jacobian)
        optimum = self.optimizer.optimize(function, target, weights, initial_guess)
        return optimum.point


__all__ = ["CurveFitter", "ParametricRealFunction", "WeightedObservedPoint"]
