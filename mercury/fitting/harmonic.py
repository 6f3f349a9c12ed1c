"""Harmonic curve fitting.

The fitted model is ``f(x) = a cos(omega x + phi)``.

Without a user supplied guess, the amplitude and pulsation are seeded by
the integral method. A harmonic function satisfies
``omega^2 f^2 + f'^2 = a^2 omega^2``, so integrating from the first sample

    int(f'^2) = a^2 omega^2 x - omega^2 int(f^2)

and a linear least-squares fit of the running integral of ``f'^2``
against ``x`` and the running integral of ``f^2`` yields both
coefficients. The phase then follows from the samples and their
finite-difference slopes.
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


def _validate(parameters: Array) -> Array:
    parameters = np.asarray(parameters, dtype=float)
    if parameters.size != 3:
        raise DimensionMismatchError(parameters.size, 3, "harmonic parameters")
    return parameters


class ParametricHarmonicFunction:
    """Harmonic function of ``(a, omega, phi)``."""

    def value(self, x: float, parameters: Array) -> float:
        a, omega, phi = _validate(parameters)
        return a * math.cos(omega * x + phi)

    def gradient(self, x: float, parameters: Array) -> Array:
        a, omega, phi = _validate(parameters)
        alpha = omega * x + phi
        a_sin = a * math.sin(alpha)
        return np.array([math.cos(alpha), -x * a_sin, -a_sin])


@dataclass(frozen=True)
class HarmonicFunction:
    """A fitted harmonic ``amplitude cos(pulsation x + phase)``."""

    amplitude: float
    pulsation: float
    phase: float

    @classmethod
    def from_parameters(cls, parameters: Array) -> "HarmonicFunction":
        a, omega, phi = _validate(parameters)
        return cls(float(a), float(omega), float(phi))

    @property
    def parameters(self) -> Array:
        return np.array([self.amplitude, self.pulsation, self.phase])

    def __call__(self, x):
        return self.amplitude * np.cos(self.pulsation * np.asarray(x, dtype=float) + self.phase)

    def derivative(self) -> "HarmonicFunction":
        # -a w sin(wx + phi) == a w cos(wx + phi + pi/2)
        return HarmonicFunction(
            self.amplitude * self.pulsation, self.pulsation, self.phase + math.pi / 2.0
        )


class HarmonicCoefficientsGuesser:
    """Initial ``(a, omega, phi)`` guess from raw observations.

    When the integral method gives no usable ratio (constant or degenerate
    data), the pulsation falls back to one period over the ``x`` range and
    the amplitude to half the ``y`` range.
    """

    def __init__(self, observations: Sequence[WeightedObservedPoint]) -> None:
        if len(observations) < 4:
            raise ValueError(
                f"at least 4 observations are required, got {len(observations)}"
            )
        self._observations = sorted(observations, key=lambda p: (p.x, p.y, p.weight))
        self.amplitude: Optional[float] = None
        self.pulsation: Optional[float] = None
        self.phase: Optional[float] = None

    def guess(self) -> Array:
        if self.phase is None:
            self._guess_amplitude_and_pulsation()
            self._guess_phase()
        return np.array([self.amplitude, self.pulsation, self.phase])

    def _guess_amplitude_and_pulsation(self) -> None:
        points = self._observations
        start_x = points[0].x
        sx2 = sy2 = sxy = sxz = syz = 0.0
        f2_integral = 0.0
        fprime2_integral = 0.0
        for prev, cur in zip(points, points[1:]):
            dx = cur.x - prev.x
            if dx == 0.0:
                continue
            dy = cur.y - prev.y
            f2_integral += dx * (prev.y * prev.y + prev.y * cur.y + cur.y * cur.y) / 3.0
            fprime2_integral += dy * dy / dx

            x = cur.x - start_x
            sx2 += x * x
            sy2 += f2_integral * f2_integral
            sxy += x * f2_integral
            sxz += x * fprime2_integral
            syz += f2_integral * fprime2_integral

        c1 = sy2 * sxz - sxy * syz
        c2 = sxy * sxz - sx2 * syz
        c3 = sx2 * sy2 - sxy * sxy
        if c2 == 0.0 or c3 == 0.0 or c1 / c2 < 0.0 or c2 / c3 < 0.0:
            x_range = points[-1].x - points[0].x
            if x_range == 0.0:
                raise ValueError("observations span a zero-width x range")
            ys = [p.y for p in points]
            self.pulsation = 2.0 * math.pi / x_range
            self.amplitude = 0.5 * (max(ys) - min(ys))
            logger.info(
                "integral method failed; falling back to pulsation %.6g over the x range",
                self.pulsation,
            )
        else:
            self.amplitude = math.sqrt(c1 / c2)
            self.pulsation = math.sqrt(c2 / c3)

    def _guess_phase(self) -> None:
        omega = self.pulsation
        fc = 0.0
        fs = 0.0
        for prev, cur in zip(self._observations, self._observations[1:]):
            dx = cur.x - prev.x
            if dx == 0.0:
                continue
            slope = (cur.y - prev.y) / dx
            cosine = math.cos(omega * cur.x)
            sine = math.sin(omega * cur.x)
            fc += omega * cur.y * cosine - slope * sine
            fs += omega * cur.y * sine + slope * cosine
        self.phase = math.atan2(-fs, fc)


class HarmonicFitter:
    """Fits ``a cos(omega x + phi)`` to observations.

    Parameters
    ----------
    optimizer:
        Least-squares optimizer driving the fit.
    initial_guess:
        ``(a, omega, phi)`` to start from; guessed from the observations
        with :class:`HarmonicCoefficientsGuesser` when None.
    """

    def __init__(
        self, optimizer: LeastSquaresOptimizer, initial_guess: Optional[Array] = None
    ) -> None:
        self._fitter = CurveFitter(optimizer)
        self._initial_guess = None if initial_guess is None else _validate(initial_guess).copy()

    def add_observed_point(self, x: float, y: float, weight: float = 1.0) -> None:
        self._fitter.add_observed_point(x, y, weight)

    @property
    def observations(self):
        return self._fitter.observations

    def fit(self) -> HarmonicFunction:
        guess = self._initial_guess
        if guess is None:
            guess = HarmonicCoefficientsGuesser(self._fitter.observations).guess()
        parameters = self._fitter.fit(ParametricHarmonicFunction(), guess)
        return HarmonicFunction.from_parameters(parameters)


__all__ = [
    "HarmonicCoefficientsGuesser",
    "HarmonicFitter",
    "HarmonicFunction",
    "ParametricHarmonicFunction",
]
