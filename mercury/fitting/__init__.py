"""Curve fitting on top of the least-squares optimizers."""

from .curve import CurveFitter, ParametricRealFunction, WeightedObservedPoint
from .gaussian import (
    GaussianFitter,
    GaussianFunction,
    GaussianParametersGuesser,
    ParametricGaussianFunction,
)
from .harmonic import (
    HarmonicCoefficientsGuesser,
    HarmonicFitter,
    HarmonicFunction,
    ParametricHarmonicFunction,
)
from .polynomial import ParametricPolynomial, PolynomialFitter

__all__ = [
    "CurveFitter",
    "GaussianFitter",
    "GaussianFunction",
    "GaussianParametersGuesser",
    "HarmonicCoefficientsGuesser",
    "HarmonicFitter",
    "HarmonicFunction",
    "ParametricGaussianFunction",
    "ParametricHarmonicFunction",
    "ParametricPolynomial",
    "ParametricRealFunction",
    "PolynomialFitter",
    "WeightedObservedPoint",
]
