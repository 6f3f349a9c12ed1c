"""Convergence checkers.

A checker is any object exposing
``converged(iteration, previous, current) -> bool``; the optimizers call it
with the pairs produced by two consecutive iterations. Each simple checker
compares two numbers ``p`` and ``c`` and accepts them when

    |p - c| <= max(|p|, |c|) * relative_threshold
    or |p - c| <= absolute_threshold

Array-based checkers apply the test element-wise and require every entry
to pass.
"""

from __future__ import annotations

import sys
from typing import Protocol

import numpy as np

from .core import PointValuePair, VectorialPointValuePair

DEFAULT_RELATIVE_THRESHOLD = 100 * sys.float_info.epsilon
DEFAULT_ABSOLUTE_THRESHOLD = 100 * sys.float_info.min


class ConvergenceChecker(Protocol):
    def converged(self, iteration: int, previous, current) -> bool:
        ...


def _close(p: np.ndarray, c: np.ndarray, rel: float, abs_: float) -> bool:
    difference = np.abs(p - c)
    size = np.maximum(np.abs(p), np.abs(c))
    return bool(np.all((difference <= size * rel) | (difference <= abs_)))


class _SimpleChecker:
    def __init__(
        self,
        relative_threshold: float = DEFAULT_RELATIVE_THRESHOLD,
        absolute_threshold: float = DEFAULT_ABSOLUTE_THRESHOLD,
    ) -> None:
        if relative_threshold < 0 or absolute_threshold < 0:
            raise ValueError("convergence thresholds must be non-negative")
        self.relative_threshold = float(relative_threshold)
        self.absolute_threshold = float(absolute_threshold)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(relative_threshold={self.relative_threshold!r}, "
            f"absolute_threshold={self.absolute_threshold!r})"
        )


class SimpleScalarValueChecker(_SimpleChecker):
    """Compare the objective values of two scalar pairs."""

    def converged(
        self, iteration: int, previous: PointValuePair, current: PointValuePair
    ) -> bool:
        return _close(
            np.asarray(previous.value),
            np.asarray(current.value),
            self.relative_threshold,
            self.absolute_threshold,
        )


class SimpleRealPointChecker(_SimpleChecker):
    """Compare the points of two scalar pairs coordinate by coordinate."""

    def converged(
        self, iteration: int, previous: PointValuePair, current: PointValuePair
    ) -> bool:
        return _close(
            previous.point, current.point, self.relative_threshold, self.absolute_threshold
        )


class SimpleVectorialValueChecker(_SimpleChecker):
    """Compare the objective vectors of two vectorial pairs."""

    def converged(
        self,
        iteration: int,
        previous: VectorialPointValuePair,
        current: VectorialPointValuePair,
    ) -> bool:
        return _close(
            previous.value, current.value, self.relative_threshold, self.absolute_threshold
        )


class SimpleVectorialPointChecker(_SimpleChecker):
    """Compare the points of two vectorial pairs coordinate by coordinate."""

    def converged(
        self,
        iteration: int,
        previous: VectorialPointValuePair,
        current: VectorialPointValuePair,
    ) -> bool:
        return _close(
            previous.point, current.point, self.relative_threshold, self.absolute_threshold
        )


__all__ = [
    "ConvergenceChecker",
    "DEFAULT_ABSOLUTE_THRESHOLD",
    "DEFAULT_RELATIVE_THRESHOLD",
    "SimpleRealPointChecker",
    "SimpleScalarValueChecker",
    "SimpleVectorialPointChecker",
    "SimpleVectorialValueChecker",
]
