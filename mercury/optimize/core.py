"""Core value types shared across the optimizers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np

Array = np.ndarray
Objective = Callable[[Array], float]
Gradient = Callable[[Array], Array]
VectorFunction = Callable[[Array], Array]
Jacobian = Callable[[Array], Array]

DEFAULT_MAX_ITERATIONS = 100


class GoalType(Enum):
    """Direction of a scalar optimization."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


class ConjugateGradientFormula(Enum):
    """Update formula for the conjugate-gradient ``beta`` parameter."""

    FLETCHER_REEVES = "fletcher_reeves"
    POLAK_RIBIERE = "polak_ribiere"


class PointValuePair:
    """A point of the search space and the scalar objective value there.

    The point is copied on construction and on access, so a pair stays
    unchanged while the optimizer keeps moving its working point.
    """

    __slots__ = ("_point", "_value")

    def __init__(self, point: Array, value: float) -> None:
        self._point = np.array(point, dtype=float)
        self._value = float(value)

    @property
    def point(self) -> Array:
        return self._point.copy()

    @property
    def value(self) -> float:
        return self._value

    def __iter__(self):
        yield self.point
        yield self._value

    def __repr__(self) -> str:
        return f"PointValuePair(point={self._point.tolist()}, value={self._value!r})"


class VectorialPointValuePair:
    """A point of the search space and the vector objective value there."""

    __slots__ = ("_point", "_value")

    def __init__(self, point: Array, value: Array) -> None:
        self._point = np.array(point, dtype=float)
        self._value = np.array(value, dtype=float)

    @property
    def point(self) -> Array:
        return self._point.copy()

    @property
    def value(self) -> Array:
        return self._value.copy()

    def __iter__(self):
        yield self.point
        yield self.value

    def __repr__(self) -> str:
        return (
            f"VectorialPointValuePair(point={self._point.tolist()}, "
            f"value={self._value.tolist()})"
        )


@dataclass
class OptimizeResult:
    """Result object returned by the functional optimizer entry points.

    Attributes:
        x: Final point.
        fun: Objective value at ``x``; for least-squares problems this is the
            weighted sum of squared residuals (the chi-square).
        nit: Number of iterations performed.
        success: Whether the convergence checker accepted ``x``.
        message: Human-readable reason for stopping.
        nfev: Number of objective evaluations.
        njev: Number of gradient or Jacobian evaluations.
        cost: Square root of ``fun`` for least-squares problems.
        rms: Root mean square of the weighted residuals.
        residuals: ``target - f(x)`` for least-squares problems.
    """

    x: Array
    fun: float
    nit: int
    success: bool
    message: str
    nfev: int
    njev: int
    cost: Optional[float] = None
    rms: Optional[float] = None
    residuals: Optional[Array] = None


__all__ = [
    "Array",
    "ConjugateGradientFormula",
    "DEFAULT_MAX_ITERATIONS",
    "GoalType",
    "Gradient",
    "Jacobian",
    "Objective",
    "OptimizeResult",
    "PointValuePair",
    "VectorFunction",
    "VectorialPointValuePair",
]
