"""Exception hierarchy for the optimization routines.

The concrete errors also derive from the matching builtin (``RuntimeError``
for algorithm failures, ``ValueError`` for bad inputs or bad function
output) so callers catching builtins keep working.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


class MercuryError(Exception):
    """Base class of every error raised by mercury."""


class OptimizationError(MercuryError, RuntimeError):
    """An optimization algorithm could not produce a result."""


class ConvergenceError(OptimizationError):
    """An iterative algorithm failed to converge."""


class NoBracketingError(OptimizationError):
    """The function values at the interval ends do not bracket a root."""

    def __init__(self, lo: float, hi: float, f_lo: float, f_hi: float) -> None:
        super().__init__(
            f"function values at endpoints do not have different signs: "
            f"f({lo})={f_lo}, f({hi})={f_hi}"
        )
        self.lo = lo
        self.hi = hi
        self.f_lo = f_lo
        self.f_hi = f_hi


class MaxCountExceededError(ConvergenceError):
    """A counter went past its configured budget.

    ``point`` holds the last evaluated point, when one is available, so the
    caller can report partial progress.
    """

    kind = "count"

    def __init__(self, max_count: int, point: Optional[np.ndarray] = None) -> None:
        super().__init__(f"maximal {self.kind} count ({max_count}) exceeded")
        self.max_count = max_count
        self.point = None if point is None else np.array(point, dtype=float)


class MaxIterationsExceededError(MaxCountExceededError):
    kind = "iteration"


class MaxEvaluationsExceededError(MaxCountExceededError):
    kind = "evaluation"


class FunctionEvaluationError(MercuryError, ValueError):
    """A user function failed or returned unusable output at ``point``."""

    def __init__(self, message: str, point: Optional[np.ndarray] = None) -> None:
        if point is not None:
            point = np.array(point, dtype=float)
            message = f"{message} (point: {point.tolist()})"
        super().__init__(message)
        self.point = point


class DimensionMismatchError(MercuryError, ValueError):
    """Two sizes that must agree do not."""

    def __init__(self, actual: int, expected: int, what: str = "dimension") -> None:
        super().__init__(f"{what} mismatch: got {actual}, expected {expected}")
        self.actual = actual
        self.expected = expected


__all__ = [
    "ConvergenceError",
    "DimensionMismatchError",
    "FunctionEvaluationError",
    "MaxCountExceededError",
    "MaxEvaluationsExceededError",
    "MaxIterationsExceededError",
    "MercuryError",
    "NoBracketingError",
    "OptimizationError",
]
