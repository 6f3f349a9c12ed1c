"""Univariate root solvers used by the conjugate-gradient line search.

References:
    - Brent, *Algorithms for Minimization Without Derivatives* (1973), ch. 4
"""

from __future__ import annotations

import sys
from typing import Callable, Optional, Protocol

from ..exceptions import MaxEvaluationsExceededError, NoBracketingError, OptimizationError

UnivariateFunction = Callable[[float], float]

DEFAULT_ABSOLUTE_ACCURACY = 1e-6
DEFAULT_RELATIVE_ACCURACY = 1e-14
DEFAULT_FUNCTION_VALUE_ACCURACY = 1e-15
DEFAULT_MAX_EVALUATIONS = 100


class UnivariateSolver(Protocol):
    def solve(
        self, f: UnivariateFunction, lo: float, hi: float, start: Optional[float] = None
    ) -> float:
        ...


class _BaseSolver:
    def __init__(
        self,
        absolute_accuracy: float = DEFAULT_ABSOLUTE_ACCURACY,
        relative_accuracy: float = DEFAULT_RELATIVE_ACCURACY,
        function_value_accuracy: float = DEFAULT_FUNCTION_VALUE_ACCURACY,
        max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    ) -> None:
        if absolute_accuracy <= 0:
            raise ValueError("absolute_accuracy must be positive")
        if max_evaluations <= 0:
            raise ValueError("max_evaluations must be positive")
        self.absolute_accuracy = absolute_accuracy
        self.relative_accuracy = relative_accuracy
        self.function_value_accuracy = function_value_accuracy
        self.max_evaluations = max_evaluations
        self.evaluations = 0
        self._f: Optional[UnivariateFunction] = None

    def _value(self, x: float) -> float:
        self.evaluations += 1
        if self.evaluations > self.max_evaluations:
            raise MaxEvaluationsExceededError(self.max_evaluations)
        return float(self._f(x))

    def solve(
        self, f: UnivariateFunction, lo: float, hi: float, start: Optional[float] = None
    ) -> float:
        """Find a root of ``f`` in ``[lo, hi]``.

        ``start`` defaults to the interval midpoint and must satisfy
        ``lo < start < hi``.
        """
        if start is None:
            start = lo + 0.5 * (hi - lo)
        if not lo < start < hi:
            raise ValueError(
                f"invalid interval: require lo < start < hi, got {lo}, {start}, {hi}"
            )
        self._f = f
        self.evaluations = 0
        try:
            return self._do_solve(float(lo), float(hi), float(start))
        finally:
            self._f = None

    def _do_solve(self, lo: float, hi: float, start: float) -> float:
        raise NotImplementedError


class BrentSolver(_BaseSolver):
    """Brent-Dekker root finding: inverse quadratic interpolation with
    bisection safeguards."""

    def _do_solve(self, lo: float, hi: float, start: float) -> float:
        accuracy = self.function_value_accuracy

        y_start = self._value(start)
        if abs(y_start) <= accuracy:
            return start

        y_lo = self._value(lo)
        if abs(y_lo) <= accuracy:
            return lo
        if y_start * y_lo < 0:
            return self._brent(lo, start, y_lo, y_start)

        y_hi = self._value(hi)
        if abs(y_hi) <= accuracy:
            return hi
        if y_start * y_hi < 0:
            return self._brent(start, hi, y_start, y_hi)

        raise NoBracketingError(lo, hi, y_lo, y_hi)

    def _brent(self, lo: float, hi: float, f_lo: float, f_hi: float) -> float:
        a, fa = lo, f_lo
        b, fb = hi, f_hi
        c, fc = a, fa
        d = b - a
        e = d
        t = self.absolute_accuracy
        eps = self.relative_accuracy

        while True:
            if abs(fc) < abs(fb):
                a, b, c = b, c, b
                fa, fb, fc = fb, fc, fb

            tol = 2 * eps * abs(b) + t
            m = 0.5 * (c - b)
            if abs(m) <= tol or fb == 0.0:
                return b

            if abs(e) < tol or abs(fa) <= abs(fb):
                # bisection
                d = m
                e = d
            else:
                s = fb / fa
                if a == c:
                    # secant
                    p = 2 * m * s
                    q = 1 - s
                else:
                    # inverse quadratic interpolation
                    q = fa / fc
                    r = fb / fc
                    p = s * (2 * m * q * (q - r) - (b - a) * (r - 1))
                    q = (q - 1) * (r - 1) * (s - 1)
                if p > 0:
                    q = -q
                else:
                    p = -p
                s = e
                e = d
                if p >= 1.5 * m * q - abs(tol * q) or p >= abs(0.5 * s * q):
                    d = m
                    e = d
                else:
                    d = p / q

            a, fa = b, fb
            if abs(d) > tol:
                b += d
            elif m > 0:
                b += tol
            else:
                b -= tol
            fb = self._value(b)
            if (fb > 0 and fc > 0) or (fb <= 0 and fc <= 0):
                c, fc = a, fa
                d = b - a
                e = d


class BisectionSolver(_BaseSolver):
    """Plain interval halving; slow but robust."""

    def _do_solve(self, lo: float, hi: float, start: float) -> float:
        f_lo = self._value(lo)
        if abs(f_lo) <= self.function_value_accuracy:
            return lo
        f_hi = self._value(hi)
        if abs(f_hi) <= self.function_value_accuracy:
            return hi
        if f_lo * f_hi > 0:
            raise NoBracketingError(lo, hi, f_lo, f_hi)
        while True:
            mid = lo + 0.5 * (hi - lo)
            f_mid = self._value(mid)
            if abs(f_mid) <= self.function_value_accuracy:
                return mid
            if f_mid * f_lo > 0:
                lo, f_lo = mid, f_mid
            else:
                hi = mid
            tol = max(self.relative_accuracy * abs(mid), self.absolute_accuracy)
            if abs(hi - lo) <= tol:
                return lo + 0.5 * (hi - lo)


def find_upper_bound(f: UnivariateFunction, a: float, h: float) -> float:
    """Find ``b`` such that ``f(a)`` and ``f(b)`` have opposite signs.

    The trial step starts at ``h`` and grows by at least a factor of two
    (faster when ``|f|`` shrinks slowly) until the signs differ.

    Raises:
        OptimizationError: If the step overflows without bracketing.
    """
    if h <= 0:
        raise ValueError("initial step must be positive")
    y_a = f(a)
    y_b = y_a
    step = h
    while step < sys.float_info.max:
        b = a + step
        y_b = f(b)
        if y_a * y_b <= 0:
            return b
        step *= max(2.0, y_a / y_b)
    raise OptimizationError("unable to bracket optimum in line search")


__all__ = [
    "BisectionSolver",
    "BrentSolver",
    "UnivariateFunction",
    "UnivariateSolver",
    "find_upper_bound",
]
