"""Debug mode for the mercury optimizers.

While debug mode is on, the optimizers pass every model value, Jacobian,
objective value and gradient they compute through
:func:`mercury.diagnostics.assert_finite`, so a NaN or infinity raises
:class:`~mercury.exceptions.FunctionEvaluationError` at the iteration that
produced it instead of silently poisoning the normal equations or the line
search. The checks cost one ``isfinite`` pass per evaluation and are off by
default.

The initial state comes from the ``MERCURY_DEBUG`` environment variable
(``1``, ``true``, ``yes`` or ``on`` enable it).
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

_DEBUG_ENV_VAR = "MERCURY_DEBUG"
_TRUTHY = ("1", "true", "yes", "on")

_debug_enabled: bool = os.getenv(_DEBUG_ENV_VAR, "0").strip().lower() in _TRUTHY


def is_debug_enabled() -> bool:
    """Return whether the optimizers currently run their finite-value checks."""
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    """
    Switch the finite-value checks on or off for every optimizer.

    Parameters
    ----------
    enabled:
        True to check values, gradients and Jacobians on each evaluation.
    """
    global _debug_enabled
    _debug_enabled = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Temporarily switch debug mode, restoring the previous state on exit.

    Parameters
    ----------
    enabled:
        Debug state inside the ``with`` block.

    Example
    -------
    >>> import numpy as np
    >>> from mercury.optimize import GaussNewtonOptimizer
    >>> with debug_context(True):
    ...     try:
    ...         GaussNewtonOptimizer().optimize(
    ...             lambda p: np.array([np.nan]), [0.0], [1.0], [0.0]
    ...         )
    ...     except ValueError as exc:
    ...         print(type(exc).__name__)
    FunctionEvaluationError
    """
    global _debug_enabled
    previous = _debug_enabled
    _debug_enabled = bool(enabled)
    try:
        yield
    finally:
        _debug_enabled = previous
