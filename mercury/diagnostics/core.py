"""Finite-value checks used by the optimizers in debug mode."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..exceptions import FunctionEvaluationError


def assert_finite(
    values: np.ndarray,
    what: str,
    point: Optional[np.ndarray] = None,
) -> None:
    """
    Raise if ``values`` contains NaN or infinite entries.

    Parameters
    ----------
    values:
        Scalar or array returned by a user function.
    what:
        Name of the quantity, used in the error message.
    point:
        Point at which ``values`` was evaluated.

    Raises
    ------
    FunctionEvaluationError
        If any entry is not finite.
    """
    arr = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(arr)):
        bad = int(np.count_nonzero(~np.isfinite(arr)))
        raise FunctionEvaluationError(f"{what} contains {bad} non-finite value(s)", point)


def is_finite(values: np.ndarray) -> bool:
    """Return True when every entry of ``values`` is finite."""
    return bool(np.all(np.isfinite(np.asarray(values, dtype=float))))


__all__ = ["assert_finite", "is_finite"]
