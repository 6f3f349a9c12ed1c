"""Pytest configuration and shared fixtures for mercury tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- A fixture restoring the global debug-mode flag after each test
"""

import os
from typing import Iterator

import numpy as np
import pytest
import torch

from mercury.diagnostics import is_debug_enabled, set_debug_enabled


def _seed() -> int:
    return int(os.environ.get("TEST_RNG_SEED", "0"))


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    return np.random.default_rng(_seed())


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(_seed())
    torch.manual_seed(_seed())


@pytest.fixture(scope="function")
def restore_debug_mode() -> Iterator[None]:
    """Put the debug-mode flag back to its value before the test."""
    original = is_debug_enabled()
    try:
        yield
    finally:
        set_debug_enabled(original)
