"""Pytest configuration and shared fixtures for descentkit tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Debug mode isolation so one test cannot leak it into another
"""

import os

import numpy as np
import pytest
import torch

from descentkit.diagnostics import is_debug_enabled, set_debug_enabled


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Seed the global numpy and torch generators before every test."""
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    np.random.seed(seed)
    torch.manual_seed(seed)


@pytest.fixture(scope="function", autouse=True)
def restore_debug_mode():
    original = is_debug_enabled()
    yield
    set_debug_enabled(original)
