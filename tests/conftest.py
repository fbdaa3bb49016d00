"""Pytest configuration and shared fixtures for optkit tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Small objective functions shared by the optimizer tests
"""

import os

import numpy as np
import pytest
import torch


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
    """Seed torch's global generator so autograd tests are reproducible."""
    torch.manual_seed(_seed())


@pytest.fixture
def sphere():
    """``f(x) = sum(x_i^2)`` as a value-and-gradient objective."""

    def objective(x: np.ndarray) -> tuple[float, np.ndarray]:
        return float(x @ x), 2.0 * x

    return objective


@pytest.fixture
def scaled_quadratic():
    """Ill-conditioned convex quadratic ``sum(c_i x_i^2)`` with ``c_i = 1..10``."""

    def objective(x: np.ndarray) -> tuple[float, np.ndarray]:
        c = np.arange(1, x.size + 1, dtype=float)
        return float(np.sum(c * x**2)), 2.0 * c * x

    return objective
