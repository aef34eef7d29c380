"""Pytest configuration and shared fixtures for hmmlab tests.

This module provides:
- Deterministic RNG fixtures for numpy
- The reference weather model and its observation sequence
"""

import os

import numpy as np
import pytest

from hmmlab import create_obs_list, weather_hmm


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    This ensures tests are reproducible while allowing override for debugging.

    Returns:
        A seeded numpy.random.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to set the numpy global seed for reproducibility."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))


@pytest.fixture
def weather():
    """Sunny/cloudy/rainy model over dry/dryish/damp/soggy readings."""
    return weather_hmm()


@pytest.fixture
def weather_obs():
    """Observation sequence dry, damp, soggy."""
    return create_obs_list(0, 2, 3)
