"""Numerical and formatting helpers shared across the HMM engine."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

# Number of decimals used in every human-readable rendering of probabilities.
DECIMAL_PRECISION = 12


def format_decimal(value: float) -> str:
    """Render a number with :data:`DECIMAL_PRECISION` decimals.

    Examples:
        >>> format_decimal(0.5)
        '0.500000000000'
    """
    return f"{value:.{DECIMAL_PRECISION}f}"


def format_row(values: Iterable[float]) -> str:
    """Render a vector as space separated decimals."""
    return " ".join(format_decimal(v) for v in values)


def normal_pdf(x: float, mean: float, variance: float) -> float:
    """Univariate normal density.

    A zero variance is treated as a point mass: the density is 1 at the mean
    and 0 everywhere else.

    Args:
        x: Point at which to evaluate.
        mean: Mean of the distribution.
        variance: Variance, must be non-negative.

    Returns:
        Density value (not log).

    Examples:
        >>> round(normal_pdf(0.0, 0.0, 1.0), 10)
        0.3989422804
    """
    if variance == 0:
        return 1.0 if x == mean else 0.0
    d = x - mean
    return (1.0 / math.sqrt(2 * math.pi * variance)) * math.exp(-(d * d) / (2 * variance))


def exponential_pdf(x: float, rate: float) -> float:
    """Exponential density ``rate * exp(-rate * x)``."""
    return rate * math.exp(-rate * x)


def as_probability_vector(values: Sequence[float], name: str) -> np.ndarray:
    """Convert to a 1D float array of finite, non-negative entries.

    Raises:
        ValueError: If the input is not 1D, is empty, or has negative or
            non-finite entries.
    """
    arr = np.array(values, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1D, got shape {arr.shape}")
    if arr.size == 0:
        raise ValueError(f"{name} must not be empty")
    if not np.all(np.isfinite(arr)) or np.any(arr < 0):
        raise ValueError(f"{name} must contain finite non-negative probabilities, got {arr}")
    return arr


def as_probability_matrix(values: Sequence[Sequence[float]], name: str) -> np.ndarray:
    """Convert to a 2D float array of finite, non-negative entries.

    Raises:
        ValueError: If the input is not a rectangular 2D array or has
            negative or non-finite entries.
    """
    try:
        arr = np.array(values, dtype=np.float64)
    except ValueError as exc:
        raise ValueError(f"{name} must be a rectangular matrix: {exc}") from exc
    if arr.ndim != 2:
        raise ValueError(f"{name} must be 2D, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)) or np.any(arr < 0):
        raise ValueError(f"{name} must contain finite non-negative probabilities")
    return arr


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Return a row-stochastic copy; all-zero rows are left untouched."""
    matrix = np.asarray(matrix, dtype=np.float64)
    row_sums = np.sum(matrix, axis=1, keepdims=True)
    row_sums[row_sums == 0] = 1.0
    return matrix / row_sums


def random_stochastic_matrix(rows: int, cols: int, rng: np.random.Generator) -> np.ndarray:
    """Draw a random row-stochastic matrix with strictly positive rows."""
    matrix = rng.random((rows, cols))
    for i in range(rows):
        # rng.random() lies in [0, 1); redraw the rare all-zero row
        while np.sum(matrix[i]) == 0:
            matrix[i] = rng.random(cols)
    return normalize_rows(matrix)


__all__ = [
    "DECIMAL_PRECISION",
    "format_decimal",
    "format_row",
    "normal_pdf",
    "exponential_pdf",
    "as_probability_vector",
    "as_probability_matrix",
    "normalize_rows",
    "random_stochastic_matrix",
]
