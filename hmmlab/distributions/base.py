"""Capability interface shared by all emission distributions."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from ..observations import Obs, VectorObs


class Distribution(ABC):
    """Probability law over observations bound to one hidden state.

    Atomic variants (discrete table, normal, exponential) and mixtures are
    siblings behind this interface. ``comp`` selects one mixture component;
    a negative value, the default, means the full density. Atomic variants
    ignore ``comp``.
    """

    @property
    def is_mixture(self) -> bool:
        return False

    @abstractmethod
    def prob(self, obs: Obs, comp: int = -1) -> float:
        """Probability (or density) of ``obs``."""

    @abstractmethod
    def learn(self, O: Sequence[Obs], weights) -> bool:
        """Re-estimate parameters from observations and posterior weights.

        Atomic variants take one weight per time point. Mixtures take one
        weight sequence per component.

        Returns:
            True if new parameters were committed, False if the update was
            skipped because the statistics were degenerate.
        """

    @abstractmethod
    def sample(self, rng: np.random.Generator) -> Obs:
        """Draw one observation."""

    def copy(self) -> "Distribution":
        """Independent deep copy."""
        return copy.deepcopy(self)


def scalar_value(obs: Obs) -> float:
    """Extract the real value of a scalar observation.

    Raises:
        NotImplementedError: For vector observations.
    """
    if isinstance(obs, VectorObs):
        raise NotImplementedError(
            "Scalar distributions are not implemented for vector observations"
        )
    return float(obs)


def weight_array(weights, length: int) -> np.ndarray:
    """Validate a per-time-point weight sequence."""
    arr = np.asarray(weights, dtype=np.float64)
    if arr.ndim != 1:
        raise NotImplementedError(
            f"Atomic distributions learn from one weight per time point, got shape {arr.shape}"
        )
    if arr.shape[0] != length:
        raise ValueError(f"Expected {length} weights, got {arr.shape[0]}")
    return arr


__all__ = ["Distribution", "scalar_value", "weight_array"]
