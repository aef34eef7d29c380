"""Discrete emission distribution backed by a probability table."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..observations import MonoObs, Obs
from ..utils import as_probability_vector, format_row
from .base import Distribution, scalar_value, weight_array


class ProbabilityTable(Distribution):
    """Probability vector indexed by the integer symbol of an observation.

    Symbols outside ``[0, size)`` have probability 0.

    Example:
        >>> table = ProbabilityTable([0.6, 0.2, 0.15, 0.05])
        >>> table.prob(MonoObs(2))
        0.15
    """

    def __init__(self, probs: Sequence[float]):
        self._probs = as_probability_vector(probs, "probs")

    @classmethod
    def point(cls, size: int) -> "ProbabilityTable":
        """Table of ``size`` symbols with all mass on symbol 0."""
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")
        probs = np.zeros(size)
        probs[0] = 1.0
        return cls(probs)

    @classmethod
    def uniform(cls, size: int) -> "ProbabilityTable":
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")
        return cls(np.full(size, 1.0 / size))

    @property
    def size(self) -> int:
        return self._probs.shape[0]

    @property
    def probs(self) -> np.ndarray:
        return self._probs.copy()

    def set_prob(self, symbol: int, prob: float) -> None:
        if prob < 0:
            raise ValueError(f"prob must be non-negative, got {prob}")
        self._probs[int(symbol)] = prob

    def prob(self, obs: Obs, comp: int = -1) -> float:
        symbol = int(scalar_value(obs))
        if symbol < 0 or symbol >= self.size:
            return 0.0
        return float(self._probs[symbol])

    def learn(self, O: Sequence[Obs], weights) -> bool:
        gammas = weight_array(weights, len(O))
        denominator = float(np.sum(gammas))
        if denominator == 0 or not np.isfinite(denominator):
            return False

        symbols = np.array([int(scalar_value(o)) for o in O])
        new_probs = np.zeros(self.size)
        for k in range(self.size):
            new_probs[k] = np.sum(gammas[symbols == k]) / denominator
        self._probs = new_probs
        return True

    def sample(self, rng: np.random.Generator) -> Obs:
        total = np.sum(self._probs)
        if total == 0:
            raise ValueError("Cannot sample from an all-zero probability table")
        return MonoObs(float(rng.choice(self.size, p=self._probs / total)))

    def __repr__(self) -> str:
        return f"ProbabilityTable({self._probs.tolist()!r})"

    def __str__(self) -> str:
        return format_row(self._probs)


__all__ = ["ProbabilityTable"]
