"""Finite mixture of emission distributions."""

from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np

from ..observations import Obs
from ..utils import format_decimal
from .base import Distribution
from .continuous import NormalDistribution

# Allowed deviation of the mixture weights from a unit sum.
WEIGHT_SUM_TOLERANCE = 1e-9


class MixtureDistribution(Distribution):
    """Weighted sum of component distributions.

    ``prob(obs, k)`` is the weighted density of component ``k`` alone,
    ``w_k * component_k(obs)``; the full density is the sum over ``k``.

    Args:
        components: Component distributions, owned by the mixture.
        weights: One non-negative weight per component, summing to 1.

    Raises:
        ValueError: If the lengths differ, the mixture is empty, or the
            weights are negative or do not sum to 1.
    """

    def __init__(self, components: Sequence[Distribution], weights: Sequence[float]):
        components = list(components)
        weights = np.array(weights, dtype=np.float64)
        if not components:
            raise ValueError("A mixture needs at least one component")
        if weights.ndim != 1 or weights.shape[0] != len(components):
            raise ValueError(
                f"Expected {len(components)} weights, got shape {weights.shape}"
            )
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise ValueError(f"Mixture weights must be finite and non-negative, got {weights}")
        if abs(float(np.sum(weights)) - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Mixture weights must sum to 1, got {float(np.sum(weights))}")
        for dist in components:
            if not isinstance(dist, Distribution):
                raise ValueError(f"Mixture components must be distributions, got {dist!r}")

        self._components: List[Distribution] = components
        self._weights = weights

    @classmethod
    def normal_mixture(
        cls,
        means: Sequence[float],
        variances: Sequence[float],
        weights: Sequence[float],
    ) -> "MixtureDistribution":
        """Mixture of normal components.

        Example:
            >>> mix = MixtureDistribution.normal_mixture([0, 5], [1, 1], [0.5, 0.5])
            >>> mix.component_count
            2
        """
        if not (len(means) == len(variances) == len(weights)):
            raise ValueError("means, variances and weights must have the same length")
        components = [NormalDistribution(m, v) for m, v in zip(means, variances)]
        return cls(components, weights)

    @property
    def is_mixture(self) -> bool:
        return True

    @property
    def component_count(self) -> int:
        return len(self._components)

    @property
    def weights(self) -> np.ndarray:
        return self._weights.copy()

    def component(self, k: int) -> Distribution:
        return self._components[k]

    def replace_component(self, k: int, dist: Distribution) -> Distribution:
        """Swap in a new component and return the previous one."""
        if not isinstance(dist, Distribution):
            raise ValueError(f"Mixture components must be distributions, got {dist!r}")
        previous = self._components[k]
        self._components[k] = dist
        return previous

    def prob(self, obs: Obs, comp: int = -1) -> float:
        if comp >= 0:
            return float(self._weights[comp]) * self._components[comp].prob(obs)
        return math.fsum(
            float(w) * dist.prob(obs) for w, dist in zip(self._weights, self._components)
        )

    def learn(self, O: Sequence[Obs], weights) -> bool:
        """Re-estimate components and mixture weights.

        Args:
            O: Observation sequence.
            weights: One weight sequence per component, shape ``(K, len(O))``.

        Returns:
            True if the mixture weights were committed.

        Raises:
            NotImplementedError: If ``weights`` is a flat per-time list.
        """
        gammas = np.asarray(weights, dtype=np.float64)
        if gammas.ndim != 2:
            raise NotImplementedError(
                "Mixture distributions learn from one weight sequence per component"
            )
        K = self.component_count
        if gammas.shape != (K, len(O)):
            raise ValueError(f"Expected weights of shape {(K, len(O))}, got {gammas.shape}")

        for k, dist in enumerate(self._components):
            if dist.is_mixture:
                dist.learn(O, gammas)
            else:
                dist.learn(O, gammas[k])

        with np.errstate(over="ignore", invalid="ignore"):
            sums = np.sum(gammas, axis=1)
            denominator = float(np.sum(sums))
            if denominator == 0 or not math.isfinite(denominator):
                return False
            new_weights = sums / denominator
        if not np.all(np.isfinite(new_weights)):
            return False
        self._weights = new_weights
        return True

    def sample(self, rng: np.random.Generator) -> Obs:
        k = int(rng.choice(self.component_count, p=self._weights / np.sum(self._weights)))
        return self._components[k].sample(rng)

    def __repr__(self) -> str:
        return (
            f"MixtureDistribution({self._components!r}, {self._weights.tolist()!r})"
        )

    def __str__(self) -> str:
        weights = ", ".join(
            f"w{k + 1}={format_decimal(w)}" for k, w in enumerate(self._weights)
        )
        components = "\n".join(f"    {dist}" for dist in self._components)
        return f"Weights: {weights}\nPartial components:\n{components}"


__all__ = ["MixtureDistribution", "WEIGHT_SUM_TOLERANCE"]
