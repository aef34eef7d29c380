"""Continuous atomic emission distributions: normal and exponential."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..observations import MonoObs, Obs
from ..utils import exponential_pdf, format_decimal, normal_pdf
from .base import Distribution, scalar_value, weight_array


class NormalDistribution(Distribution):
    """Univariate normal density.

    Attributes:
        mean: Mean of the density.
        variance: Variance, non-negative. A zero variance is a point mass.
    """

    def __init__(self, mean: float = 0.0, variance: float = 1.0):
        self.set_parameters(mean, variance)

    def set_parameters(self, mean: float, variance: float) -> None:
        if not math.isfinite(mean):
            raise ValueError(f"mean must be finite, got {mean}")
        if not math.isfinite(variance) or variance < 0:
            raise ValueError(f"variance must be finite and non-negative, got {variance}")
        self.mean = float(mean)
        self.variance = float(variance)

    def prob(self, obs: Obs, comp: int = -1) -> float:
        return normal_pdf(scalar_value(obs), self.mean, self.variance)

    def learn(self, O: Sequence[Obs], weights) -> bool:
        """Weighted maximum-likelihood mean and variance.

        Nothing is committed when the weights sum to zero or are not finite,
        and the update is also dropped when the new variance collapses to zero.
        """
        gammas = weight_array(weights, len(O))
        denominator = float(np.sum(gammas))
        if denominator == 0 or not math.isfinite(denominator):
            return False

        values = np.array([scalar_value(o) for o in O])
        with np.errstate(over="ignore", invalid="ignore"):
            mean = float(np.sum(gammas * values)) / denominator
            d = values - mean
            variance = float(np.sum(gammas * d * d)) / denominator
        if not math.isfinite(mean) or not math.isfinite(variance) or variance <= 0:
            return False

        self.set_parameters(mean, variance)
        return True

    def sample(self, rng: np.random.Generator) -> Obs:
        return MonoObs(float(rng.normal(self.mean, math.sqrt(self.variance))))

    def __repr__(self) -> str:
        return f"NormalDistribution(mean={self.mean!r}, variance={self.variance!r})"

    def __str__(self) -> str:
        return (
            f"Normal distribution (mean={format_decimal(self.mean)}, "
            f"variance={format_decimal(self.variance)})"
        )


class ExponentialDistribution(Distribution):
    """Exponential density ``rate * exp(-rate * x)``."""

    def __init__(self, rate: float):
        self.set_parameters(rate)

    def set_parameters(self, rate: float) -> None:
        if not math.isfinite(rate) or rate < 0:
            raise ValueError(f"rate must be finite and non-negative, got {rate}")
        self.rate = float(rate)

    def prob(self, obs: Obs, comp: int = -1) -> float:
        return exponential_pdf(scalar_value(obs), self.rate)

    def learn(self, O: Sequence[Obs], weights) -> bool:
        gammas = weight_array(weights, len(O))
        numerator = float(np.sum(gammas))
        if numerator == 0 or not math.isfinite(numerator):
            return False

        values = np.array([scalar_value(o) for o in O])
        with np.errstate(over="ignore", invalid="ignore"):
            denominator = float(np.sum(gammas * values))
        if denominator == 0 or not math.isfinite(denominator):
            return False

        rate = numerator / denominator
        # negative observations can drive the weighted sum below zero
        if rate <= 0 or not math.isfinite(rate):
            return False
        self.set_parameters(rate)
        return True

    def sample(self, rng: np.random.Generator) -> Obs:
        if self.rate == 0:
            raise ValueError("Cannot sample from an exponential distribution with zero rate")
        return MonoObs(float(rng.exponential(1.0 / self.rate)))

    def __repr__(self) -> str:
        return f"ExponentialDistribution(rate={self.rate!r})"

    def __str__(self) -> str:
        return f"Exponential distribution (lambda={format_decimal(self.rate)})"


__all__ = ["NormalDistribution", "ExponentialDistribution"]
