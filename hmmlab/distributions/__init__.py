"""Emission distributions attached to hidden states."""

from .base import Distribution, scalar_value, weight_array
from .continuous import ExponentialDistribution, NormalDistribution
from .discrete import ProbabilityTable
from .mixture import WEIGHT_SUM_TOLERANCE, MixtureDistribution

__all__ = [
    "Distribution",
    "ProbabilityTable",
    "NormalDistribution",
    "ExponentialDistribution",
    "MixtureDistribution",
    "WEIGHT_SUM_TOLERANCE",
    "scalar_value",
    "weight_array",
]
