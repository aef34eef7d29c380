"""Constructors for common model families and an incremental builder."""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from .distributions import (
    Distribution,
    ExponentialDistribution,
    MixtureDistribution,
    NormalDistribution,
    ProbabilityTable,
)
from .logging import get_logger
from .model import HiddenMarkovModel
from .utils import as_probability_matrix, random_stochastic_matrix

logger = get_logger(__name__)


def create_discrete_hmm(
    A: Sequence[Sequence[float]],
    PI: Sequence[float],
    B: Sequence[Sequence[float]],
    state_names: Optional[Sequence[str]] = None,
    obs_names: Optional[Sequence[str]] = None,
) -> HiddenMarkovModel:
    """Model with one probability table per state.

    Args:
        A: Transition matrix, shape ``(n, n)``.
        PI: Initial distribution, shape ``(n,)``.
        B: Emission matrix, shape ``(n, m)``; row ``i`` is the table of state ``i``.
        state_names: Optional state names.
        obs_names: Optional symbol names, ``m`` of them.
    """
    B = as_probability_matrix(B, "B")
    if obs_names is not None and len(obs_names) != B.shape[1]:
        raise ValueError(f"Expected {B.shape[1]} observation names, got {len(obs_names)}")
    return HiddenMarkovModel(
        A, PI, [ProbabilityTable(row) for row in B], state_names=state_names, obs_names=obs_names
    )


def create_random_discrete_hmm(
    n_states: int, n_obs: int, rng: Optional[np.random.Generator] = None
) -> HiddenMarkovModel:
    """Discrete model with random row-stochastic parameters.

    Args:
        n_states: Number of hidden states.
        n_obs: Number of observation symbols.
        rng: Random number generator. If None, uses default_rng(0).
    """
    if n_states < 1 or n_obs < 1:
        raise ValueError(f"n_states and n_obs must be >= 1, got {n_states}, {n_obs}")
    if rng is None:
        rng = np.random.default_rng(0)
    A = random_stochastic_matrix(n_states, n_states, rng)
    PI = random_stochastic_matrix(1, n_states, rng)[0]
    B = random_stochastic_matrix(n_states, n_obs, rng)
    return create_discrete_hmm(A, PI, B)


def create_normal_hmm(
    A: Sequence[Sequence[float]],
    PI: Sequence[float],
    means: Sequence[float],
    variances: Sequence[float],
) -> HiddenMarkovModel:
    if len(means) != len(variances):
        raise ValueError(f"Got {len(means)} means but {len(variances)} variances")
    return HiddenMarkovModel(A, PI, [NormalDistribution(m, v) for m, v in zip(means, variances)])


def create_exponential_hmm(
    A: Sequence[Sequence[float]], PI: Sequence[float], rates: Sequence[float]
) -> HiddenMarkovModel:
    return HiddenMarkovModel(A, PI, [ExponentialDistribution(rate) for rate in rates])


def create_normal_mixture_hmm(
    A: Sequence[Sequence[float]],
    PI: Sequence[float],
    means: Sequence[Sequence[float]],
    variances: Sequence[Sequence[float]],
    weights: Sequence[Sequence[float]],
) -> HiddenMarkovModel:
    """Model whose state ``i`` emits a normal mixture.

    ``means[i]``, ``variances[i]`` and ``weights[i]`` hold the components of
    state ``i``.
    """
    if not (len(means) == len(variances) == len(weights)):
        raise ValueError("means, variances and weights must have one entry per state")
    B = [
        MixtureDistribution.normal_mixture(m, v, w)
        for m, v, w in zip(means, variances, weights)
    ]
    return HiddenMarkovModel(A, PI, B)


class HMMBuilder:
    """Incremental model construction.

    Example:
        >>> builder = HMMBuilder()
        >>> builder.add_state("hot", ProbabilityTable([0.2, 0.8]), 0.6)
        0
        >>> builder.add_state("cold", ProbabilityTable([0.7, 0.3]), 0.4)
        1
        >>> model = builder.set_transitions(0, [0.7, 0.3]).set_transitions(1, [0.4, 0.6]).build()
        >>> model.n_states
        2
    """

    def __init__(self) -> None:
        self._names: List[str] = []
        self._dists: List[Distribution] = []
        self._initial: List[float] = []
        self._transitions: dict = {}
        self._obs_names: Optional[List[str]] = None

    def add_state(self, name: str, dist: Distribution, initial_prob: float = 0.0) -> int:
        """Append a state and return its index."""
        if not isinstance(dist, Distribution):
            raise ValueError(f"Expected a distribution for state {name!r}, got {dist!r}")
        if initial_prob < 0:
            raise ValueError(f"initial_prob must be non-negative, got {initial_prob}")
        self._names.append(name)
        self._dists.append(dist)
        self._initial.append(float(initial_prob))
        return len(self._names) - 1

    def set_transition(self, i: int, j: int, p: float) -> "HMMBuilder":
        if p < 0:
            raise ValueError(f"Transition probability must be non-negative, got {p}")
        self._transitions[(i, j)] = float(p)
        return self

    def set_transitions(self, i: int, probs: Sequence[float]) -> "HMMBuilder":
        for j, p in enumerate(probs):
            self.set_transition(i, j, p)
        return self

    def obs_names(self, *names: str) -> "HMMBuilder":
        self._obs_names = list(names)
        return self

    def build(self) -> HiddenMarkovModel:
        """Assemble the model.

        Raises:
            ValueError: If no state was added, a transition refers to an
                unknown state, or a state has no outgoing probability mass.
        """
        n = len(self._names)
        if n == 0:
            raise ValueError("Cannot build a model without states")
        A = np.zeros((n, n))
        for (i, j), p in self._transitions.items():
            if not (0 <= i < n and 0 <= j < n):
                raise ValueError(f"Transition ({i}, {j}) refers to an unknown state")
            A[i, j] = p
        empty = [self._names[i] for i in range(n) if np.sum(A[i]) == 0]
        if empty:
            raise ValueError(f"States without outgoing transitions: {empty}")
        logger.debug("Building model with %d states", n)
        return HiddenMarkovModel(
            A,
            self._initial,
            self._dists,
            state_names=self._names,
            obs_names=self._obs_names,
        )


def weather_hmm() -> HiddenMarkovModel:
    """Three-state weather model (sunny, cloudy, rainy) over four soil readings."""
    return create_discrete_hmm(
        A=[[0.5, 0.25, 0.25], [0.3, 0.4, 0.3], [0.25, 0.25, 0.5]],
        PI=[0.33, 0.33, 0.33],
        B=[[0.6, 0.2, 0.15, 0.05], [0.25, 0.25, 0.25, 0.25], [0.05, 0.1, 0.35, 0.5]],
        state_names=["sunny", "cloudy", "rainy"],
        obs_names=["dry", "dryish", "damp", "soggy"],
    )


__all__ = [
    "create_discrete_hmm",
    "create_random_discrete_hmm",
    "create_normal_hmm",
    "create_exponential_hmm",
    "create_normal_mixture_hmm",
    "HMMBuilder",
    "weather_hmm",
]
