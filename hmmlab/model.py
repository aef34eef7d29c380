"""Hidden Markov model container and its inbound surface."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from . import decoding, inference
from .config import LearnConfig
from .distributions import Distribution
from .events import EventChannel, HMMListener
from .inference import RawRecurrence, Recurrence
from .learning import BaumWelch, EMResult
from .logging import get_logger
from .observations import Obs, ObsLike, as_obs, as_obs_sequence
from .utils import as_probability_matrix, as_probability_vector, format_row

logger = get_logger(__name__)


class HiddenMarkovModel:
    """Hidden Markov model with one emission distribution per state.

    Attributes:
        n_states: Number of hidden states.
        state_names: Optional display names of the states.
        obs_names: Optional display names of the observation symbols.

    Args:
        A: Transition matrix, shape ``(n, n)``; ``A[i, j]`` is the
            probability of moving from state ``i`` to state ``j``.
        PI: Initial state distribution, shape ``(n,)``.
        B: One :class:`~hmmlab.distributions.Distribution` per state. The
            model takes exclusive ownership of them.
        state_names: Optional state names.
        obs_names: Optional observation symbol names.
        recurrence: α/β strategy used for learning and scoring; defaults to
            :class:`~hmmlab.inference.RawRecurrence`.
        config: EM termination policy; defaults to :class:`LearnConfig`.

    Raises:
        ValueError: If the shapes of A, PI and B disagree or an entry is
            not a probability.

    Example:
        >>> from hmmlab import weather_hmm
        >>> model = weather_hmm()
        >>> model.uncover([0, 2, 3])
        [0, 2, 2]
    """

    def __init__(
        self,
        A: Sequence[Sequence[float]],
        PI: Sequence[float],
        B: Sequence[Distribution],
        state_names: Optional[Sequence[str]] = None,
        obs_names: Optional[Sequence[str]] = None,
        recurrence: Optional[Recurrence] = None,
        config: Optional[LearnConfig] = None,
    ):
        A = as_probability_matrix(A, "A")
        PI = as_probability_vector(PI, "PI")
        B = list(B)
        n = PI.shape[0]
        if A.shape != (n, n):
            raise ValueError(f"A shape {A.shape} != ({n}, {n})")
        if len(B) != n:
            raise ValueError(f"Expected {n} distributions in B, got {len(B)}")
        for i, dist in enumerate(B):
            if not isinstance(dist, Distribution):
                raise ValueError(f"B[{i}] is not a distribution: {dist!r}")
        if state_names is not None and len(state_names) != n:
            raise ValueError(f"Expected {n} state names, got {len(state_names)}")

        self._A = A
        self._PI = PI
        self._B = B
        self.state_names: List[str] = list(state_names) if state_names is not None else []
        self.obs_names: List[str] = list(obs_names) if obs_names is not None else []
        self._config = config if config is not None else LearnConfig()
        self.events = EventChannel()
        self._learner = BaumWelch(self.events, recurrence if recurrence is not None else RawRecurrence())

    # parameters

    @property
    def n_states(self) -> int:
        return self._PI.shape[0]

    @property
    def A(self) -> np.ndarray:
        """Copy of the transition matrix."""
        return self._A.copy()

    @property
    def PI(self) -> np.ndarray:
        """Copy of the initial state distribution."""
        return self._PI.copy()

    @property
    def B(self) -> List[Distribution]:
        """The emission distributions (shared, not copied)."""
        return list(self._B)

    def a(self, i: int, j: int) -> float:
        return float(self._A[i, j])

    def pi(self, i: int) -> float:
        return float(self._PI[i])

    def b(self, i: int, obs: ObsLike, comp: int = -1) -> float:
        """Emission probability of ``obs`` in state ``i``, optionally one mixture component."""
        return self._B[i].prob(as_obs(obs), comp)

    def distribution(self, i: int) -> Distribution:
        return self._B[i]

    def set_a(self, i: int, j: int, p: float) -> None:
        if p < 0:
            raise ValueError(f"Transition probability must be non-negative, got {p}")
        self._A[i, j] = p

    def set_pi(self, i: int, p: float) -> None:
        if p < 0:
            raise ValueError(f"Initial probability must be non-negative, got {p}")
        self._PI[i] = p

    def set_b(self, i: int, dist: Distribution) -> Distribution:
        """Replace the distribution of state ``i`` and return the previous one."""
        if not isinstance(dist, Distribution):
            raise ValueError(f"Expected a distribution, got {dist!r}")
        previous = self._B[i]
        self._B[i] = dist
        return previous

    def set_transition_matrix(self, A: Sequence[Sequence[float]]) -> None:
        A = as_probability_matrix(A, "A")
        if A.shape != self._A.shape:
            raise ValueError(f"A shape {A.shape} != {self._A.shape}")
        self._A = A

    def set_initial_distribution(self, PI: Sequence[float]) -> None:
        PI = as_probability_vector(PI, "PI")
        if PI.shape != self._PI.shape:
            raise ValueError(f"PI shape {PI.shape} != {self._PI.shape}")
        self._PI = PI

    @property
    def config(self) -> LearnConfig:
        return self._config

    @config.setter
    def config(self, config: LearnConfig) -> None:
        if not isinstance(config, LearnConfig):
            raise ValueError(f"Expected LearnConfig, got {config!r}")
        self._config = config

    @property
    def recurrence(self) -> Recurrence:
        return self._learner.recurrence

    # inbound surface

    def evaluate(self, O: Sequence[ObsLike]) -> float:
        """Likelihood P(O) of an observation sequence."""
        return inference.prob_obs(self, O)

    def score(self, O: Sequence[ObsLike]) -> float:
        """Log-likelihood of ``O`` under the configured recurrence."""
        O = as_obs_sequence(O)
        return self.recurrence.tables(self, O).log_likelihood

    def uncover(self, O: Sequence[ObsLike]) -> List[int]:
        """Most likely state sequence (Viterbi)."""
        return decoding.viterbi(self, O, self.events)

    def predict(self, O: Sequence[ObsLike]) -> np.ndarray:
        return np.array(self.uncover(O), dtype=int)

    def learn(self, O: Sequence[ObsLike]) -> EMResult:
        """Fit the parameters to ``O`` by Baum-Welch EM, in place."""
        return self._learner.em(self, O, self._config)

    def sample(
        self, length: int, rng: Optional[np.random.Generator] = None
    ) -> Tuple[np.ndarray, List[Obs]]:
        """Generate a state path and observations from the model.

        Args:
            length: Number of time points.
            rng: Random number generator. If None, uses default_rng(0).

        Returns:
            Tuple ``(states, observations)``.
        """
        if length < 1:
            raise ValueError(f"length must be >= 1, got {length}")
        if rng is None:
            rng = np.random.default_rng(0)

        states = np.zeros(length, dtype=int)
        observations: List[Obs] = []
        states[0] = rng.choice(self.n_states, p=_normalized(self._PI, "PI"))
        observations.append(self._B[states[0]].sample(rng))
        for t in range(1, length):
            row = _normalized(self._A[states[t - 1]], f"A[{states[t - 1]}]")
            states[t] = rng.choice(self.n_states, p=row)
            observations.append(self._B[states[t]].sample(rng))
        return states, observations

    # events and run control

    def add_listener(self, listener: HMMListener) -> None:
        self.events.add_listener(listener)

    def remove_listener(self, listener: HMMListener) -> None:
        self.events.remove_listener(listener)

    def listeners(self) -> List[HMMListener]:
        return self.events.listeners()

    def pause(self) -> bool:
        return self._learner.pause()

    def resume(self) -> bool:
        return self._learner.resume()

    def stop(self) -> bool:
        return self._learner.stop()

    def is_started(self) -> bool:
        return self._learner.is_started()

    def is_paused(self) -> bool:
        return self._learner.is_paused()

    def is_running(self) -> bool:
        return self._learner.is_running()

    # lifecycle

    def copy(self) -> "HiddenMarkovModel":
        """Deep copy of the parameters, names, recurrence and config; listeners are not copied."""
        return HiddenMarkovModel(
            self._A,
            self._PI,
            [dist.copy() for dist in self._B],
            state_names=self.state_names or None,
            obs_names=self.obs_names or None,
            recurrence=self.recurrence,
            config=self._config,
        )

    def close(self) -> None:
        """Stop any running EM, detach listeners and clear names."""
        self._learner.stop()
        self.events.clear()
        logger.debug("Closed model with %d states", self.n_states)
        self.state_names = []
        self.obs_names = []

    def __enter__(self) -> "HiddenMarkovModel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HiddenMarkovModel(n_states={self.n_states})"

    def __str__(self) -> str:
        parts = []
        if self.state_names:
            names = ", ".join(f"s{i}={name}" for i, name in enumerate(self.state_names))
            parts.append(f"States S={{{names}}}\n\n")
        if self.obs_names:
            names = ", ".join(f"o{i}={name}" for i, name in enumerate(self.obs_names))
            parts.append(f"Observations O={{{names}}}\n\n")
        parts.append("Transition probability matrix A\n")
        parts.append("\n".join(format_row(row) for row in self._A))
        parts.append("\n\nInitial state probability PI\n")
        parts.append(format_row(self._PI))
        parts.append("\n\nObservation probability matrix or distribution B\n")
        parts.append("\n".join(f"Distribution {i}:\n{dist}" for i, dist in enumerate(self._B)))
        return "".join(parts)


def _normalized(probs: np.ndarray, name: str) -> np.ndarray:
    total = float(np.sum(probs))
    if total == 0:
        raise ValueError(f"Cannot sample from all-zero {name}")
    return probs / total


__all__ = ["HiddenMarkovModel"]
