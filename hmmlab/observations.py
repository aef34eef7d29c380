"""Observation values consumed by emission distributions.

Observations are opaque, immutable and compared by value. The reference
instantiation, :class:`MonoObs`, wraps a single real number; a discrete
symbol is encoded as the integer part of that number.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .utils import format_decimal


class Obs:
    """Marker base class for observations."""

    __slots__ = ()


@dataclass(frozen=True)
class MonoObs(Obs):
    """Scalar observation.

    Example:
        >>> o = MonoObs(2.0)
        >>> int(o), float(o)
        (2, 2.0)
    """

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))

    def __float__(self) -> float:
        return self.value

    def __int__(self) -> int:
        return int(self.value)

    def __str__(self) -> str:
        return format_decimal(self.value)


@dataclass(frozen=True)
class VectorObs(Obs):
    """Feature-vector observation.

    None of the built-in distributions evaluate vectors; they raise
    ``NotImplementedError`` when handed one.
    """

    values: Tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    def __len__(self) -> int:
        return len(self.values)

    def __str__(self) -> str:
        return "(" + ", ".join(format_decimal(v) for v in self.values) + ")"


ObsLike = Union[Obs, Real, np.number]


def create_obs_list(*numbers: float) -> List[MonoObs]:
    """Wrap numbers as a list of :class:`MonoObs`."""
    return [MonoObs(float(number)) for number in numbers]


def random_integer_obs(
    size: int, max_exclusive: int, rng: Optional[np.random.Generator] = None
) -> List[MonoObs]:
    """Draw ``size`` integer symbols uniformly from ``[0, max_exclusive)``.

    Args:
        size: Sequence length.
        max_exclusive: Number of distinct symbols.
        rng: Random number generator. If None, uses default_rng(0).
    """
    if rng is None:
        rng = np.random.default_rng(0)
    return [MonoObs(float(v)) for v in rng.integers(0, max_exclusive, size=size)]


def random_real_obs(size: int, rng: Optional[np.random.Generator] = None) -> List[MonoObs]:
    """Draw ``size`` reals uniformly from ``[0, 1)``."""
    if rng is None:
        rng = np.random.default_rng(0)
    return [MonoObs(float(v)) for v in rng.random(size)]


def as_obs(value: ObsLike) -> Obs:
    """Wrap a bare number as :class:`MonoObs`; observations pass through."""
    if isinstance(value, Obs):
        return value
    if isinstance(value, (Real, np.number)):
        return MonoObs(float(value))
    raise TypeError(f"Cannot interpret {value!r} as an observation")


def as_obs_sequence(seq: Iterable[ObsLike]) -> List[Obs]:
    """Coerce an observation sequence.

    Raises:
        ValueError: If the sequence is empty.
    """
    if isinstance(seq, np.ndarray):
        seq = seq.tolist()
    observations = [as_obs(o) for o in seq]
    if not observations:
        raise ValueError("Observation sequence must not be empty")
    return observations


def obs_to_string(O: Sequence[Obs]) -> str:
    """Render an observation sequence as ``{o(0)=..., o(1)=...}``."""
    return "{" + ", ".join(f"o({t})={o}" for t, o in enumerate(O)) + "}"


__all__ = [
    "Obs",
    "MonoObs",
    "VectorObs",
    "ObsLike",
    "create_obs_list",
    "random_integer_obs",
    "random_real_obs",
    "as_obs",
    "as_obs_sequence",
    "obs_to_string",
]
