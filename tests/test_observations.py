"""Tests for observation values and helpers."""

import numpy as np
import pytest

from hmmlab.observations import (
    MonoObs,
    VectorObs,
    as_obs_sequence,
    create_obs_list,
    obs_to_string,
    random_integer_obs,
    random_real_obs,
)


def test_mono_obs_value_semantics():
    """MonoObs compares by value and truncates to a symbol index."""
    assert MonoObs(2) == MonoObs(2.0)
    assert int(MonoObs(2.9)) == 2
    assert float(MonoObs(1.5)) == 1.5
    assert hash(MonoObs(3)) == hash(MonoObs(3.0))


def test_mono_obs_is_immutable():
    obs = MonoObs(1.0)
    with pytest.raises(AttributeError):
        obs.value = 2.0


def test_create_obs_list():
    O = create_obs_list(0, 2, 3)
    assert O == [MonoObs(0), MonoObs(2), MonoObs(3)]


def test_random_integer_obs_range(rng):
    O = random_integer_obs(50, 4, rng)
    assert len(O) == 50
    assert all(0 <= int(o) < 4 for o in O)


def test_random_obs_default_rng_is_deterministic():
    assert random_integer_obs(10, 3) == random_integer_obs(10, 3)
    assert random_real_obs(5) == random_real_obs(5)
    assert all(0.0 <= float(o) < 1.0 for o in random_real_obs(5))


def test_as_obs_sequence_coerces_numbers():
    """Numbers and numpy arrays become MonoObs; observations pass through."""
    vec = VectorObs((1.0, 2.0))
    O = as_obs_sequence([1, 2.5, vec])
    assert O == [MonoObs(1.0), MonoObs(2.5), vec]
    assert as_obs_sequence(np.array([0, 1])) == [MonoObs(0), MonoObs(1)]


def test_as_obs_sequence_rejects_empty_and_garbage():
    with pytest.raises(ValueError, match="must not be empty"):
        as_obs_sequence([])
    with pytest.raises(TypeError):
        as_obs_sequence(["dry"])


def test_obs_to_string():
    assert obs_to_string(create_obs_list(0, 2)) == (
        "{o(0)=0.000000000000, o(1)=2.000000000000}"
    )
