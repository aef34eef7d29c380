"""Tests for model constructors and the builder."""

import numpy as np
import pytest

from hmmlab import (
    ExponentialDistribution,
    HMMBuilder,
    MixtureDistribution,
    NormalDistribution,
    ProbabilityTable,
    create_discrete_hmm,
    create_exponential_hmm,
    create_normal_hmm,
    create_normal_mixture_hmm,
    create_random_discrete_hmm,
    weather_hmm,
)


def test_weather_hmm_parameters():
    model = weather_hmm()
    assert model.n_states == 3
    assert model.state_names == ["sunny", "cloudy", "rainy"]
    assert model.obs_names == ["dry", "dryish", "damp", "soggy"]
    assert np.allclose(model.A[2], [0.25, 0.25, 0.5])
    assert np.allclose(model.distribution(0).probs, [0.6, 0.2, 0.15, 0.05])


def test_create_discrete_hmm_validates_names():
    with pytest.raises(ValueError):
        create_discrete_hmm([[1.0]], [1.0], [[0.5, 0.5]], obs_names=["only one"])


def test_create_random_discrete_hmm_is_stochastic(rng):
    model = create_random_discrete_hmm(4, 6, rng)
    assert np.allclose(model.A.sum(axis=1), 1.0)
    assert model.PI.sum() == pytest.approx(1.0)
    for i in range(4):
        dist = model.distribution(i)
        assert isinstance(dist, ProbabilityTable)
        assert dist.size == 6
        assert dist.probs.sum() == pytest.approx(1.0)


def test_create_random_discrete_hmm_default_rng_is_deterministic():
    assert np.array_equal(create_random_discrete_hmm(3, 3).A, create_random_discrete_hmm(3, 3).A)
    with pytest.raises(ValueError):
        create_random_discrete_hmm(0, 3)


def test_continuous_factories():
    normal = create_normal_hmm([[0.5, 0.5], [0.5, 0.5]], [0.5, 0.5], [0.0, 1.0], [1.0, 2.0])
    assert isinstance(normal.distribution(1), NormalDistribution)
    assert normal.distribution(1).variance == 2.0

    expo = create_exponential_hmm([[1.0]], [1.0], [3.0])
    assert isinstance(expo.distribution(0), ExponentialDistribution)

    with pytest.raises(ValueError):
        create_normal_hmm([[1.0]], [1.0], [0.0], [1.0, 2.0])


def test_create_normal_mixture_hmm():
    model = create_normal_mixture_hmm(
        [[0.5, 0.5], [0.5, 0.5]], [0.5, 0.5],
        means=[[0.0, 1.0], [5.0, 6.0]],
        variances=[[1.0, 1.0], [1.0, 1.0]],
        weights=[[0.5, 0.5], [0.2, 0.8]],
    )
    dist = model.distribution(1)
    assert isinstance(dist, MixtureDistribution)
    assert np.allclose(dist.weights, [0.2, 0.8])
    with pytest.raises(ValueError):
        create_normal_mixture_hmm([[1.0]], [1.0], [[0.0]], [[1.0]], [[0.5]])


def test_builder_assembles_model():
    builder = HMMBuilder()
    hot = builder.add_state("hot", ProbabilityTable([0.2, 0.8]), 0.6)
    cold = builder.add_state("cold", ProbabilityTable([0.7, 0.3]), 0.4)
    model = (
        builder.set_transitions(hot, [0.7, 0.3])
        .set_transition(cold, hot, 0.4)
        .set_transition(cold, cold, 0.6)
        .obs_names("low", "high")
        .build()
    )
    assert model.state_names == ["hot", "cold"]
    assert model.obs_names == ["low", "high"]
    assert np.allclose(model.A, [[0.7, 0.3], [0.4, 0.6]])
    assert np.allclose(model.PI, [0.6, 0.4])


def test_builder_validation():
    with pytest.raises(ValueError, match="without states"):
        HMMBuilder().build()

    builder = HMMBuilder()
    builder.add_state("only", ProbabilityTable([1.0]), 1.0)
    with pytest.raises(ValueError, match="outgoing"):
        builder.build()

    builder.set_transition(0, 3, 1.0)
    with pytest.raises(ValueError, match="unknown state"):
        builder.build()

    with pytest.raises(ValueError):
        HMMBuilder().add_state("bad", [0.5, 0.5], 1.0)
    with pytest.raises(ValueError):
        HMMBuilder().set_transition(0, 0, -1.0)
