"""Tests for emission distributions."""

import math

import numpy as np
import pytest

from hmmlab.distributions import (
    ExponentialDistribution,
    MixtureDistribution,
    NormalDistribution,
    ProbabilityTable,
)
from hmmlab.observations import MonoObs, VectorObs, create_obs_list


class TestProbabilityTable:
    def test_prob_by_symbol(self):
        table = ProbabilityTable([0.6, 0.2, 0.15, 0.05])
        assert table.prob(MonoObs(2)) == 0.15
        assert table.prob(MonoObs(2.7)) == 0.15
        assert table.prob(MonoObs(0), comp=3) == 0.6

    @pytest.mark.parametrize("symbol", [-1, 4, 100])
    def test_out_of_range_symbol_is_zero(self, symbol):
        assert ProbabilityTable([0.6, 0.2, 0.15, 0.05]).prob(MonoObs(symbol)) == 0.0

    def test_point_and_uniform(self):
        assert ProbabilityTable.point(3).probs.tolist() == [1.0, 0.0, 0.0]
        assert np.allclose(ProbabilityTable.uniform(4).probs, 0.25)

    def test_invalid_probs_rejected(self):
        with pytest.raises(ValueError):
            ProbabilityTable([0.5, -0.1])
        with pytest.raises(ValueError):
            ProbabilityTable([])

    def test_learn_weighted_frequencies(self):
        """prob[k] is the share of the weights on time points showing symbol k."""
        table = ProbabilityTable.uniform(3)
        O = create_obs_list(0, 1, 0, 2)
        assert table.learn(O, [1.0, 2.0, 3.0, 4.0])
        assert np.allclose(table.probs, [0.4, 0.2, 0.4])

    def test_learn_zero_weights_keeps_table(self):
        table = ProbabilityTable([0.1, 0.9])
        assert not table.learn(create_obs_list(0, 1), [0.0, 0.0])
        assert table.probs.tolist() == [0.1, 0.9]

    def test_learn_rejects_per_component_weights(self):
        with pytest.raises(NotImplementedError):
            ProbabilityTable.uniform(2).learn(create_obs_list(0, 1), [[1.0, 1.0]])

    def test_vector_observation_not_supported(self):
        with pytest.raises(NotImplementedError):
            ProbabilityTable.uniform(2).prob(VectorObs((0.0, 1.0)))

    def test_sample_stays_in_support(self, rng):
        table = ProbabilityTable([0.0, 1.0, 0.0])
        assert all(int(table.sample(rng)) == 1 for _ in range(20))

    def test_str(self):
        assert str(ProbabilityTable([0.5, 0.5])) == "0.500000000000 0.500000000000"


class TestNormalDistribution:
    def test_density(self):
        dist = NormalDistribution(1.0, 4.0)
        expected = math.exp(-(3.0 - 1.0) ** 2 / 8.0) / math.sqrt(2 * math.pi * 4.0)
        assert dist.prob(MonoObs(3.0)) == pytest.approx(expected)

    def test_zero_variance_is_point_mass(self):
        dist = NormalDistribution(2.0, 0.0)
        assert dist.prob(MonoObs(2.0)) == 1.0
        assert dist.prob(MonoObs(2.1)) == 0.0

    def test_negative_variance_rejected(self):
        with pytest.raises(ValueError, match="variance"):
            NormalDistribution(0.0, -1.0)

    def test_learn_weighted_moments(self):
        dist = NormalDistribution()
        O = create_obs_list(1.0, 2.0, 3.0, 10.0)
        assert dist.learn(O, [1.0, 1.0, 1.0, 0.0])
        assert dist.mean == pytest.approx(2.0)
        assert dist.variance == pytest.approx(2.0 / 3.0)

    def test_learn_skips_collapsed_variance(self):
        """A single weighted point would give zero variance; the update is dropped."""
        dist = NormalDistribution(0.0, 1.0)
        assert not dist.learn(create_obs_list(5.0, 7.0), [1.0, 0.0])
        assert (dist.mean, dist.variance) == (0.0, 1.0)

    def test_learn_skips_zero_weights(self):
        dist = NormalDistribution(0.0, 1.0)
        assert not dist.learn(create_obs_list(5.0, 7.0), [0.0, 0.0])
        assert (dist.mean, dist.variance) == (0.0, 1.0)

    def test_learn_skips_non_finite_weights(self):
        dist = NormalDistribution(0.0, 1.0)
        assert not dist.learn(create_obs_list(5.0, 7.0), [math.inf, 1.0])
        assert (dist.mean, dist.variance) == (0.0, 1.0)

    def test_str(self):
        assert str(NormalDistribution(0.0, 1.0)) == (
            "Normal distribution (mean=0.000000000000, variance=1.000000000000)"
        )


class TestExponentialDistribution:
    def test_density(self):
        dist = ExponentialDistribution(2.0)
        assert dist.prob(MonoObs(1.0)) == pytest.approx(2.0 * math.exp(-2.0))

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            ExponentialDistribution(-1.0)

    def test_learn_rate(self):
        dist = ExponentialDistribution(1.0)
        assert dist.learn(create_obs_list(1.0, 3.0), [1.0, 1.0])
        assert dist.rate == pytest.approx(0.5)

    def test_learn_skips_degenerate_statistics(self):
        dist = ExponentialDistribution(1.0)
        assert not dist.learn(create_obs_list(1.0, 3.0), [0.0, 0.0])
        assert not dist.learn(create_obs_list(0.0, 0.0), [1.0, 1.0])
        assert dist.rate == 1.0

    def test_learn_skips_negative_rate(self):
        """Negative observations can push the weighted sum below zero."""
        dist = ExponentialDistribution(1.0)
        assert not dist.learn(create_obs_list(-1.0, -2.0, 0.5), [1.0, 1.0, 1.0])
        assert not dist.learn(create_obs_list(1.0, 3.0), [math.inf, 1.0])
        assert dist.rate == 1.0

    def test_str(self):
        assert str(ExponentialDistribution(0.5)) == "Exponential distribution (lambda=0.500000000000)"


class TestMixtureDistribution:
    def test_component_probabilities_sum_to_full_density(self):
        mix = MixtureDistribution.normal_mixture([0.0, 5.0], [1.0, 2.0], [0.3, 0.7])
        obs = MonoObs(1.0)
        parts = [mix.prob(obs, k) for k in range(mix.component_count)]
        assert parts[0] == pytest.approx(0.3 * NormalDistribution(0.0, 1.0).prob(obs))
        assert mix.prob(obs) == pytest.approx(sum(parts))

    @pytest.mark.parametrize(
        "weights",
        [[0.5], [0.5, 0.6], [1.5, -0.5]],
    )
    def test_invalid_weights_rejected(self, weights):
        with pytest.raises(ValueError):
            MixtureDistribution([NormalDistribution(), NormalDistribution(1.0)], weights)

    def test_weight_tolerance(self):
        MixtureDistribution([NormalDistribution(), NormalDistribution(1.0)], [0.5, 0.5 + 1e-12])

    def test_learn_updates_components_and_weights(self):
        mix = MixtureDistribution.normal_mixture([0.0, 10.0], [1.0, 1.0], [0.5, 0.5])
        O = create_obs_list(0.0, 1.0, 9.0, 11.0)
        gammas = [[1.0, 1.0, 0.0, 0.0], [0.0, 0.0, 3.0, 3.0]]
        assert mix.learn(O, gammas)
        assert np.allclose(mix.weights, [0.25, 0.75])
        assert mix.component(0).mean == pytest.approx(0.5)
        assert mix.component(1).mean == pytest.approx(10.0)
        assert mix.component(1).variance == pytest.approx(1.0)

    def test_learn_zero_weights_keeps_mixture_weights(self):
        mix = MixtureDistribution.normal_mixture([0.0, 10.0], [1.0, 1.0], [0.4, 0.6])
        assert not mix.learn(create_obs_list(0.0, 1.0), np.zeros((2, 2)))
        assert np.allclose(mix.weights, [0.4, 0.6])

    def test_learn_non_finite_weights_keeps_mixture_weights(self):
        mix = MixtureDistribution.normal_mixture([0.0, 10.0], [1.0, 1.0], [0.4, 0.6])
        assert not mix.learn(create_obs_list(0.0, 1.0), [[math.inf, 1.0], [1.0, 1.0]])
        assert np.allclose(mix.weights, [0.4, 0.6])
        assert (mix.component(0).mean, mix.component(0).variance) == (0.0, 1.0)

    def test_flat_weights_not_supported(self):
        mix = MixtureDistribution.normal_mixture([0.0, 10.0], [1.0, 1.0], [0.5, 0.5])
        with pytest.raises(NotImplementedError):
            mix.learn(create_obs_list(0.0, 1.0), [1.0, 1.0])

    def test_replace_component(self):
        mix = MixtureDistribution.normal_mixture([0.0, 10.0], [1.0, 1.0], [0.5, 0.5])
        new = ExponentialDistribution(1.0)
        old = mix.replace_component(1, new)
        assert old.mean == 10.0
        assert mix.component(1) is new

    def test_copy_is_independent(self):
        mix = MixtureDistribution.normal_mixture([0.0, 10.0], [1.0, 1.0], [0.5, 0.5])
        clone = mix.copy()
        clone.component(0).set_parameters(3.0, 2.0)
        assert mix.component(0).mean == 0.0
        assert mix.is_mixture and not NormalDistribution().is_mixture

    def test_str(self):
        mix = MixtureDistribution.normal_mixture([0.0], [1.0], [1.0])
        assert str(mix) == (
            "Weights: w1=1.000000000000\n"
            "Partial components:\n"
            "    Normal distribution (mean=0.000000000000, variance=1.000000000000)"
        )
