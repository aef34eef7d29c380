"""Example: the sunny/cloudy/rainy weather model

Evaluates, decodes and re-estimates the classic three-state weather HMM
from a sequence of soil readings.
"""

import logging

import numpy as np

from hmmlab import (
    LearnConfig,
    LoggingListener,
    configure_logging,
    create_obs_list,
    longest_path,
    longest_path_advanced,
    state_string,
    weather_hmm,
)


def example_evaluate_and_decode():
    """Example: likelihood and most likely weather for dry, damp, soggy."""
    print("=" * 60)
    print("Example 1: Evaluating and decoding the weather model")
    print("=" * 60)

    model = weather_hmm()
    O = create_obs_list(0, 2, 3)

    print(f"P(dry, damp, soggy) = {model.evaluate(O):.12f}")
    X = model.uncover(O)
    names = [model.state_names[x] for x in X]
    print(f"Viterbi:               {state_string(X)} -> {names}")
    print(f"Longest path:          {state_string(longest_path(model, O))}")
    print(f"Advanced longest path: {state_string(longest_path_advanced(model, O))}")
    print()


def example_learn():
    """Example: Baum-Welch on a longer sampled sequence."""
    print("=" * 60)
    print("Example 2: Re-estimating parameters with EM")
    print("=" * 60)

    rng = np.random.default_rng(42)
    truth = weather_hmm()
    _, O = truth.sample(60, rng)

    model = weather_hmm()
    model.config = LearnConfig(max_iteration=50, terminated_threshold=1e-6)
    model.add_listener(LoggingListener())
    result = model.learn(O)

    print(f"Iterations: {result.n_iter}, converged: {result.converged}")
    print(f"Final P(O): {result.final_criterion:.6e}")
    print("Learned transition matrix:")
    print(np.array2string(model.A, precision=3))
    print()


if __name__ == "__main__":
    configure_logging(level=logging.WARNING)
    example_evaluate_and_decode()
    example_learn()
    print("Weather demo finished")
