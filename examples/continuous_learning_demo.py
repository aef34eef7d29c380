"""Example: continuous and mixture emissions

Fits a two-regime normal HMM with the scaled recurrence, then a normal
mixture HMM, watching progress through do events.
"""

import numpy as np

from hmmlab import (
    BaumWelch,
    CallbackListener,
    DoType,
    HiddenMarkovModel,
    LearnConfig,
    MixtureDistribution,
    NormalDistribution,
    ScaledRecurrence,
)


def example_normal_regimes():
    """Example: recover two volatility regimes from 200 observations."""
    print("=" * 60)
    print("Example 1: Normal emissions with scaled recurrence")
    print("=" * 60)

    truth = HiddenMarkovModel(
        [[0.95, 0.05], [0.1, 0.9]], [0.5, 0.5],
        [NormalDistribution(0.0, 1.0), NormalDistribution(3.0, 4.0)],
    )
    rng = np.random.default_rng(7)
    states, O = truth.sample(200, rng)

    model = HiddenMarkovModel(
        [[0.5, 0.5], [0.5, 0.5]], [0.5, 0.5],
        [NormalDistribution(-1.0, 2.0), NormalDistribution(2.0, 2.0)],
        recurrence=ScaledRecurrence(),
        config=LearnConfig(max_iteration=200, terminated_threshold=1e-8),
    )
    result = model.learn(O)
    print(f"Iterations: {result.n_iter}, log-likelihood: {result.final_criterion:.4f}")
    for i in range(model.n_states):
        print(f"  state {i}: {model.distribution(i)}")

    accuracy = np.mean(model.predict(O) == states)
    print(f"Decoding accuracy: {accuracy:.2%}")
    print()


def example_mixture_progress():
    """Example: normal mixture emissions with a progress listener."""
    print("=" * 60)
    print("Example 2: Mixture emissions with progress events")
    print("=" * 60)

    model = HiddenMarkovModel(
        [[0.8, 0.2], [0.3, 0.7]], [0.6, 0.4],
        [
            MixtureDistribution.normal_mixture([0.0, 2.0], [1.0, 1.0], [0.5, 0.5]),
            MixtureDistribution.normal_mixture([6.0, 9.0], [1.0, 1.0], [0.5, 0.5]),
        ],
    )
    rng = np.random.default_rng(3)
    _, O = model.copy().sample(80, rng)

    def on_do(evt):
        if evt.type is DoType.DONE:
            print(f"  {evt.name} done after {evt.iteration} iterations")
        elif evt.iteration % 10 == 0:
            print(f"  {evt.name} iteration {evt.iteration}")

    learner = BaumWelch(recurrence=ScaledRecurrence())
    learner.events.add_listener(CallbackListener(on_do=on_do))
    learner.em(model, O, LearnConfig(max_iteration=40, terminated_threshold=1e-9))
    print(model.distribution(1))
    print()


if __name__ == "__main__":
    example_normal_regimes()
    example_mixture_progress()
    print("Continuous learning demo finished")
