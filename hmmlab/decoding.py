"""State-sequence decoding: Viterbi and the longest-path heuristics.

Every decoder breaks ties in favour of the lowest state index. When an
:class:`~hmmlab.events.EventChannel` is passed, the step-by-step reasoning
is reported through it as info events.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from .events import EventChannel
from .inference import emission_matrix
from .logging import get_logger
from .observations import Obs, ObsLike, as_obs, as_obs_sequence, obs_to_string
from .utils import format_decimal

logger = get_logger(__name__)


def state_string(X: Sequence[int]) -> str:
    """Render a state sequence as ``{x(0)=..., x(1)=...}``."""
    return "{" + ", ".join(f"x({t})={int(x)}" for t, x in enumerate(X)) + "}"


def _first_argmax(values: np.ndarray) -> int:
    # np.argmax returns the first occurrence of the maximum
    return int(np.argmax(values))


def viterbi(model, O: Sequence[ObsLike], events: Optional[EventChannel] = None) -> List[int]:
    """Most likely state sequence given the observations.

    Args:
        model: Hidden Markov model.
        O: Observation sequence of length ``T + 1``.
        events: Optional channel receiving the reasoning trace.

    Returns:
        List of ``T + 1`` state indices.

    Raises:
        ValueError: If ``O`` is empty.
    """
    O = as_obs_sequence(O)
    T = len(O) - 1
    n = model.n_states
    A = model.A
    e = emission_matrix(model, O)
    trace = events is not None and events.has_listeners()

    if trace:
        events.info(
            model,
            f"Viterbi algorithm on observation sequence O={obs_to_string(O)} with HMM:\n{model}\n-----t=0-----",
        )

    delta = e[0] * model.PI
    back = np.zeros((T + 1, n), dtype=int)
    if trace:
        for i in range(n):
            events.info(model, f"alpha0({i})={format_decimal(delta[i])}\nq0({i})=0")

    for t in range(1, T + 1):
        if trace:
            events.info(model, f"\n-----t={t}-----")
        # scores[i, j] = δ_{t-1}(i) · A[i, j]
        scores = delta[:, None] * A
        new_delta = np.empty(n)
        for j in range(n):
            best = _first_argmax(scores[:, j])
            back[t, j] = best
            new_delta[j] = scores[best, j] * e[t, j]
            if trace:
                for i in range(n):
                    events.info(
                        model, f"alpha{t - 1}({i})*a{i}({j})={format_decimal(scores[i, j])}"
                    )
                events.info(
                    model,
                    f"Max{{alpha{t - 1}(i)*ai({j})}} = alpha{t - 1}({best})*a{best}({j}) = "
                    f"{format_decimal(scores[best, j])}\n"
                    f"delta{t}({j}) = {format_decimal(new_delta[j])}\n"
                    f"q{t}({j})={best}",
                )
        delta = new_delta

    states = [0] * (T + 1)
    states[T] = _first_argmax(delta)
    if trace:
        events.info(model, f"Optimal state x({T}) = argmax{{delta{T}(j)}} = {states[T]}")
    for t in range(T - 1, -1, -1):
        states[t] = int(back[t + 1, states[t + 1]])
        if trace:
            events.info(
                model,
                f"Optimal state x({t}) = q{t + 1}(x({t + 1})) = {states[t]}",
            )

    if trace:
        events.info(model, f"\nThe resulted optimal state sequence is X={state_string(states)}")
    logger.debug("Viterbi decoded %d observations", T + 1)
    return states


def weight(model, o: ObsLike, x_prev: int, x: Optional[int] = None) -> float:
    """Edge weight used by the longest-path decoders.

    Called as ``weight(model, o, x)`` it returns ``B[x](o)·PI[x]``. Called
    as ``weight(model, o, x_prev, x)`` it returns
    ``B[x](o)²·A[x_prev, x]·PI[x]``.
    """
    o = as_obs(o)
    if x is None:
        x = x_prev
        return model.b(x, o) * model.pi(x)
    b = model.b(x, o)
    return b * b * model.a(x_prev, x) * model.pi(x)


def path_weight(model, O: Sequence[ObsLike], X: Sequence[int]) -> float:
    """Product of edge weights along the state path ``X``."""
    O = as_obs_sequence(O)
    if len(O) != len(X):
        raise ValueError(f"Sequence lengths differ: {len(O)} observations, {len(X)} states")
    w = weight(model, O[0], int(X[0]))
    for t in range(1, len(O)):
        w *= weight(model, O[t], int(X[t - 1]), int(X[t]))
    return w


def _best_successor(model, o: Obs, prev: int):
    weights = np.array([weight(model, o, prev, k) for k in range(model.n_states)])
    best = _first_argmax(weights)
    return best, float(weights[best]), weights


def longest_path(model, O: Sequence[ObsLike], events: Optional[EventChannel] = None) -> List[int]:
    """Greedy decoder: pick the heaviest edge at every step."""
    O = as_obs_sequence(O)
    T = len(O) - 1
    n = model.n_states
    trace = events is not None and events.has_listeners()
    if trace:
        events.info(
            model,
            f"Longest-path algorithm on observation sequence O={obs_to_string(O)} with HMM:\n{model}\n-----t=0-----",
        )

    w0 = np.array([weight(model, O[0], i) for i in range(n)])
    j = _first_argmax(w0)
    states = [j]
    if trace:
        for i in range(n):
            events.info(model, f"W0{i}={format_decimal(w0[i])}")
        events.info(model, f"Max{{W0k}} k from 0 to {n - 1} is W0{j}={format_decimal(w0[j])}")

    for t in range(1, T + 1):
        prev = j
        j, best_weight, weights = _best_successor(model, O[t], prev)
        states.append(j)
        if trace:
            events.info(model, f"\n-----t={t}-----")
            for k in range(n):
                events.info(model, f"W{t - 1}{prev}{t}{k}={format_decimal(weights[k])}")
            events.info(
                model,
                f"Max{{W{t - 1}{prev}{t}k}} k from 0 to {n - 1} is "
                f"W{t - 1}{prev}{t}{j}={format_decimal(best_weight)}",
            )

    if trace:
        events.info(model, f"\nThe longest-path (optimal state sequence) is X={state_string(states)}")
    return states


def longest_path_advanced(
    model, O: Sequence[ObsLike], events: Optional[EventChannel] = None
) -> List[int]:
    """Two-step look-ahead variant of :func:`longest_path`.

    States are chosen in pairs: for each even ``t`` the state ``x_t``
    maximises its own edge weight times the best edge weight reachable at
    ``t + 1``, and ``x_{t+1}`` is that best successor. A trailing single
    time point is resolved greedily.
    """
    O = as_obs_sequence(O)
    T = len(O) - 1
    n = model.n_states
    trace = events is not None and events.has_listeners()
    if trace:
        events.info(
            model,
            f"Advanced longest-path algorithm on observation sequence O={obs_to_string(O)} "
            f"with HMM:\n{model}\n-----t=0-----",
        )

    states: List[int] = []
    i = 0
    for t in range(0, T + 1, 2):
        if t == 0:
            W1 = np.array([weight(model, O[0], j) for j in range(n)])
        else:
            W1 = np.array([weight(model, O[t], i, j) for j in range(n)])

        if t == T:
            best = _first_argmax(W1)
            states.append(best)
            if trace:
                events.info(
                    model,
                    f"Max{{W{t - 1}{i}{t}k}} k from 0 to {n - 1} is "
                    f"W{t - 1}{i}{t}{best}={format_decimal(W1[best])}\n"
                    f"Optimal states: x{t}={best}",
                )
            i = best
            continue

        W2 = np.empty(n)
        S2 = np.zeros(n, dtype=int)
        for j in range(n):
            S2[j], W2[j], _ = _best_successor(model, O[t + 1], j)
        products = W1 * W2
        best = _first_argmax(products)
        successor = int(S2[best])
        if trace:
            for j in range(n):
                events.info(
                    model,
                    f"W{t - 1}{i}{t}{j}*W{t}{j}{t + 1}{S2[j]}="
                    f"{format_decimal(W1[j])}*{format_decimal(W2[j])}={format_decimal(products[j])}",
                )
            events.info(
                model,
                f"The product W{t - 1}{i}{t}[{best}]*W{t}{best}{t + 1}[{successor}]="
                f"{format_decimal(products[best])} is maximal and so:\n"
                f"Optimal states is: x{t}={best}, x{t + 1}={successor}",
            )
        states.append(best)
        states.append(successor)
        i = successor

    if trace:
        events.info(model, f"\nThe longest-path (optimal state sequence) is X={state_string(states)}")
    return states


__all__ = [
    "viterbi",
    "weight",
    "path_weight",
    "longest_path",
    "longest_path_advanced",
    "state_string",
]
