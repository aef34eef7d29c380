"""Forward-backward inference over a hidden Markov model.

All functions take ``(model, O)`` where ``O`` is an observation sequence of
length ``T + 1``. The optional ``comp`` argument restricts every emission to
one mixture component (a negative value, the default, uses the full
emission density).

By default the recurrences use raw products: α and β are plain
probabilities, so long sequences underflow towards zero. The
:class:`ScaledRecurrence` strategy normalises α per step and is what EM
should use on sequences longer than a few hundred observations.

References:
    Rabiner, L. R. (1989). A tutorial on hidden Markov models and selected
    applications in speech recognition. Proceedings of the IEEE, 77(2), 257-286.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .logging import get_logger
from .observations import Obs, ObsLike, as_obs_sequence
from .utils import format_decimal

logger = get_logger(__name__)


def emission_matrix(model, O: Sequence[Obs], comp: int = -1) -> np.ndarray:
    """Emission probabilities, shape ``(T + 1, n)`` with ``e[t, i] = B[i](o_t)``."""
    n = model.n_states
    e = np.empty((len(O), n))
    for t, obs in enumerate(O):
        for i in range(n):
            e[t, i] = model.b(i, obs, comp)
    return e


def _alpha_init(PI: np.ndarray, e0: np.ndarray) -> np.ndarray:
    return PI * e0


def _alpha_step(prev: np.ndarray, A: np.ndarray, e_t: np.ndarray) -> np.ndarray:
    # α_t(j) = Σ_i α_{t-1}(i) A[i, j] · B[j](o_t)
    return (prev @ A) * e_t


def _beta_step(post: np.ndarray, A: np.ndarray, e_post: np.ndarray) -> np.ndarray:
    # β_t(i) = Σ_j A[i, j] B[j](o_{t+1}) β_{t+1}(j)
    return A @ (e_post * post)


def _check_time(t: int, T: int) -> int:
    if t < 0 or t > T:
        raise IndexError(f"Time point {t} out of range [0, {T}]")
    return t


def _alpha_table(A, PI, e, t: int) -> np.ndarray:
    alphas = np.empty((t + 1, A.shape[0]))
    # raw products may overflow to inf on long sequences
    with np.errstate(over="ignore", invalid="ignore"):
        alphas[0] = _alpha_init(PI, e[0])
        for u in range(1, t + 1):
            alphas[u] = _alpha_step(alphas[u - 1], A, e[u])
    return alphas


def _beta_table(A, e, t: int) -> np.ndarray:
    T = e.shape[0] - 1
    betas = np.empty((T - t + 1, A.shape[0]))
    betas[-1] = 1.0
    with np.errstate(over="ignore", invalid="ignore"):
        for row in range(T - t - 1, -1, -1):
            u = row + t
            betas[row] = _beta_step(betas[row + 1], A, e[u + 1])
    return betas


def _interleaved_tables(A, PI, e) -> Tuple[np.ndarray, np.ndarray]:
    T = e.shape[0] - 1
    n = A.shape[0]
    alphas = np.empty((T + 1, n))
    betas = np.empty((T + 1, n))
    with np.errstate(over="ignore", invalid="ignore"):
        for step in range(T + 1):
            if step == 0:
                alphas[0] = _alpha_init(PI, e[0])
                betas[T] = 1.0
            else:
                alphas[step] = _alpha_step(alphas[step - 1], A, e[step])
                u = T - step
                betas[u] = _beta_step(betas[u + 1], A, e[u + 1])
    return alphas, betas


def alpha_all(model, O: Sequence[ObsLike], t: Optional[int] = None, comp: int = -1) -> np.ndarray:
    """Forward variables α_0 .. α_t, shape ``(t + 1, n)``.

    Args:
        model: Hidden Markov model.
        O: Observation sequence.
        t: Last time point; defaults to ``T``.
        comp: Mixture component, negative for the full emission.
    """
    O = as_obs_sequence(O)
    T = len(O) - 1
    t = T if t is None else _check_time(t, T)
    e = emission_matrix(model, O[: t + 1], comp)
    return _alpha_table(model.A, model.PI, e, t)


def beta_all(model, O: Sequence[ObsLike], t: int = 0, comp: int = -1) -> np.ndarray:
    """Backward variables β_t .. β_T, shape ``(T - t + 1, n)``; row 0 is time ``t``."""
    O = as_obs_sequence(O)
    _check_time(t, len(O) - 1)
    e = emission_matrix(model, O, comp)
    return _beta_table(model.A, e, t)


def forward(model, O: Sequence[ObsLike], t: int, comp: int = -1) -> np.ndarray:
    """Forward variable α_t(i) = P(o_0..o_t, x_t = i)."""
    return alpha_all(model, O, t, comp)[-1]


def backward(model, O: Sequence[ObsLike], t: int, comp: int = -1) -> np.ndarray:
    """Backward variable β_t(i) = P(o_{t+1}..o_T | x_t = i)."""
    return beta_all(model, O, t, comp)[0]


def alpha_beta_all(
    model, O: Sequence[ObsLike], comp: int = -1
) -> Tuple[np.ndarray, np.ndarray]:
    """Both tables in one interleaved pass.

    Step ``s`` fills α_s and β_{T-s}; the values are identical to those of
    :func:`alpha_all` and :func:`beta_all`.

    Returns:
        Tuple ``(alphas, betas)``, both of shape ``(T + 1, n)``.
    """
    O = as_obs_sequence(O)
    return _interleaved_tables(model.A, model.PI, emission_matrix(model, O, comp))


def gamma(model, O: Sequence[ObsLike], t: int, comp: int = -1) -> np.ndarray:
    """Unnormalised state posterior γ_t(i) = α_t(i)·β_t(i)."""
    return forward(model, O, t, comp) * backward(model, O, t, comp)


def gamma_all(model, O: Sequence[ObsLike], comp: int = -1) -> np.ndarray:
    """γ for every time point, shape ``(T + 1, n)``."""
    alphas, betas = alpha_beta_all(model, O, comp)
    return alphas * betas


def gamma_all_by_state(model, O: Sequence[ObsLike], comp: int = -1) -> np.ndarray:
    """γ laid out per state, shape ``(n, T + 1)``."""
    return gamma_all(model, O, comp).T.copy()


def gamma_all_by_comp(model, O: Sequence[ObsLike], K: int, state: int) -> np.ndarray:
    """Component-restricted γ of one state, shape ``(K, T + 1)``.

    Row ``k`` comes from α/β tables in which every emission is restricted to
    component ``k``.
    """
    O = as_obs_sequence(O)
    result = np.empty((K, len(O)))
    for k in range(K):
        alphas, betas = alpha_beta_all(model, O, k)
        result[k] = alphas[:, state] * betas[:, state]
    return result


def _c_from_tables(alphas, betas, A, e, t: int) -> np.ndarray:
    return alphas[t - 1][:, None] * A * (e[t] * betas[t])[None, :]


def c(model, O: Sequence[ObsLike], t: int, comp: int = -1) -> np.ndarray:
    """Transition statistic c_t(i, j) = α_{t-1}(i)·A[i,j]·B[j](o_t)·β_t(j).

    Raises:
        IndexError: If ``t`` is not in ``[1, T]``.
    """
    O = as_obs_sequence(O)
    T = len(O) - 1
    if t < 1 or t > T:
        raise IndexError(f"Transition statistic defined for t in [1, {T}], got {t}")
    alphas, betas = alpha_beta_all(model, O, comp)
    return _c_from_tables(alphas, betas, model.A, emission_matrix(model, O, comp), t)


def c_for_pre(model, O: Sequence[ObsLike], t: int, pre_state: int, comp: int = -1) -> np.ndarray:
    """Row ``pre_state`` of :func:`c`."""
    return c(model, O, t, comp)[pre_state].copy()


def c_for_post(model, O: Sequence[ObsLike], t: int, post_state: int, comp: int = -1) -> np.ndarray:
    """Column ``post_state`` of :func:`c`."""
    return c(model, O, t, comp)[:, post_state].copy()


def c_all(model, O: Sequence[ObsLike], comp: int = -1) -> np.ndarray:
    """c_t for t = 1..T, shape ``(T, n, n)``; index ``t - 1`` holds c_t."""
    O = as_obs_sequence(O)
    alphas, betas = alpha_beta_all(model, O, comp)
    return transition_counts(alphas, betas, model.A, emission_matrix(model, O, comp))


def transition_counts(alphas, betas, A, e) -> np.ndarray:
    """c_t for t = 1..T from precomputed tables."""
    T = alphas.shape[0] - 1
    n = A.shape[0]
    counts = np.empty((T, n, n))
    for t in range(1, T + 1):
        counts[t - 1] = _c_from_tables(alphas, betas, A, e, t)
    return counts


def prob_obs(model, O: Sequence[ObsLike]) -> float:
    """Likelihood P(O) = Σ_i α_T(i)."""
    return float(np.sum(alpha_all(model, O)[-1]))


def _as_states(X: Sequence[int], n: int) -> List[int]:
    states = [int(x) for x in X]
    if not states:
        raise ValueError("State sequence must not be empty")
    for x in states:
        if x < 0 or x >= n:
            raise IndexError(f"State {x} out of range [0, {n})")
    return states


def prob_state(model, X: Sequence[int]) -> float:
    """Prior probability of a state path, PI[x_0]·Π A[x_{t-1}, x_t]."""
    X = _as_states(X, model.n_states)
    p = model.pi(X[0])
    for t in range(1, len(X)):
        p *= model.a(X[t - 1], X[t])
    return p


def cond_prob(model, O: Sequence[ObsLike], X: Sequence[int]) -> float:
    """P(O | X) = Π_t B[x_t](o_t)."""
    O = as_obs_sequence(O)
    X = _as_states(X, model.n_states)
    if len(O) != len(X):
        raise ValueError(f"Sequence lengths differ: {len(O)} observations, {len(X)} states")
    p = 1.0
    for obs, x in zip(O, X):
        p *= model.b(x, obs)
    return p


def joint_prob(model, O: Sequence[ObsLike], X: Sequence[int]) -> float:
    """P(O, X) = P(O | X)·P(X)."""
    return cond_prob(model, O, X) * prob_state(model, X)


@dataclass
class RecurrenceTables:
    """Forward/backward tables produced by a :class:`Recurrence`.

    Attributes:
        alphas: Forward table, shape ``(T + 1, n)``.
        betas: Backward table, shape ``(T + 1, n)``.
        emissions: Emission matrix the tables were computed from.
        scales: Per-step normalisers, or None for raw tables.
    """

    alphas: np.ndarray
    betas: np.ndarray
    emissions: np.ndarray
    scales: Optional[np.ndarray] = None

    @property
    def log_scale(self) -> float:
        """Log of the factor dividing raw γ to obtain ``alphas * betas``."""
        if self.scales is None:
            return 0.0
        if np.any(self.scales == 0):
            return -math.inf
        return float(np.sum(np.log(self.scales)))

    @property
    def log_likelihood(self) -> float:
        if self.scales is not None:
            return self.log_scale
        p = float(np.sum(self.alphas[-1]))
        return math.log(p) if p > 0 else -math.inf


class Recurrence(ABC):
    """Strategy computing the α/β tables used by learning and scoring."""

    name = "recurrence"

    @abstractmethod
    def tables(self, model, O: Sequence[Obs], comp: int = -1) -> RecurrenceTables:
        """Compute α/β tables for ``O``."""

    @abstractmethod
    def criterion(self, tables: RecurrenceTables) -> float:
        """Termination criterion of EM for these tables."""

    def gammas(self, tables: RecurrenceTables) -> np.ndarray:
        """State posteriors up to a factor common to all time points."""
        return tables.alphas * tables.betas

    def transition_counts(self, tables: RecurrenceTables, A: np.ndarray) -> np.ndarray:
        """Transition statistics up to the same factor as :meth:`gammas`."""
        return transition_counts(tables.alphas, tables.betas, A, tables.emissions)

    def component_gammas(self, per_comp: Sequence[RecurrenceTables], state: int) -> np.ndarray:
        """γ of ``state`` restricted to each component, on a common scale.

        Args:
            per_comp: One set of tables per mixture component.
            state: State index.

        Returns:
            Array of shape ``(K, T + 1)``.
        """
        log_scales = np.array([tables.log_scale for tables in per_comp])
        finite = log_scales[np.isfinite(log_scales)]
        reference = float(np.max(finite)) if finite.size else 0.0
        rows = []
        for tables, log_scale in zip(per_comp, log_scales):
            factor = math.exp(log_scale - reference) if np.isfinite(log_scale) else 0.0
            if not finite.size:
                factor = 1.0
            rows.append(tables.alphas[:, state] * tables.betas[:, state] * factor)
        return np.array(rows)


class RawRecurrence(Recurrence):
    """Unscaled products; criterion is the likelihood P(O)."""

    name = "raw"

    def tables(self, model, O: Sequence[Obs], comp: int = -1) -> RecurrenceTables:
        e = emission_matrix(model, O, comp)
        alphas, betas = _interleaved_tables(model.A, model.PI, e)
        return RecurrenceTables(alphas, betas, e)

    def criterion(self, tables: RecurrenceTables) -> float:
        return float(np.sum(tables.alphas[-1]))


class ScaledRecurrence(Recurrence):
    """Per-step normalised products; criterion is the log-likelihood.

    α̂_t is α_t divided by the product of the step normalisers up to ``t``
    and β̂_t reuses the normalisers after ``t``, so α̂_t·β̂_t = γ_t / P(O).
    """

    name = "scaled"

    def tables(self, model, O: Sequence[Obs], comp: int = -1) -> RecurrenceTables:
        A = model.A
        e = emission_matrix(model, O, comp)
        T = e.shape[0] - 1
        n = model.n_states

        alphas = np.empty((T + 1, n))
        scales = np.empty(T + 1)
        for t in range(T + 1):
            raw = _alpha_init(model.PI, e[0]) if t == 0 else _alpha_step(alphas[t - 1], A, e[t])
            scales[t] = np.sum(raw)
            if scales[t] == 0:
                logger.debug("Observation %d has zero probability under the model", t)
            alphas[t] = raw / scales[t] if scales[t] != 0 else raw

        betas = np.empty((T + 1, n))
        betas[T] = 1.0
        for t in range(T - 1, -1, -1):
            raw = _beta_step(betas[t + 1], A, e[t + 1])
            betas[t] = raw / scales[t + 1] if scales[t + 1] != 0 else raw
        return RecurrenceTables(alphas, betas, e, scales)

    def criterion(self, tables: RecurrenceTables) -> float:
        return tables.log_likelihood

    def transition_counts(self, tables: RecurrenceTables, A: np.ndarray) -> np.ndarray:
        counts = super().transition_counts(tables, A)
        for t in range(1, tables.alphas.shape[0]):
            if tables.scales[t] != 0:
                counts[t - 1] /= tables.scales[t]
        return counts


def describe_quantities(model, O: Sequence[ObsLike]) -> List[str]:
    """Human-readable b, α, β, c and γ values for one observation sequence.

    Mixture states additionally list every quantity per component.
    """
    O = as_obs_sequence(O)
    n = model.n_states
    T = len(O) - 1
    alphas, betas = alpha_beta_all(model, O)
    e = emission_matrix(model, O)
    counts = transition_counts(alphas, betas, model.A, e)
    mixtures = {
        i: model.distribution(i).component_count
        for i in range(n)
        if model.distribution(i).is_mixture
    }
    # component-restricted tables only exist when all mixtures agree on K
    if len(set(mixtures.values())) > 1:
        mixtures = {}
    comp_tables = {}
    for K in set(mixtures.values()):
        for k in range(K):
            comp_tables[k] = alpha_beta_all(model, O, k)

    lines: List[str] = []
    for t in range(T + 1):
        for i in range(n):
            for k in range(mixtures.get(i, 0)):
                lines.append(f"b{i}(o{t}={O[t]},{k})={format_decimal(model.b(i, O[t], k))}")
            lines.append(f"b{i}(o{t}={O[t]})={format_decimal(e[t, i])}")
    lines.append("")
    for t in range(T + 1):
        for i in range(n):
            for k in range(mixtures.get(i, 0)):
                lines.append(f"alpha{t}({i},{k})={format_decimal(comp_tables[k][0][t, i])}")
            lines.append(f"alpha{t}({i})={format_decimal(alphas[t, i])}")
    lines.append("")
    for t in range(T + 1):
        for i in range(n):
            for k in range(mixtures.get(i, 0)):
                lines.append(f"beta{t}({i},{k})={format_decimal(comp_tables[k][1][t, i])}")
            lines.append(f"beta{t}({i})={format_decimal(betas[t, i])}")
    lines.append("")
    for t in range(1, T + 1):
        for i in range(n):
            for j in range(n):
                lines.append(f"c{t}({i},{j})={format_decimal(counts[t - 1, i, j])}")
    lines.append("")
    for t in range(T + 1):
        for i in range(n):
            for k in range(mixtures.get(i, 0)):
                g = comp_tables[k][0][t, i] * comp_tables[k][1][t, i]
                lines.append(f"gamma{t}({i},{k})={format_decimal(g)}")
            lines.append(f"gamma{t}({i})={format_decimal(alphas[t, i] * betas[t, i])}")
    return lines


__all__ = [
    "emission_matrix",
    "forward",
    "backward",
    "alpha_all",
    "beta_all",
    "alpha_beta_all",
    "gamma",
    "gamma_all",
    "gamma_all_by_state",
    "gamma_all_by_comp",
    "c",
    "c_for_pre",
    "c_for_post",
    "c_all",
    "transition_counts",
    "prob_obs",
    "prob_state",
    "cond_prob",
    "joint_prob",
    "RecurrenceTables",
    "Recurrence",
    "RawRecurrence",
    "ScaledRecurrence",
    "describe_quantities",
]
