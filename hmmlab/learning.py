"""Baum-Welch expectation maximisation with pause/resume/stop control.

A :class:`BaumWelch` learner runs one EM at a time on the calling thread.
Other threads (typically a listener or a UI) may pause, resume or stop it;
the learner honours a pause at the end of every iteration and a stop at the
next loop check.

Example:
    >>> from hmmlab import BaumWelch, weather_hmm, create_obs_list
    >>> model = weather_hmm()
    >>> result = BaumWelch().em(model, create_obs_list(0, 2, 3))
    >>> result.n_iter >= 1
    True
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .config import LearnConfig
from .events import DoEvent, DoType, EventChannel
from .inference import RawRecurrence, Recurrence, describe_quantities
from .logging import get_logger
from .observations import ObsLike, as_obs_sequence, obs_to_string
from .utils import format_decimal

logger = get_logger(__name__)

EM_TASK_NAME = "hmm_em"


@dataclass(frozen=True)
class SkippedUpdate:
    """One re-estimation slice left unchanged because its statistics were degenerate.

    Attributes:
        iteration: EM iteration (0-based) during which the skip happened.
        kind: ``"A"``, ``"PI"`` or ``"B"``.
        index: Row of A or state of B; None for PI.
    """

    iteration: int
    kind: str
    index: Optional[int] = None


@dataclass
class EMResult:
    """Outcome of one EM run.

    Attributes:
        criteria: Criterion evaluated at the start of every iteration.
        n_iter: Number of parameter updates performed.
        converged: Whether the termination threshold was met.
        stopped: Whether the run was ended by :meth:`BaumWelch.stop`.
        skipped: Degenerate re-estimation slices.
        final_criterion: Last evaluated criterion, None if none was evaluated.
    """

    criteria: List[float] = field(default_factory=list)
    n_iter: int = 0
    converged: bool = False
    stopped: bool = False
    skipped: List[SkippedUpdate] = field(default_factory=list)
    final_criterion: Optional[float] = None


class BaumWelch:
    """EM learner for :class:`~hmmlab.model.HiddenMarkovModel`.

    Args:
        events: Channel receiving info and do events. A private channel is
            created when None.
        recurrence: α/β strategy; defaults to :class:`RawRecurrence`.
    """

    def __init__(
        self,
        events: Optional[EventChannel] = None,
        recurrence: Optional[Recurrence] = None,
    ):
        self.events = events if events is not None else EventChannel()
        self.recurrence = recurrence if recurrence is not None else RawRecurrence()
        self._cond = threading.Condition()
        self._running = False
        self._paused = False
        self._stop_requested = False

    # run control

    def is_started(self) -> bool:
        with self._cond:
            return self._running

    def is_paused(self) -> bool:
        with self._cond:
            return self._running and self._paused

    def is_running(self) -> bool:
        with self._cond:
            return self._running and not self._paused

    def pause(self) -> bool:
        """Request a pause at the next iteration boundary.

        Returns:
            True if the learner was running, False otherwise.
        """
        with self._cond:
            if not self._running or self._paused or self._stop_requested:
                return False
            self._paused = True
            return True

    def resume(self) -> bool:
        with self._cond:
            if not self._running or not self._paused:
                return False
            self._paused = False
            self._cond.notify_all()
            return True

    def stop(self) -> bool:
        """End the current run after the iteration in progress.

        The run stays started until :meth:`em` returns.

        Returns:
            True if a run was in progress and not already stopping.
        """
        with self._cond:
            if not self._running or self._stop_requested:
                return False
            self._stop_requested = True
            self._paused = False
            self._cond.notify_all()
            return True

    def _checkpoint(self) -> None:
        with self._cond:
            while self._paused and not self._stop_requested:
                self._cond.wait()

    def _keep_going(self, iteration: int, config: LearnConfig) -> bool:
        with self._cond:
            if self._stop_requested:
                return False
        return config.unbounded or iteration < config.max_iteration

    # learning

    def em(self, model, O: Sequence[ObsLike], config: Optional[LearnConfig] = None) -> EMResult:
        """Fit ``model`` in place to the observation sequence ``O``.

        Args:
            model: Model whose parameters are re-estimated.
            O: Observation sequence.
            config: Termination policy; defaults to ``model.config``.

        Returns:
            :class:`EMResult` describing the run.

        Raises:
            RuntimeError: If this learner is already running an EM.
            NotImplementedError: If mixture states disagree on their
                component count.
        """
        O = as_obs_sequence(O)
        config = config if config is not None else model.config
        _check_mixtures(model)

        with self._cond:
            if self._running:
                raise RuntimeError("EM is already running on this learner")
            self._running = True
            self._paused = False
            self._stop_requested = False

        result = EMResult()
        try:
            self._run(model, O, config, result)
        finally:
            with self._cond:
                result.stopped = self._stop_requested
                self._running = False
                self._paused = False
                self._stop_requested = False
            summary = f"At final iteration {result.n_iter}\nThe final resulted estimate is:\n{model}"
            self.events.fire_do(
                DoEvent(self, DoType.DONE, EM_TASK_NAME, summary, result.n_iter, config.max_iteration)
            )

        logger.info(
            "EM finished after %d iterations (converged=%s, stopped=%s, criterion=%s)",
            result.n_iter, result.converged, result.stopped, result.final_criterion,
        )
        return result

    def _run(self, model, O, config: LearnConfig, result: EMResult) -> None:
        logger.info(
            "EM on %d observations, %d states, %s recurrence",
            len(O), model.n_states, self.recurrence.name,
        )
        self.events.info(
            model,
            f"EM learning algorithm on observation sequence O={obs_to_string(O)} with HMM:\n{model}",
        )

        previous: Optional[float] = None
        iteration = 0
        while self._keep_going(iteration, config):
            tables = self.recurrence.tables(model, O)
            current = self.recurrence.criterion(tables)
            result.criteria.append(current)
            result.final_criterion = current
            logger.debug("Iteration %d criterion %r", iteration, current)

            if self.events.has_listeners():
                self.events.info(model, f"\n-----Iteration {iteration}-----")
                for line in describe_quantities(model, O):
                    self.events.info(model, line)
                self.events.info(
                    model,
                    f"\nGiven current parameters, terminating criterion is "
                    f"{self.recurrence.name} criterion={format_decimal(current)}",
                )

            if previous is not None and config.is_converged(current, previous):
                result.converged = True
                self.events.info(model, f"\nThe resulted estimate is:\n{model}")
                break
            previous = current

            self._update(model, O, tables, iteration, config, result)

            iteration += 1
            result.n_iter = iteration
            info = f"\nThe resulted estimate is:\n{model}"
            self.events.info(model, info)
            self.events.fire_do(
                DoEvent(
                    self, DoType.DOING, EM_TASK_NAME, f"At iteration {iteration}{info}",
                    iteration, config.max_iteration,
                )
            )
            self._checkpoint()

    def _update(self, model, O, tables, iteration: int, config: LearnConfig, result: EMResult) -> None:
        """Re-estimate A, PI and B from tables of the current parameters.

        Every new value is computed before any is written back, so the
        component-restricted tables of mixture states see the parameters the
        criterion was evaluated on.
        """
        n = model.n_states
        A = model.A
        skips: List[SkippedUpdate] = []

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            counts = self.recurrence.transition_counts(tables, A)
            numerators = np.sum(counts, axis=0)
            new_A = A.copy()
            for i in range(n):
                row = _normalized_row(numerators[i])
                if row is None:
                    skips.append(SkippedUpdate(iteration, "A", i))
                    continue
                new_A[i] = row

            gammas = self.recurrence.gammas(tables)
            new_PI = _normalized_row(gammas[0])
            if new_PI is None:
                skips.append(SkippedUpdate(iteration, "PI"))

            comp_gammas = {}
            mixture_states = [i for i in range(n) if model.distribution(i).is_mixture]
            if mixture_states:
                K = model.distribution(mixture_states[0]).component_count
                per_comp = [self.recurrence.tables(model, O, k) for k in range(K)]
                for i in mixture_states:
                    comp_gammas[i] = self.recurrence.component_gammas(per_comp, i)

            model.set_transition_matrix(new_A)
            if new_PI is not None:
                model.set_initial_distribution(new_PI)
            for i in range(n):
                dist = model.distribution(i)
                weights = comp_gammas[i] if dist.is_mixture else gammas[:, i]
                if not dist.learn(O, weights):
                    skips.append(SkippedUpdate(iteration, "B", i))

        for skip in skips:
            logger.debug("Iteration %d kept %s[%s] unchanged", skip.iteration, skip.kind, skip.index)
            if config.report_stale:
                message = (
                    f"Stale parameters at iteration {skip.iteration}: "
                    f"{skip.kind}{'' if skip.index is None else f'[{skip.index}]'} kept its previous value"
                )
                logger.warning(message)
                self.events.info(model, message)
        result.skipped.extend(skips)


def _normalized_row(values: np.ndarray) -> Optional[np.ndarray]:
    """``values`` divided by its sum, or None when either is zero or not finite."""
    denominator = float(np.sum(values))
    if denominator == 0 or not np.isfinite(denominator):
        return None
    row = values / denominator
    if not np.all(np.isfinite(row)):
        return None
    return row


def _check_mixtures(model) -> None:
    counts = {
        model.distribution(i).component_count
        for i in range(model.n_states)
        if model.distribution(i).is_mixture
    }
    if len(counts) > 1:
        raise NotImplementedError(
            f"EM requires every mixture state to have the same component count, got {sorted(counts)}"
        )


__all__ = ["BaumWelch", "EMResult", "SkippedUpdate", "EM_TASK_NAME"]
