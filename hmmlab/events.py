"""Event channel through which the engine reports progress.

Two event kinds exist: free-form info events carrying human-readable
reasoning (Viterbi steps, EM quantities), and do events marking the
progress of a long-running task (``DOING`` after each EM update, ``DONE``
once it ends).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from .logging import get_logger

logger = get_logger(__name__)


class DoType(Enum):
    DOING = "doing"
    DONE = "done"


@dataclass(frozen=True)
class InfoEvent:
    source: Any
    info: str


@dataclass(frozen=True)
class DoEvent:
    """Progress notification of a long-running task.

    Attributes:
        source: Object that fired the event.
        type: ``DOING`` while the task runs, ``DONE`` when it ends.
        name: Task name, e.g. ``"hmm_em"``.
        summary: Free text, usually the current model rendering.
        iteration: Number of completed iterations.
        max_iteration: Configured iteration cap (``<= 0`` means unbounded).
    """

    source: Any
    type: DoType
    name: str
    summary: str
    iteration: int
    max_iteration: int


class HMMListener:
    """Base listener; override the hooks you care about."""

    def received_info(self, evt: InfoEvent) -> None:
        pass

    def received_do(self, evt: DoEvent) -> None:
        pass


class CallbackListener(HMMListener):
    """Adapt plain callables to the listener interface."""

    def __init__(
        self,
        on_info: Optional[Callable[[InfoEvent], None]] = None,
        on_do: Optional[Callable[[DoEvent], None]] = None,
    ):
        self._on_info = on_info
        self._on_do = on_do

    def received_info(self, evt: InfoEvent) -> None:
        if self._on_info is not None:
            self._on_info(evt)

    def received_do(self, evt: DoEvent) -> None:
        if self._on_do is not None:
            self._on_do(evt)


class LoggingListener(HMMListener):
    """Forward events to a logger: info events at DEBUG, do events at INFO."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger if logger is not None else get_logger("events.trace")

    def received_info(self, evt: InfoEvent) -> None:
        self._logger.debug(evt.info)

    def received_do(self, evt: DoEvent) -> None:
        if evt.type is DoType.DONE:
            self._logger.info("%s done after %d iterations", evt.name, evt.iteration)
        else:
            self._logger.info(
                "%s iteration %d/%s", evt.name, evt.iteration,
                evt.max_iteration if evt.max_iteration > 0 else "unbounded",
            )


class EventChannel:
    """Thread-safe listener registry.

    Dispatch runs over a snapshot of the registered listeners, so listeners
    may add or remove listeners from within a callback. An exception raised
    by one listener is logged and the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: List[HMMListener] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: HMMListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: HMMListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def listeners(self) -> List[HMMListener]:
        with self._lock:
            return list(self._listeners)

    def has_listeners(self) -> bool:
        with self._lock:
            return bool(self._listeners)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def fire_info(self, evt: InfoEvent) -> None:
        for listener in self.listeners():
            try:
                listener.received_info(evt)
            except Exception:
                logger.exception("Listener %r failed on info event", listener)

    def fire_do(self, evt: DoEvent) -> None:
        for listener in self.listeners():
            try:
                listener.received_do(evt)
            except Exception:
                logger.exception("Listener %r failed on do event", listener)

    def info(self, source: Any, text: str) -> None:
        """Fire an info event, skipping construction when nobody listens."""
        if self.has_listeners():
            self.fire_info(InfoEvent(source, text))


__all__ = [
    "DoType",
    "InfoEvent",
    "DoEvent",
    "HMMListener",
    "CallbackListener",
    "LoggingListener",
    "EventChannel",
]
