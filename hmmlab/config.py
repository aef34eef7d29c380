"""Learning configuration for Baum-Welch EM."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Mapping

LEARN_MAX_ITERATION_DEFAULT = 1000
LEARN_TERMINATED_THRESHOLD_DEFAULT = 0.001
LEARN_TERMINATED_RATIO_MODE_DEFAULT = True

LEARN_MAX_ITERATION_FIELD = "learn_max_iteration"
LEARN_TERMINATED_THRESHOLD_FIELD = "learn_terminated_threshold"
LEARN_TERMINATED_RATIO_MODE_FIELD = "learn_terminated_ratio_mode"
LEARN_REPORT_STALE_FIELD = "learn_report_stale"


@dataclass(frozen=True)
class LearnConfig:
    """
    Termination policy and diagnostics for one EM run.

    Attributes:
        max_iteration: Maximum number of parameter updates. Zero or a
            negative value means the loop only ends on convergence or stop.
        terminated_threshold: Convergence threshold on the criterion
            (data likelihood) between two consecutive iterations.
        terminated_ratio_mode: If True the threshold is relative to the
            previous criterion, ``|cur - prev| <= threshold * |prev|``;
            otherwise it is absolute, ``|cur - prev| <= threshold``.
        report_stale: If True, every skipped re-estimation (zero
            denominator) is reported as an info event and a warning log line.
    """

    max_iteration: int = LEARN_MAX_ITERATION_DEFAULT
    terminated_threshold: float = LEARN_TERMINATED_THRESHOLD_DEFAULT
    terminated_ratio_mode: bool = LEARN_TERMINATED_RATIO_MODE_DEFAULT
    report_stale: bool = False

    def __post_init__(self) -> None:
        """Validate LearnConfig invariants."""
        if isinstance(self.max_iteration, bool) or not isinstance(self.max_iteration, int):
            raise ValueError(f"max_iteration must be an int, got {self.max_iteration!r}.")
        if math.isnan(self.terminated_threshold) or self.terminated_threshold < 0:
            raise ValueError(
                f"terminated_threshold must be non-negative, got {self.terminated_threshold}."
            )

    @property
    def unbounded(self) -> bool:
        """Whether the iteration count is unlimited."""
        return self.max_iteration <= 0

    def is_converged(self, current: float, previous: float) -> bool:
        """Apply the termination test to two consecutive criteria."""
        diff = abs(current - previous)
        if self.terminated_ratio_mode:
            return diff <= self.terminated_threshold * abs(previous)
        return diff <= self.terminated_threshold

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "LearnConfig":
        """Build a config from ``learn_*`` key/value pairs.

        Missing keys take their defaults. A negative iteration count or a NaN
        threshold also falls back to the default.
        """
        max_iteration = int(mapping.get(LEARN_MAX_ITERATION_FIELD, LEARN_MAX_ITERATION_DEFAULT))
        if max_iteration < 0:
            max_iteration = LEARN_MAX_ITERATION_DEFAULT

        threshold = float(
            mapping.get(LEARN_TERMINATED_THRESHOLD_FIELD, LEARN_TERMINATED_THRESHOLD_DEFAULT)
        )
        if math.isnan(threshold):
            threshold = LEARN_TERMINATED_THRESHOLD_DEFAULT

        return cls(
            max_iteration=max_iteration,
            terminated_threshold=threshold,
            terminated_ratio_mode=bool(
                mapping.get(LEARN_TERMINATED_RATIO_MODE_FIELD, LEARN_TERMINATED_RATIO_MODE_DEFAULT)
            ),
            report_stale=bool(mapping.get(LEARN_REPORT_STALE_FIELD, False)),
        )

    def to_mapping(self) -> dict[str, Any]:
        """Key/value view using the ``learn_*`` field names."""
        values = asdict(self)
        return {
            LEARN_MAX_ITERATION_FIELD: values["max_iteration"],
            LEARN_TERMINATED_THRESHOLD_FIELD: values["terminated_threshold"],
            LEARN_TERMINATED_RATIO_MODE_FIELD: values["terminated_ratio_mode"],
            LEARN_REPORT_STALE_FIELD: values["report_stale"],
        }


__all__ = [
    "LearnConfig",
    "LEARN_MAX_ITERATION_DEFAULT",
    "LEARN_TERMINATED_THRESHOLD_DEFAULT",
    "LEARN_TERMINATED_RATIO_MODE_DEFAULT",
    "LEARN_MAX_ITERATION_FIELD",
    "LEARN_TERMINATED_THRESHOLD_FIELD",
    "LEARN_TERMINATED_RATIO_MODE_FIELD",
    "LEARN_REPORT_STALE_FIELD",
]
