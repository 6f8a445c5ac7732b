"""Snapshot policies deciding when the cursor captures a full state copy.

A policy is consulted once per successful edit, after the new state is in
place. Denser snapshots shorten replays during undo/redo at the cost of one
state copy each; the policy is the only knob for that trade-off.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from .errors import InvalidConfigurationError
from .metrics import Metrics


@runtime_checkable
class SnapshotPolicy(Protocol):
    """Pure decision function over position and command metrics."""

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        ...


@dataclass(frozen=True, slots=True)
class Always:
    """Snapshot every position; undo never replays."""

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        del position, metrics
        return True


@dataclass(frozen=True, slots=True)
class Never:
    """Keep only the initial snapshot; every undo replays from position 0."""

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        del position, metrics
        return False


@dataclass(frozen=True, slots=True)
class Interval:
    """Snapshot every ``k``-th position."""

    k: int

    def __post_init__(self) -> None:
        if self.k < 1:
            raise InvalidConfigurationError("Interval k must be at least 1")

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        del metrics
        return position % self.k == 0


@dataclass(frozen=True, slots=True)
class ByDistance:
    """Snapshot once more than ``distance`` commands follow the last snapshot."""

    distance: int

    def __post_init__(self) -> None:
        if self.distance < 0:
            raise InvalidConfigurationError("ByDistance distance cannot be negative")

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        del position
        return self.distance < metrics.distance_from_snapshot


@dataclass(frozen=True, slots=True)
class ByTotalElapsed:
    """Snapshot once commands since the last snapshot took longer than ``seconds``.

    The durations come from the recorded metrics, never from the clock at
    decision time.
    """

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise InvalidConfigurationError("ByTotalElapsed seconds cannot be negative")

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        del position
        return self.seconds < metrics.elapsed_from_snapshot


@dataclass(frozen=True, slots=True)
class FunctionPolicy:
    """Adapts a ``(position, metrics) -> bool`` callable."""

    func: Callable[[int, Metrics], bool]

    def __post_init__(self) -> None:
        if not callable(self.func):
            raise InvalidConfigurationError("policy function must be callable")

    def should_snapshot(self, position: int, metrics: Metrics) -> bool:
        return bool(self.func(position, metrics))


def as_policy(
    policy: SnapshotPolicy | Callable[[int, Metrics], bool],
) -> SnapshotPolicy:
    if isinstance(policy, SnapshotPolicy):
        return policy
    if callable(policy):
        return FunctionPolicy(policy)
    raise InvalidConfigurationError(
        f"Expected a SnapshotPolicy or callable, got {type(policy).__name__}"
    )


__all__ = [
    "SnapshotPolicy",
    "Always",
    "Never",
    "Interval",
    "ByDistance",
    "ByTotalElapsed",
    "FunctionPolicy",
    "as_policy",
]
