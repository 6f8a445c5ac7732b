"""Fluent configuration for cursors."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Optional, TypeVar, Union

from .cursor import Cursor
from .errors import InvalidConfigurationError
from .metrics import Metrics
from .policy import Never, SnapshotPolicy, as_policy
from .snapshot import SnapshotHandler

S = TypeVar("S")

PolicyLike = Union[SnapshotPolicy, Callable[[int, Metrics], bool]]


@dataclass(frozen=True, slots=True)
class CursorBuilder:
    """Immutable cursor configuration; each ``with_*`` returns a new builder.

    Defaults: ``Never`` policy, unbounded snapshot store and command log,
    ``copy.deepcopy`` snapshots.
    """

    policy: SnapshotPolicy = field(default_factory=Never)
    snapshot_capacity: Optional[int] = None
    log_capacity: Optional[int] = None
    snapshot_handler: Optional[SnapshotHandler] = None
    logger_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.snapshot_capacity is not None and self.snapshot_capacity < 0:
            raise InvalidConfigurationError("snapshot capacity cannot be negative")
        if self.log_capacity is not None and self.log_capacity < 0:
            raise InvalidConfigurationError("log capacity cannot be negative")

    def with_policy(self, policy: PolicyLike) -> "CursorBuilder":
        return replace(self, policy=as_policy(policy))

    def with_snapshot_capacity(self, capacity: Optional[int]) -> "CursorBuilder":
        """Bound the snapshots kept besides pinned ones; ``None`` lifts the bound.

        Pinned snapshots (position 0 and ``try_edit`` results) never count
        against ``capacity`` and are never evicted.
        """

        return replace(self, snapshot_capacity=capacity)

    def with_log_capacity(self, capacity: Optional[int]) -> "CursorBuilder":
        """Keep at most ``capacity`` commands; the oldest are dropped first.

        ``0`` and ``None`` both mean no bound.
        """

        return replace(self, log_capacity=capacity)

    def with_snapshot_handler(self, handler: SnapshotHandler) -> "CursorBuilder":
        return replace(self, snapshot_handler=handler)

    def with_logger(self, logger_name: str) -> "CursorBuilder":
        return replace(self, logger_name=logger_name)

    def build(self, initial_state: S) -> Cursor[S]:
        """Create a cursor at position 0 owning ``initial_state``."""

        return Cursor(
            initial_state,
            policy=self.policy,
            snapshot_capacity=self.snapshot_capacity,
            log_capacity=self.log_capacity,
            snapshot_handler=self.snapshot_handler,
            logger_name=self.logger_name,
        )


def build(
    initial_state: S,
    *,
    policy: Optional[PolicyLike] = None,
    snapshot_capacity: Optional[int] = None,
    log_capacity: Optional[int] = None,
    snapshot_handler: Optional[SnapshotHandler] = None,
    logger_name: Optional[str] = None,
) -> Cursor[S]:
    builder = CursorBuilder(
        snapshot_capacity=snapshot_capacity,
        log_capacity=log_capacity,
        snapshot_handler=snapshot_handler,
        logger_name=logger_name,
    )
    if policy is not None:
        builder = builder.with_policy(policy)
    return builder.build(initial_state)


__all__ = ["CursorBuilder", "build"]
