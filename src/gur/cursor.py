"""Cursor: the live state plus the history needed to regenerate any past one."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

from gur.runtime.telemetry import history_event, operation_span

from .command import Command, as_command, command_label
from .errors import (
    InvalidConfigurationError,
    PositionOutOfRangeError,
    SnapshotMissingError,
)
from .history import HistoryEntry, HistoryLog
from .metrics import Metrics
from .policy import Never, SnapshotPolicy, as_policy
from .snapshot import SnapshotHandler, SnapshotStore

S = TypeVar("S")


@dataclass(slots=True)
class CursorStats:
    """Point-in-time summary of a cursor's history."""

    position: int
    horizon: int
    log_length: int
    snapshot_count: int
    snapshot_positions: tuple[int, ...]
    snapshot_capacity: Optional[int]
    log_capacity: Optional[int]


class Cursor(Generic[S]):
    """Undo/redo by regeneration.

    The cursor holds exactly one live state. Past states are rebuilt on demand
    by restoring the nearest snapshot at or before the target position and
    replaying the commands recorded after it.

    Commands must be deterministic: replaying a command on an equal state has
    to produce an equal result. Use ``try_edit`` for anything that is not.

    A cursor is not thread-safe. Hosts sharing one across threads must guard
    every call with their own lock; mutating the cursor or its live state from
    elsewhere while a call is running is undefined behaviour.
    """

    def __init__(
        self,
        initial_state: S,
        *,
        policy: Optional[SnapshotPolicy | Callable[[int, Metrics], bool]] = None,
        snapshot_capacity: Optional[int] = None,
        log_capacity: Optional[int] = None,
        snapshot_handler: Optional[SnapshotHandler] = None,
        logger_name: str | None = None,
    ) -> None:
        if log_capacity is not None and log_capacity < 0:
            raise InvalidConfigurationError("log capacity cannot be negative")
        self._policy: SnapshotPolicy = Never() if policy is None else as_policy(policy)
        # 0 means unbounded, like None.
        self._log_capacity = log_capacity or None
        self._logger_name = logger_name
        self._log = HistoryLog()
        self._snapshots: SnapshotStore[S] = SnapshotStore(
            initial_state,
            handler=snapshot_handler,
            capacity=snapshot_capacity,
            logger_name=logger_name,
        )
        self._state = initial_state
        self._position = 0
        self._horizon = 0

    def __repr__(self) -> str:
        return (
            f"Cursor(position={self._position}, horizon={self._horizon}, "
            f"snapshots={self._snapshots.positions()!r})"
        )

    @property
    def current(self) -> S:
        """The live state. Treat it as read-only; change it through ``edit``."""

        return self._state

    @property
    def position(self) -> int:
        return self._position

    @property
    def horizon(self) -> int:
        return self._horizon

    @property
    def policy(self) -> SnapshotPolicy:
        return self._policy

    def can_undo(self) -> bool:
        return self._position > 0

    def can_redo(self) -> bool:
        return self._position < self._horizon

    def undoable_count(self) -> int:
        return self._position

    def redoable_count(self) -> int:
        return self._horizon - self._position

    def snapshot_positions(self) -> tuple[int, ...]:
        return self._snapshots.positions()

    def stats(self) -> CursorStats:
        return CursorStats(
            position=self._position,
            horizon=self._horizon,
            log_length=len(self._log),
            snapshot_count=len(self._snapshots),
            snapshot_positions=self._snapshots.positions(),
            snapshot_capacity=self._snapshots.capacity,
            log_capacity=self._log_capacity,
        )

    # Editing

    def edit(self, command: Command | Callable[[S], S]) -> S:
        """Apply ``command`` to the live state and record it.

        Any redo history past the current position is discarded.
        """

        cmd = as_command(command)
        with operation_span(
            "edit",
            position=self._position,
            logger_name=self._logger_name,
            command=command_label(cmd),
        ) as handle:
            new_state, elapsed = self._apply(cmd)
            self._record(cmd, new_state, elapsed, replayable=True)
            handle.note("snapshot", self._position in self._snapshots)
            return self._state

    def edit_if(self, command: Command | Callable[[S], Optional[S]]) -> Optional[S]:
        """Like ``edit`` but the command may return ``None`` to decline.

        A declining command records nothing and must leave the state untouched.
        """

        cmd = as_command(command)
        with operation_span(
            "edit_if",
            position=self._position,
            logger_name=self._logger_name,
            command=command_label(cmd),
        ) as handle:
            new_state, elapsed = self._apply(cmd)
            if new_state is None:
                handle.note("declined", True)
                return None
            self._record(cmd, new_state, elapsed, replayable=True)
            return self._state

    def try_edit(self, command: Command | Callable[[S], S]) -> S:
        """Apply a command that cannot be replayed (I/O, randomness, ...).

        The resulting state is always captured as a pinned snapshot, so undo
        and redo never run the command again. If the command raises, the live
        state is rebuilt for the current position and the exception propagates.
        """

        cmd = as_command(command)
        with operation_span(
            "try_edit",
            position=self._position,
            logger_name=self._logger_name,
            command=command_label(cmd),
        ):
            new_state, elapsed = self._apply(cmd)
            self._record(cmd, new_state, elapsed, replayable=False)
            return self._state

    # Navigation

    def undo(self) -> Optional[S]:
        """Step back one position; returns ``None`` at position 0."""

        if not self.can_undo():
            return None
        return self.undo_to(self._position - 1)

    def redo(self) -> Optional[S]:
        """Step forward one position; returns ``None`` at the horizon."""

        if not self.can_redo():
            return None
        return self.redo_to(self._position + 1)

    def undo_to(self, target: int) -> S:
        if target < 0 or target > self._position:
            raise PositionOutOfRangeError(
                f"Undo target {target} outside [0, {self._position}]",
                position=target,
                lower=0,
                upper=self._position,
            )
        return self._move_to(target, "undo_to")

    def redo_to(self, target: int) -> S:
        if target < self._position or target > self._horizon:
            raise PositionOutOfRangeError(
                f"Redo target {target} outside [{self._position}, {self._horizon}]",
                position=target,
                lower=self._position,
                upper=self._horizon,
            )
        return self._move_to(target, "redo_to")

    def undo_multi(self, count: int) -> Optional[S]:
        """Step back ``count`` positions at once.

        Returns ``None`` and changes nothing when fewer than ``count`` steps
        can be undone; ``count == 0`` returns the live state.
        """

        if count < 0:
            raise ValueError("count cannot be negative")
        if count > self.undoable_count():
            return None
        return self.undo_to(self._position - count)

    def redo_multi(self, count: int) -> Optional[S]:
        """Step forward ``count`` positions; ``None`` if past the horizon."""

        if count < 0:
            raise ValueError("count cannot be negative")
        if count > self.redoable_count():
            return None
        return self.redo_to(self._position + count)

    def jump(self, count: int) -> Optional[S]:
        """Undo ``-count`` steps when negative, redo ``count`` steps otherwise.

        Like ``undo_multi``/``redo_multi``, returns ``None`` when out of range.
        """

        if count < 0:
            return self.undo_multi(-count)
        return self.redo_multi(count)

    # Internals

    def _apply(self, cmd: Command) -> Tuple[Any, float]:
        started = time.perf_counter()
        try:
            new_state = cmd.apply(self._state)
        except Exception:
            # A failing command may leave the live state half-mutated.
            self._state, _ = self._reconstruct(self._position, from_live=False)
            raise
        return new_state, time.perf_counter() - started

    def _record(
        self, cmd: Command, new_state: S, elapsed: float, *, replayable: bool
    ) -> None:
        if self._position < self._horizon:
            dropped = self._log.truncate_after(self._position)
            self._snapshots.truncate_after(self._position)
            history_event(
                "log.truncate",
                position=self._position,
                dropped=dropped,
                logger_name=self._logger_name,
            )

        metrics = self._metrics_at(self._position).make_next(elapsed)
        self._log.append(
            HistoryEntry(command=cmd, metrics=metrics, replayable=replayable),
            at=self._position,
        )
        self._position += 1
        self._horizon = self._position
        self._state = new_state

        if not replayable:
            self._snapshots.capture(self._position, new_state, pinned=True)
        elif self._policy.should_snapshot(self._position, metrics):
            self._snapshots.capture(self._position, new_state)

        self._enforce_log_capacity()

    def _metrics_at(self, position: int) -> Metrics:
        """Metrics of the command that produced ``position``.

        A snapshot at ``position`` resets the distance to zero. Once a policy
        snapshot there is evicted, the next edit continues from the entry's
        own non-zero distance; replay stays correct, only the hint grows.
        """

        if position in self._snapshots:
            return Metrics.zero(position)
        return self._log.entry(position).metrics

    def _move_to(self, target: int, operation: str) -> S:
        if target == self._position:
            return self._state
        with operation_span(
            operation,
            position=self._position,
            logger_name=self._logger_name,
            target=target,
        ) as handle:
            self._state, replayed = self._reconstruct(target)
            self._position = target
            handle.replayed(replayed)
            return self._state

    def _reconstruct(self, target: int, *, from_live: bool = True) -> Tuple[S, int]:
        """Rebuild the state at ``target``; returns it with the replay length.

        When the nearest snapshot does not lie past the current position and
        the target is ahead of it, replay continues from the live state.
        """

        snapshot = self._snapshots.nearest_at_or_before(target)
        if from_live and snapshot.position <= self._position <= target:
            state, start = self._state, self._position
        else:
            state, start = self._snapshots.restore(snapshot), snapshot.position

        entries = self._log.get(start + 1, target + 1)
        for offset, entry in enumerate(entries, start=start + 1):
            if not entry.replayable:
                raise SnapshotMissingError(
                    f"Command at position {offset} cannot be replayed "
                    "and has no snapshot",
                    position=offset,
                )
            state = entry.command.apply(state)
        return state, len(entries)

    def _enforce_log_capacity(self) -> None:
        if self._log_capacity is None:
            return
        excess = min(len(self._log) - self._log_capacity, self._position)
        if excess <= 0:
            return
        base_state, _ = self._reconstruct(excess, from_live=False)
        self._snapshots.rebase(excess, base_state)
        self._log.drop_through(excess)
        self._position -= excess
        self._horizon -= excess
        history_event(
            "log.trim",
            dropped=excess,
            log_length=len(self._log),
            logger_name=self._logger_name,
        )


__all__ = ["Cursor", "CursorStats"]
