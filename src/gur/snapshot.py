"""Snapshot handlers and the position-keyed snapshot store."""

from __future__ import annotations

import copy
from bisect import bisect_right, insort
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Optional, Protocol, TypeVar

from gur.runtime.telemetry import history_event

from .errors import InvalidConfigurationError, SnapshotMissingError

S = TypeVar("S")


class SnapshotHandler(Protocol):
    """Converts between a live state and its stored snapshot form.

    ``from_snapshot`` must return a value independent of the stored one: the
    cursor mutates whatever it restores.
    """

    def to_snapshot(self, state: Any) -> Any:
        ...

    def from_snapshot(self, snapshot: Any) -> Any:
        ...


class DeepCopyHandler:
    """Default handler: snapshots are ``copy.deepcopy`` duplicates."""

    def to_snapshot(self, state: Any) -> Any:
        return copy.deepcopy(state)

    def from_snapshot(self, snapshot: Any) -> Any:
        return copy.deepcopy(snapshot)


class ProtocolHandler:
    """Delegates to the state type's own ``to_snapshot``/``from_snapshot`` pair.

    Lets a state keep a compact snapshot representation (for example a tuple
    of its fields) instead of a full object copy.
    """

    def __init__(self, state_type: type) -> None:
        for attr in ("to_snapshot", "from_snapshot"):
            if not callable(getattr(state_type, attr, None)):
                raise InvalidConfigurationError(
                    f"{state_type.__name__} does not define {attr}()"
                )
        self.state_type = state_type

    def to_snapshot(self, state: Any) -> Any:
        return state.to_snapshot()

    def from_snapshot(self, snapshot: Any) -> Any:
        return self.state_type.from_snapshot(snapshot)


@dataclass(slots=True)
class Snapshot:
    position: int
    data: Any
    pinned: bool = False


class SnapshotStore(Generic[S]):
    """Snapshots keyed by history position.

    Position 0 is captured on construction and is never evicted. With a
    ``capacity`` set, the store keeps at most that many unpinned snapshots,
    evicting the oldest first. Pinned snapshots (position 0 and those backing
    commands that cannot be replayed) do not count against the capacity.
    """

    def __init__(
        self,
        initial_state: S,
        *,
        handler: Optional[SnapshotHandler] = None,
        capacity: Optional[int] = None,
        logger_name: str | None = None,
    ) -> None:
        if capacity is not None and capacity < 0:
            raise InvalidConfigurationError("snapshot capacity cannot be negative")
        self.handler: SnapshotHandler = handler or DeepCopyHandler()
        self.capacity = capacity
        self._logger_name = logger_name
        self._snapshots: Dict[int, Snapshot] = {}
        self._positions: List[int] = []
        self._store(0, initial_state, pinned=True)

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, position: object) -> bool:
        return position in self._snapshots

    def __iter__(self) -> Iterator[Snapshot]:
        for position in self._positions:
            yield self._snapshots[position]

    def positions(self) -> tuple[int, ...]:
        return tuple(self._positions)

    def capture(self, position: int, state: S, *, pinned: bool = False) -> Snapshot:
        """Store a duplicate of ``state`` at ``position`` and apply the capacity."""

        snapshot = self._store(position, state, pinned=pinned)
        history_event(
            "snapshot.capture",
            position=position,
            pinned=pinned,
            logger_name=self._logger_name,
        )
        self._evict()
        return snapshot

    def restore(self, snapshot: Snapshot) -> S:
        """Return an independent live state built from ``snapshot``."""

        return self.handler.from_snapshot(snapshot.data)

    def get(self, position: int) -> Optional[Snapshot]:
        return self._snapshots.get(position)

    def nearest_at_or_before(self, position: int) -> Snapshot:
        index = bisect_right(self._positions, position)
        if index == 0:
            raise SnapshotMissingError(
                f"No snapshot at or before position {position}", position=position
            )
        return self._snapshots[self._positions[index - 1]]

    def truncate_after(self, position: int) -> int:
        """Drop every snapshot past ``position``; returns how many were removed."""

        index = bisect_right(self._positions, position)
        dropped = self._positions[index:]
        for stale in dropped:
            del self._snapshots[stale]
        del self._positions[index:]
        return len(dropped)

    def rebase(self, offset: int, base_state: S) -> None:
        """Make ``offset`` the new position 0.

        Snapshots at or before ``offset`` are discarded, ``base_state`` becomes
        the position-0 snapshot, and later snapshots shift down by ``offset``.
        """

        if offset <= 0:
            return
        survivors = [
            self._snapshots[position]
            for position in self._positions
            if position > offset
        ]
        self._snapshots.clear()
        self._positions.clear()
        self._store(0, base_state, pinned=True)
        for snapshot in survivors:
            snapshot.position -= offset
            self._snapshots[snapshot.position] = snapshot
            self._positions.append(snapshot.position)

    def _store(self, position: int, state: S, *, pinned: bool) -> Snapshot:
        snapshot = Snapshot(
            position=position,
            data=self.handler.to_snapshot(state),
            pinned=pinned or position == 0,
        )
        if position not in self._snapshots:
            insort(self._positions, position)
        self._snapshots[position] = snapshot
        return snapshot

    def _evict(self) -> None:
        if self.capacity is None:
            return
        evictable = [
            position
            for position in self._positions
            if not self._snapshots[position].pinned
        ]
        while len(evictable) > self.capacity:
            victim = evictable.pop(0)
            del self._snapshots[victim]
            self._positions.remove(victim)
            history_event(
                "snapshot.evict",
                position=victim,
                capacity=self.capacity,
                logger_name=self._logger_name,
            )


__all__ = [
    "SnapshotHandler",
    "DeepCopyHandler",
    "ProtocolHandler",
    "Snapshot",
    "SnapshotStore",
]
