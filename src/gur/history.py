"""Ordered command log replayed during undo/redo."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .command import Command, command_label
from .errors import PositionOutOfRangeError
from .metrics import Metrics


@dataclass(slots=True)
class HistoryEntry:
    command: Command
    metrics: Metrics
    replayable: bool = True

    @property
    def label(self) -> str:
        return command_label(self.command)


class HistoryLog:
    """Commands at positions ``1..N``; position 0 is the initial state.

    Appending at a position below the end discards the suffix first, which is
    how a fresh edit invalidates redo.
    """

    def __init__(self) -> None:
        self._entries: List[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: HistoryEntry, *, at: int | None = None) -> int:
        """Append ``entry`` right after position ``at`` and return its position."""

        if at is not None:
            self.truncate_after(at)
        self._entries.append(entry)
        return len(self._entries)

    def entry(self, position: int) -> HistoryEntry:
        if position < 1 or position > len(self._entries):
            raise PositionOutOfRangeError(
                f"No command at position {position}",
                position=position,
                lower=1,
                upper=len(self._entries),
            )
        return self._entries[position - 1]

    def get(self, start: int, stop: int) -> List[HistoryEntry]:
        """Entries at positions ``start..stop`` (closed-open)."""

        if start < 1 or stop < start or stop > len(self._entries) + 1:
            raise PositionOutOfRangeError(
                f"Invalid command range [{start}, {stop})",
                position=stop,
                lower=1,
                upper=len(self._entries) + 1,
            )
        return self._entries[start - 1 : stop - 1]

    def truncate_after(self, position: int) -> int:
        if position < 0 or position > len(self._entries):
            raise PositionOutOfRangeError(
                f"Cannot truncate after position {position}",
                position=position,
                lower=0,
                upper=len(self._entries),
            )
        dropped = len(self._entries) - position
        del self._entries[position:]
        return dropped

    def drop_through(self, position: int) -> None:
        """Forget commands ``1..position`` and renumber the rest from 1."""

        if position < 0 or position > len(self._entries):
            raise PositionOutOfRangeError(
                f"Cannot drop through position {position}",
                position=position,
                lower=0,
                upper=len(self._entries),
            )
        del self._entries[:position]
        for entry in self._entries:
            entry.metrics = entry.metrics.shifted(position)


__all__ = ["HistoryEntry", "HistoryLog"]
