"""Per-command cost hints handed to snapshot policies.

Each recorded command carries a ``Metrics`` value measured once, when the
command is first applied by ``Cursor.edit``. Replays never re-measure, so a
policy that reads these values still sees the same input for the same
history.

Given a chain where ``s`` is a snapshot and ``c`` a command::

    /--\\  +--+  +--+  +--+
    |s0|--|c1|--|c2|--|c3|
    \\--/  +--+  +--+  +--+

``c3`` reports ``distance_from_snapshot == 3`` and an
``elapsed_from_snapshot`` equal to the summed durations of ``c1..c3``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Metrics:
    position: int = 0
    elapsed: float = 0.0
    elapsed_from_snapshot: float = 0.0
    distance_from_snapshot: int = 0

    @classmethod
    def zero(cls, position: int = 0) -> "Metrics":
        """Metrics of a position backed by a snapshot."""

        return cls(position=position)

    def make_next(self, elapsed: float) -> "Metrics":
        """Metrics for the command applied right after this position."""

        return Metrics(
            position=self.position + 1,
            elapsed=elapsed,
            elapsed_from_snapshot=self.elapsed_from_snapshot + elapsed,
            distance_from_snapshot=self.distance_from_snapshot + 1,
        )

    def shifted(self, offset: int) -> "Metrics":
        return Metrics(
            position=self.position - offset,
            elapsed=self.elapsed,
            elapsed_from_snapshot=self.elapsed_from_snapshot,
            distance_from_snapshot=self.distance_from_snapshot,
        )


__all__ = ["Metrics"]
