"""Exception types raised by the undo/redo engine."""

from __future__ import annotations


class GurError(RuntimeError):
    """Base class for every error the engine raises itself."""


class PositionOutOfRangeError(GurError, IndexError):
    """Raised when a navigation target or log access falls outside the history."""

    def __init__(
        self,
        message: str,
        *,
        position: int | None = None,
        lower: int | None = None,
        upper: int | None = None,
    ) -> None:
        super().__init__(message)
        self.position = position
        self.lower = lower
        self.upper = upper


class InvalidConfigurationError(GurError, ValueError):
    """Raised for invalid builder, policy, or command arguments."""


class SnapshotMissingError(GurError):
    """Raised when the snapshot store cannot serve a reconstruction base."""

    def __init__(self, message: str, *, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


__all__ = [
    "GurError",
    "PositionOutOfRangeError",
    "InvalidConfigurationError",
    "SnapshotMissingError",
]
