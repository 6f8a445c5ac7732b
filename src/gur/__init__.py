"""Generative undo/redo: a command log plus sparse snapshots."""

from .builder import CursorBuilder, build
from .command import Command, FunctionCommand, as_command
from .cursor import Cursor, CursorStats
from .errors import (
    GurError,
    InvalidConfigurationError,
    PositionOutOfRangeError,
    SnapshotMissingError,
)
from .history import HistoryEntry, HistoryLog
from .metrics import Metrics
from .policy import (
    Always,
    ByDistance,
    ByTotalElapsed,
    FunctionPolicy,
    Interval,
    Never,
    SnapshotPolicy,
    as_policy,
)
from .snapshot import (
    DeepCopyHandler,
    ProtocolHandler,
    Snapshot,
    SnapshotHandler,
    SnapshotStore,
)

__all__ = [
    "Always",
    "ByDistance",
    "ByTotalElapsed",
    "Command",
    "Cursor",
    "CursorBuilder",
    "CursorStats",
    "DeepCopyHandler",
    "FunctionCommand",
    "FunctionPolicy",
    "GurError",
    "HistoryEntry",
    "HistoryLog",
    "Interval",
    "InvalidConfigurationError",
    "Metrics",
    "Never",
    "PositionOutOfRangeError",
    "ProtocolHandler",
    "Snapshot",
    "SnapshotHandler",
    "SnapshotMissingError",
    "SnapshotPolicy",
    "SnapshotStore",
    "as_command",
    "as_policy",
    "build",
]

__version__ = "0.1.0"
