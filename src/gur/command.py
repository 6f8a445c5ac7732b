"""Command objects replayed by the history log."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

from .errors import InvalidConfigurationError


@runtime_checkable
class Command(Protocol):
    """A deterministic transformation from one state value to the next."""

    def apply(self, state: Any) -> Any:
        ...


@dataclass(frozen=True, slots=True)
class FunctionCommand:
    """Wraps a plain ``state -> state`` callable behind the ``Command`` protocol."""

    func: Callable[[Any], Any]
    label: str = ""

    def __post_init__(self) -> None:
        if not callable(self.func):
            raise InvalidConfigurationError("command function must be callable")
        if not self.label:
            object.__setattr__(
                self, "label", getattr(self.func, "__name__", type(self.func).__name__)
            )

    def apply(self, state: Any) -> Any:
        return self.func(state)

    def __call__(self, state: Any) -> Any:
        return self.func(state)


def as_command(command: Command | Callable[[Any], Any]) -> Command:
    """Normalize a host-supplied command into something exposing ``apply``."""

    if isinstance(command, Command):
        return command
    if callable(command):
        return FunctionCommand(command)
    raise InvalidConfigurationError(
        f"Expected a callable or an object with apply(), got {type(command).__name__}"
    )


def command_label(command: Command) -> str:
    label = getattr(command, "label", None)
    if label:
        return str(label)
    return type(command).__name__


__all__ = [
    "Command",
    "FunctionCommand",
    "as_command",
    "command_label",
]
