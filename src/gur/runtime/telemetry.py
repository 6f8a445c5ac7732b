"""telelog wiring for cursor operations.

Every public cursor operation runs inside ``operation_span``, which profiles
it as ``cursor::<operation>``, tracks it under the ``cursor`` component and
pushes the starting position as logger context. History bookkeeping (snapshot
capture and eviction, log truncation and trimming) goes through
``history_event`` at debug level.

Configuration is read from ``GUR_*`` environment variables, see
``TelemetrySettings.from_env``; ``configure`` swaps it at runtime.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "GUR_"
COMPONENT = "cursor"

_LOGGERS: MutableMapping[str, Any] = {}
_CONFIG: Optional[Any] = None


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str) -> bool:
    return (_env(name) or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class TelemetrySettings:
    """Knobs for the telelog configuration used by every cursor."""

    logger_name: str = "gur"
    level: str = "INFO"
    log_file: str = ""
    console: bool = True
    color: bool = True
    json: bool = False
    buffered: bool = False
    buffer_size: int = 2048

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        return cls(
            logger_name=_env("LOGGER") or "gur",
            level=(_env("LOG_LEVEL") or "INFO").upper(),
            log_file=_env("LOG_FILE") or "",
            console=not _env_flag("DISABLE_CONSOLE"),
            color=not _env_flag("NO_COLOR"),
            json=_env_flag("LOG_JSON"),
            buffered=_env_flag("LOG_BUFFERED"),
            buffer_size=int(_env("LOG_BUFFER_SIZE") or "2048"),
        )

    def to_config(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.color)
        if self.json:
            config.with_json_format(True)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        # Spans rely on logger.profile.
        config.with_profiling(True)
        return config


def configure(
    *, settings: Optional[TelemetrySettings] = None, config: Optional[Any] = None
) -> None:
    """Adopt new settings (or a ready ``tl.Config``) and drop cached loggers."""

    global _CONFIG
    if settings is not None and config is not None:
        raise ValueError("Provide either `settings` or `config`, not both.")
    if config is None:
        config = (settings or TelemetrySettings.from_env()).to_config()
    else:
        config.with_profiling(True)
    _CONFIG = config
    _LOGGERS.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Return the cached ``telelog.Logger`` for ``name``."""

    global _CONFIG
    logger_name = name or TelemetrySettings.from_env().logger_name
    if logger_name not in _LOGGERS:
        if _CONFIG is None:
            _CONFIG = TelemetrySettings.from_env().to_config()
        _LOGGERS[logger_name] = tl.Logger.with_config(logger_name, _CONFIG)
    return _LOGGERS[logger_name]


def _emit(logger: Any, level: str, message: str, data: Dict[str, Any]) -> None:
    name = level.lower()
    pairs = [(str(key), str(value)) for key, value in data.items()]
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, pairs)
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {dict(pairs)}")


def history_event(
    name: str,
    *,
    level: str = "debug",
    logger_name: Optional[str] = None,
    **data: Any,
) -> None:
    """Log a history bookkeeping event such as ``snapshot.evict``."""

    _emit(get_logger(logger_name), level, f"history::{name}", data)


@dataclass
class OperationSpan:
    """Handle for one cursor operation; collects its outcome fields."""

    logger: Any
    operation: str
    position: int
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return f"{COMPONENT}::{self.operation}"

    def note(self, key: str, value: Any) -> None:
        self.fields[key] = str(value)

    def replayed(self, count: int) -> None:
        self.note("replayed", count)

    def fail(self, reason: str) -> None:
        _emit(
            self.logger,
            "error",
            f"{self.name}::fail",
            {"position": self.position, **self.fields, "reason": reason},
        )


@contextmanager
def operation_span(
    operation: str,
    *,
    position: int,
    logger_name: Optional[str] = None,
    **context: Any,
) -> Iterator[OperationSpan]:
    """Profile one cursor operation starting at ``position``.

    ``position`` and any extra ``context`` values are attached to the logger
    for the duration of the block. Exceptions are logged and re-raised.
    """

    log = get_logger(logger_name)
    handle = OperationSpan(logger=log, operation=operation, position=position)
    pushed = {"position": position, **context}
    for key, value in pushed.items():
        log.add_context(key, str(value))

    with ExitStack() as stack:
        stack.enter_context(log.track_component(COMPONENT))
        stack.enter_context(log.profile(handle.name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise
        finally:
            for key in pushed:
                log.remove_context(key)


configure()

__all__ = [
    "COMPONENT",
    "OperationSpan",
    "TelemetrySettings",
    "configure",
    "get_logger",
    "history_event",
    "operation_span",
]
