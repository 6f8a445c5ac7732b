from __future__ import annotations

import pytest

from gur import CursorBuilder
from gur.runtime import telemetry


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GUR_LOGGER", "gur.tests")
    monkeypatch.setenv("GUR_LOG_LEVEL", "debug")
    monkeypatch.setenv("GUR_NO_COLOR", "yes")
    monkeypatch.setenv("GUR_LOG_BUFFER_SIZE", "512")

    settings = telemetry.TelemetrySettings.from_env()

    assert settings.logger_name == "gur.tests"
    assert settings.level == "DEBUG"
    assert settings.color is False
    assert settings.console is True
    assert settings.json is False
    assert settings.buffer_size == 512


def test_configure_with_settings_resets_loggers() -> None:
    before = telemetry.get_logger("gur.reset")
    telemetry.configure(settings=telemetry.TelemetrySettings(level="DEBUG"))
    after = telemetry.get_logger("gur.reset")

    assert before is not after
    telemetry.configure()


def test_configure_rejects_settings_and_config() -> None:
    settings = telemetry.TelemetrySettings()
    with pytest.raises(ValueError):
        telemetry.configure(settings=settings, config=settings.to_config())


def test_get_logger_is_cached() -> None:
    assert telemetry.get_logger("gur.cache") is telemetry.get_logger("gur.cache")


def test_operation_span_collects_fields() -> None:
    with telemetry.operation_span("undo_to", position=4, target=1) as handle:
        handle.replayed(3)
        handle.note("snapshot", 0)

    assert handle.name == "cursor::undo_to"
    assert handle.position == 4
    assert handle.fields == {"replayed": "3", "snapshot": "0"}


def test_operation_span_reraises() -> None:
    with pytest.raises(KeyError):
        with telemetry.operation_span("edit", position=0, command="broken"):
            raise KeyError("missing")


def test_history_event_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        telemetry.history_event("log.trim", level="loud", dropped=1)


def test_cursor_runs_with_custom_logger() -> None:
    telemetry.history_event("snapshot.capture", position=0, pinned=True)
    cursor = CursorBuilder().with_logger("gur.cursor-tests").build(0)
    cursor.edit(lambda n: n + 1)

    assert cursor.undo() == 0
    assert telemetry.get_logger("gur.cursor-tests") is not None
