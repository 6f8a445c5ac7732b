from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import pytest

from gur import (
    Always,
    ByDistance,
    Cursor,
    CursorBuilder,
    Interval,
    Never,
    PositionOutOfRangeError,
    SnapshotPolicy,
)


@dataclass
class Append:
    """Appends ``suffix`` in place and counts how often it ran."""

    suffix: str
    calls: int = 0

    @property
    def label(self) -> str:
        return f"append:{self.suffix}"

    def apply(self, state: Dict[str, str]) -> Dict[str, str]:
        self.calls += 1
        state["data"] += self.suffix
        return state


def make_cursor(policy: SnapshotPolicy | None = None, data: str = "My") -> Cursor:
    builder = CursorBuilder()
    if policy is not None:
        builder = builder.with_policy(policy)
    return builder.build({"data": data})


def arithmetic_commands() -> List[Callable[[int], int]]:
    return [
        lambda n: n + 1,
        lambda n: n * 3,
        lambda n: n + 5,
        lambda n: n * 7,
        lambda n: n - 2,
        lambda n: n * n,
        lambda n: n // 4,
    ]


ALL_POLICIES: List[Any] = [
    Always(),
    Never(),
    Interval(1),
    Interval(2),
    Interval(3),
    ByDistance(2),
]


def test_edit_undo_redo_scenario() -> None:
    cursor = make_cursor()

    cursor.edit(Append("State"))
    assert cursor.current == {"data": "MyState"}

    cursor.undo()
    assert cursor.current == {"data": "My"}

    cursor.redo()
    assert cursor.current == {"data": "MyState"}


def test_undo_to_replays_from_nearest_snapshot() -> None:
    cursor = make_cursor(Interval(2), data="")
    a, b, c = Append("A"), Append("B"), Append("C")
    for command in (a, b, c):
        cursor.edit(command)

    assert cursor.snapshot_positions() == (0, 2)

    cursor.undo_to(1)

    assert cursor.current == {"data": "A"}
    assert (a.calls, b.calls, c.calls) == (2, 1, 1)


def test_undo_restores_snapshot_without_replay() -> None:
    cursor = make_cursor(Always(), data="")
    a, b = Append("A"), Append("B")
    cursor.edit(a)
    cursor.edit(b)

    cursor.undo()

    assert cursor.current == {"data": "A"}
    assert (a.calls, b.calls) == (1, 1)


def test_redo_continues_from_live_state() -> None:
    cursor = make_cursor(Never(), data="")
    commands = [Append(str(i)) for i in range(5)]
    for command in commands:
        cursor.edit(command)

    cursor.undo_to(2)
    cursor.redo_to(4)

    assert cursor.current == {"data": "0123"}
    assert [command.calls for command in commands] == [2, 2, 2, 2, 1]


def test_snapshots_are_independent_of_live_state() -> None:
    cursor = make_cursor(Always(), data="")
    cursor.edit(Append("A"))
    cursor.edit(Append("B"))

    cursor.undo_to(0)
    cursor.current["data"] = "tampered"
    cursor.redo_to(2)
    cursor.undo_to(0)

    assert cursor.current == {"data": ""}


@pytest.mark.parametrize("policy", ALL_POLICIES, ids=repr)
def test_round_trip_for_every_policy(policy: SnapshotPolicy) -> None:
    expected = 2
    cursor: Cursor[int] = CursorBuilder().with_policy(policy).build(2)
    commands = arithmetic_commands()
    for command in commands:
        expected = command(expected)
        cursor.edit(command)

    cursor.undo_to(0)
    assert cursor.current == 2
    cursor.redo_to(len(commands))

    assert cursor.current == expected
    assert cursor.position == cursor.horizon == len(commands)


@pytest.mark.parametrize("policy", ALL_POLICIES, ids=repr)
def test_state_at_each_position_is_policy_independent(policy: SnapshotPolicy) -> None:
    states = [2]
    for command in arithmetic_commands():
        states.append(command(states[-1]))

    cursor: Cursor[int] = CursorBuilder().with_policy(policy).build(2)
    for command in arithmetic_commands():
        cursor.edit(command)

    for position in reversed(range(len(states))):
        assert cursor.undo_to(position) == states[position]
    for position in range(len(states)):
        assert cursor.redo_to(position) == states[position]


def test_edit_after_undo_invalidates_redo() -> None:
    cursor = make_cursor(Always())
    cursor.edit(Append("A"))
    cursor.edit(Append("B"))

    cursor.undo()
    cursor.edit(Append("C"))

    assert cursor.redo() is None
    assert cursor.current == {"data": "MyAC"}
    assert cursor.horizon == cursor.position == 2
    assert cursor.snapshot_positions() == (0, 1, 2)
    assert cursor.stats().log_length == 2


def test_undo_at_start_is_noop() -> None:
    cursor = make_cursor()

    assert cursor.undo() is None
    assert cursor.current == {"data": "My"}
    assert cursor.position == 0


def test_redo_at_horizon_is_noop() -> None:
    cursor = make_cursor()
    cursor.edit(Append("!"))

    assert cursor.redo() is None
    assert cursor.current == {"data": "My!"}
    assert cursor.position == cursor.horizon == 1


def test_undo_to_current_position_is_noop() -> None:
    cursor = make_cursor(Never(), data="")
    command = Append("A")
    cursor.edit(command)

    cursor.undo_to(1)
    cursor.redo_to(1)

    assert command.calls == 1


def test_navigation_targets_are_bounded() -> None:
    cursor = make_cursor()
    cursor.edit(Append("A"))
    cursor.edit(Append("B"))
    cursor.undo()

    with pytest.raises(PositionOutOfRangeError) as excinfo:
        cursor.undo_to(2)
    assert excinfo.value.upper == 1
    with pytest.raises(PositionOutOfRangeError):
        cursor.undo_to(-1)
    with pytest.raises(PositionOutOfRangeError):
        cursor.redo_to(0)
    with pytest.raises(PositionOutOfRangeError):
        cursor.redo_to(3)
    assert cursor.position == 1


def test_multi_step_navigation_and_jump() -> None:
    cursor: Cursor[int] = CursorBuilder().with_policy(Interval(2)).build(0)
    for _ in range(6):
        cursor.edit(lambda n: n + 1)

    assert cursor.undo_multi(4) == 2
    assert cursor.undoable_count() == 2
    assert cursor.redoable_count() == 4
    assert cursor.redo_multi(1) == 3
    assert cursor.jump(-3) == 0
    assert cursor.jump(6) == 6
    assert cursor.jump(0) == 6

    with pytest.raises(ValueError):
        cursor.undo_multi(-1)


def test_multi_step_out_of_range_returns_none() -> None:
    cursor: Cursor[int] = CursorBuilder().with_policy(Interval(2)).build(0)
    for _ in range(3):
        cursor.edit(lambda n: n + 1)
    cursor.undo_multi(1)

    assert cursor.jump(2) is None
    assert cursor.redo_multi(2) is None
    assert cursor.undo_multi(3) is None
    assert cursor.jump(-3) is None
    assert cursor.position == 2
    assert cursor.current == 2
    assert cursor.horizon == 3

    with pytest.raises(PositionOutOfRangeError):
        cursor.undo_to(3)
    with pytest.raises(PositionOutOfRangeError):
        cursor.redo_to(4)


def test_distance_carries_over_after_eviction() -> None:
    distances: List[int] = []

    def policy(position: int, metrics: Any) -> bool:
        distances.append(metrics.distance_from_snapshot)
        return True

    cursor: Cursor[int] = (
        CursorBuilder().with_policy(policy).with_snapshot_capacity(1).build(0)
    )
    cursor.edit(lambda n: n + 1)
    cursor.edit(lambda n: n + 1)
    assert cursor.snapshot_positions() == (0, 2)

    cursor.undo()
    assert cursor.edit(lambda n: n + 10) == 11
    assert distances == [1, 1, 2]
    assert cursor.undo_to(0) == 0
    assert cursor.redo_to(2) == 11


def test_edit_if_declines_without_recording() -> None:
    cursor: Cursor[int] = CursorBuilder().build(0)
    cursor.edit(lambda n: n + 1)
    cursor.edit(lambda n: n + 1)
    cursor.undo()

    assert cursor.edit_if(lambda n: None) is None
    assert cursor.current == 1
    assert cursor.can_redo()

    assert cursor.edit_if(lambda n: n + 10 if n < 5 else None) == 11
    assert cursor.horizon == 2


def test_try_edit_pins_a_snapshot() -> None:
    draws = iter([40, 50])
    cursor: Cursor[int] = (
        CursorBuilder().with_policy(Never()).with_snapshot_capacity(0).build(1)
    )

    cursor.try_edit(lambda n: n + next(draws))
    cursor.edit(lambda n: n * 2)

    assert cursor.snapshot_positions() == (0, 1)
    assert cursor.undo() == 41
    assert cursor.undo() == 1
    assert cursor.redo_to(2) == 82


def test_failing_command_leaves_state_untouched() -> None:
    cursor: Cursor[List[int]] = CursorBuilder().build([1])
    cursor.edit(lambda items: items + [2])

    def broken(items: List[int]) -> List[int]:
        items.append(99)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        cursor.try_edit(broken)
    assert cursor.current == [1, 2]

    with pytest.raises(RuntimeError):
        cursor.edit(broken)
    assert cursor.current == [1, 2]
    assert cursor.position == cursor.horizon == 1


def test_stats_reflect_history() -> None:
    cursor = make_cursor(Interval(2))
    for suffix in "abcde":
        cursor.edit(Append(suffix))
    cursor.undo_to(3)

    stats = cursor.stats()

    assert stats.position == 3
    assert stats.horizon == 5
    assert stats.log_length == 5
    assert stats.snapshot_positions == (0, 2, 4)
    assert stats.snapshot_count == 3
    assert stats.snapshot_capacity is None
    assert stats.log_capacity is None
