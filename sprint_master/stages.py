"""Task stage machine: transition table and guard registry.

The table maps each stage to ``[guard_name, target]`` pairs. A move is
legal when the pair for the requested target exists and its guard passes
for the task being moved. Pairs absent from the table are always illegal.
"""
from __future__ import annotations

from typing import Callable

from sprint_master.task import Task
from sprint_master.types import StageId

TRANSITIONS: dict[StageId, list[tuple[str, StageId]]] = {
    StageId.BACKLOG: [("always", StageId.CANDIDATE)],
    StageId.CANDIDATE: [
        ("unspecified", StageId.BACKLOG),
        ("ready_for_development", StageId.PROGRESS),
    ],
    StageId.PROGRESS: [
        ("always", StageId.CANDIDATE),
        ("developed", StageId.REVIEW),
        ("developed", StageId.DONE),
    ],
    StageId.REVIEW: [
        ("always", StageId.PROGRESS),
        ("always", StageId.DONE),
    ],
    StageId.DONE: [],
}


class StageGuards:
    """Maps guard name strings to task predicates."""

    def __init__(self) -> None:
        self._guards: dict[str, Callable[[Task], bool]] = {}

    def register(self, name: str, fn: Callable[[Task], bool]) -> None:
        """Register a named guard. Overwrites if already registered."""
        self._guards[name] = fn

    def check(self, name: str, task: Task) -> bool:
        """Evaluate a guard. Raises KeyError if not registered."""
        return self._guards[name](task)

    def has(self, name: str) -> bool:
        return name in self._guards


def default_guards() -> StageGuards:
    guards = StageGuards()
    guards.register("always", lambda task: True)
    guards.register("unspecified", lambda task: not task.is_specified())
    guards.register(
        "ready_for_development",
        lambda task: task.is_specified() and task.assigned is not None,
    )
    guards.register("developed", lambda task: task.is_developed())
    return guards


def can_transition(task: Task, to: StageId, guards: StageGuards) -> bool:
    """Whether the task may move from its current stage to ``to``."""
    for guard_name, target in TRANSITIONS[task.stage]:
        if target is to:
            if not guards.has(guard_name):
                raise KeyError(f"Stage guard {guard_name!r} is not registered")
            return guards.check(guard_name, task)
    return False


def enter_stage(task: Task, to: StageId, rework_progress: float) -> None:
    """Relocate the task to ``to``, applying the task-local side effects.

    Merge effects of entering the done stage are applied by the world.
    """
    origin = task.stage
    if to is StageId.CANDIDATE and origin is StageId.BACKLOG:
        # progress now measures specification writing
        task.progress = 0.0
    elif to is StageId.PROGRESS and origin is StageId.CANDIDATE:
        # progress now measures development
        task.progress = 0.0
    elif to is StageId.PROGRESS and origin is StageId.REVIEW:
        if task.bugs_found > 0:
            task.progress = rework_progress
    task.stage = to
