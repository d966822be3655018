"""Requests accepted by the world state.

Requests are frozen dataclasses dispatched by type. A ``TaskRef`` carries
enough of a task to locate it without a prior lookup: its id and the stage
the requester believes it is in.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sprint_master.task import Task, TaskBuilder
from sprint_master.types import HumanId, StageId, TaskId, TaskKind


@dataclass(frozen=True)
class TaskRef:
    id: TaskId
    from_stage: StageId
    kind: TaskKind = TaskKind.NORMAL
    progress: float = 0.0

    @classmethod
    def of(cls, task: Task) -> TaskRef:
        return cls(task.id, task.stage, task.kind, task.progress)


@dataclass(frozen=True)
class MoveTask:
    task: TaskRef
    to: StageId


@dataclass(frozen=True)
class AssignTask:
    task: TaskRef
    human_id: HumanId


@dataclass(frozen=True)
class DragTaskStart:
    task_id: TaskId


@dataclass(frozen=True)
class DragTaskEnd:
    task_id: TaskId


@dataclass(frozen=True)
class AddTask:
    builder: TaskBuilder


@dataclass(frozen=True)
class AdvanceTutorial:
    pass


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class NextMonth:
    pass


Request = Union[
    MoveTask, AssignTask, DragTaskStart, DragTaskEnd, AddTask,
    AdvanceTutorial, Tick, NextMonth,
]
