"""Task entity and task builder."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sprint_master.types import HumanId, StageId, TaskId, TaskKind, Timestamp


@dataclass
class Task:
    """A unit of work on the board.

    ``progress`` is stage dependent: in the candidate stage it measures
    specification writing, in progress/review it measures development.
    ``bugs`` counts latent bugs introduced during development, of which
    ``bugs_found`` were already discovered through review.
    """

    id: TaskId
    created: Timestamp
    description: str
    kind: TaskKind
    score: int
    difficulty: int
    stage: StageId = StageId.BACKLOG
    assigned: HumanId | None = None
    developed_by: HumanId | None = None
    progress: float = 0.0
    specified: bool = False
    bugs: int = 0
    bugs_found: int = 0
    deadline: Timestamp | None = None
    visible: bool = True

    @classmethod
    def new(
        cls,
        id: TaskId,
        created: Timestamp,
        description: str,
        kind: TaskKind,
        score: int,
        difficulty: int,
        deadline: Timestamp | None = None,
    ) -> Task:
        # a bug task carries the (already known) bug it is meant to fix
        known = 1 if kind is TaskKind.BUG else 0
        return cls(
            id=id,
            created=created,
            description=description,
            kind=kind,
            score=score,
            difficulty=difficulty,
            deadline=deadline,
            bugs=known,
            bugs_found=known,
        )

    def add_progress(self, amount: float) -> bool:
        """Add some progress. Return whether the task reached full progress."""
        self.progress = min(self.progress + amount, 1.0)
        if self.progress >= 1.0:
            if self.stage is StageId.CANDIDATE:
                self.specified = True
            return True
        return False

    def is_specified(self) -> bool:
        return self.specified

    def is_developed(self) -> bool:
        if self.stage in (StageId.BACKLOG, StageId.CANDIDATE):
            return False
        if self.stage is StageId.DONE:
            return True
        return self.progress >= 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created": self.created,
            "description": self.description,
            "kind": self.kind.value,
            "score": self.score,
            "difficulty": self.difficulty,
            "stage": self.stage.value,
            "assigned": self.assigned,
            "developed_by": self.developed_by,
            "progress": self.progress,
            "specified": self.specified,
            "bugs": self.bugs,
            "bugs_found": self.bugs_found,
            "deadline": self.deadline,
            "visible": self.visible,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=data["id"],
            created=data.get("created", 0),
            description=data["description"],
            kind=TaskKind(data["kind"]),
            score=data["score"],
            difficulty=data["difficulty"],
            stage=StageId(data["stage"]),
            assigned=data.get("assigned"),
            developed_by=data.get("developed_by"),
            progress=float(data["progress"]),
            specified=data.get("specified", False),
            bugs=data["bugs"],
            bugs_found=data["bugs_found"],
            deadline=data.get("deadline"),
            visible=data["visible"],
        )


@dataclass(frozen=True)
class TaskBuilder:
    """Details for constructing a new task.

    ``max_time`` is the deadline offset in ticks from the moment the task
    is created, or None for a task without deadline.
    """

    description: str
    kind: TaskKind
    score: int
    difficulty: int
    max_time: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "kind": self.kind.value,
            "score": self.score,
            "difficulty": self.difficulty,
            "max_time": self.max_time,
        }
