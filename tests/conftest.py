"""Shared fixtures: a reactor whose rolls are chosen by the test."""
from __future__ import annotations

import pytest

from sprint_master.human import Human
from sprint_master.reactor import EventReactor, GameEvent
from sprint_master.task import TaskBuilder


class ScriptedReactor(EventReactor):
    """Reactor with fixed rolls. Major events are popped from ``events``."""

    def __init__(self) -> None:
        super().__init__(seed=0)
        self.introduce_bugs = False
        self.detect_bugs = False
        self.damage = 0
        self.events: list[GameEvent | None] = []
        self.ingested: list[TaskBuilder] = []
        self.important: list[TaskBuilder] = []
        self.major_rolls = 0

    def human_introduced_bug(self, human, task, complexity):
        return self.introduce_bugs

    def human_detected_bug(self, human, task, complexity):
        return self.detect_bugs and task.bugs > task.bugs_found

    def score_damage(self, total_score, score_linger_rate):
        return min(self.damage, total_score // 5)

    def major_event(self, state):
        self.major_rolls += 1
        return self.events.pop(0) if self.events else None

    def ingest_task(self, you_experience, bugs, complexity, task_ingest_rate, tasks_in_backlog):
        return self.ingested.pop(0) if self.ingested else None

    def ingest_important_tasks(self, month, task_ingest_rate):
        return list(self.important)

    def new_human(self, id, month):
        return Human(id, "May", "#00d", 50)


@pytest.fixture
def reactor() -> ScriptedReactor:
    return ScriptedReactor()
