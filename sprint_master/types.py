"""Shared enums, type aliases and errors for the sprint master engine."""

from __future__ import annotations

from enum import Enum

HumanId = int
TaskId = int

Timestamp = int
"""Number of ticks since the creation of a new game."""

PLAYER_ID: HumanId = 0


class StageId(str, Enum):
    """A column of the workboard, in the intended order of progression."""

    BACKLOG = "backlog"
    CANDIDATE = "candidate"
    PROGRESS = "progress"
    REVIEW = "review"
    DONE = "done"


class TaskKind(str, Enum):
    NORMAL = "normal"
    BUG = "bug"
    CHORE = "chore"


class HumanStatus(str, Enum):
    IDLE = "idle"
    WRITING = "writing"
    CODING = "coding"
    REVIEWING = "reviewing"


class UnknownHumanError(KeyError):
    """Raised when a request references a human who is not on the roster."""

    def __init__(self, human_id: int, message: str) -> None:
        self.human_id = human_id
        super().__init__(message)


class SnapshotError(Exception):
    """Raised on restore failures (version mismatch, malformed blob)."""


class PersistenceError(Exception):
    """Raised when a save blob cannot be read from or written to storage."""
