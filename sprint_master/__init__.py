"""sprint-master - Simulation engine of a software team management game."""

from sprint_master.clock import GameClock, GameSpeed
from sprint_master.config import DEFAULT_CONFIG, GameConfig
from sprint_master.human import Human
from sprint_master.messages import Message, MessageKind
from sprint_master.outcomes import EndOfMonth, Nothing, OpenMessage, Outcome, Update
from sprint_master.reactor import EventReactor
from sprint_master.report import MonthlyReport
from sprint_master.requests import (
    AddTask,
    AdvanceTutorial,
    AssignTask,
    DragTaskEnd,
    DragTaskStart,
    MoveTask,
    NextMonth,
    Request,
    TaskRef,
    Tick,
)
from sprint_master.session import Game
from sprint_master.storage import JsonFileStore, MemoryStore
from sprint_master.task import Task, TaskBuilder
from sprint_master.types import (
    HumanStatus,
    PersistenceError,
    SnapshotError,
    StageId,
    TaskKind,
    UnknownHumanError,
)
from sprint_master.world import WorldState

__all__ = [
    "WorldState",
    "EventReactor",
    "Game",
    "GameClock",
    "GameSpeed",
    "GameConfig",
    "DEFAULT_CONFIG",
    "Task",
    "TaskBuilder",
    "TaskRef",
    "Human",
    "StageId",
    "TaskKind",
    "HumanStatus",
    "MonthlyReport",
    "Message",
    "MessageKind",
    "Request",
    "MoveTask",
    "AssignTask",
    "DragTaskStart",
    "DragTaskEnd",
    "AddTask",
    "AdvanceTutorial",
    "Tick",
    "NextMonth",
    "Outcome",
    "Nothing",
    "Update",
    "OpenMessage",
    "EndOfMonth",
    "JsonFileStore",
    "MemoryStore",
    "SnapshotError",
    "PersistenceError",
    "UnknownHumanError",
]
