"""EventReactor - every chance-based outcome of the game."""
from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from sprint_master.config import DEFAULT_CONFIG, GameConfig
from sprint_master.human import COLORS, NAMES, Human
from sprint_master.task import Task, TaskBuilder
from sprint_master.types import HumanId, TaskKind

if TYPE_CHECKING:
    from sprint_master.world import WorldState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BugReported:
    """Clients reported a bug."""

    task: TaskBuilder


@dataclass(frozen=True)
class MajorFeatureRequested:
    """An important client requested a handful of features."""

    tasks: list[TaskBuilder] = field(default_factory=list)


@dataclass(frozen=True)
class ExtraTechnicalDebt:
    """A key dependency turned out to be badly outdated."""

    extra_complexity: int


@dataclass(frozen=True)
class RandomReport:
    """A flavor message with no effect on the game."""

    report_id: int


GameEvent = Union[BugReported, MajorFeatureRequested, ExtraTechnicalDebt, RandomReport]


class EventReactor:
    """Seeded producer of random game events.

    The generator advances on every roll, so a reactor must only be driven
    by the world's tick handling for runs to be reproducible.
    """

    def __init__(self, seed: int | None = None, config: GameConfig = DEFAULT_CONFIG) -> None:
        if seed is None:
            seed = int.from_bytes(os.urandom(8), "big")
        self._seed = seed
        self._rng = random.Random(seed)
        self._config = config

    @property
    def seed(self) -> int:
        return self._seed

    def _ratio(self, numerator: int, denominator: int) -> bool:
        """Return True with probability ``numerator / denominator``."""
        numerator = min(numerator, denominator)
        return self._rng.randrange(denominator) < numerator

    def human_introduced_bug(self, human: Human, task: Task, complexity: int) -> bool:
        """Roll for whether the human introduced a bug while developing."""
        det = 3_500 + human.experience * 16
        num = task.difficulty * complexity // 2
        # reworking found bugs is less likely to introduce new ones
        if task.bugs_found > 0:
            num //= 5
        return self._ratio(num, det)

    def human_detected_bug(self, human: Human, task: Task, complexity: int) -> bool:
        """Roll for whether the human found a bug while reviewing."""
        if task.bugs == 0:
            return False

        for _ in range(task.bugs_found, task.bugs):
            det = 2_000 + task.difficulty * 70 + complexity * 60
            num = 10 + human.experience // 2
            if task.developed_by != human.id:
                num *= 3
            if self._ratio(num, det):
                return True
        return False

    def score_damage(self, total_score: int, score_linger_rate: int) -> int:
        """Determine how much of the score to deduct."""
        damage = self._rng.gauss(float(score_linger_rate), float(total_score // 2_000))
        logger.debug("lingering score damage: %.2f", damage)
        return max(0, min(int(damage), total_score // 5))

    def major_event(self, state: WorldState) -> GameEvent | None:
        """Roll for a major event."""
        roll = self._rng.randint(1, 1_000)
        window = self._config.tech_debt_window

        if roll <= 35:
            if state.bugs == 0:
                return None
            task = TaskBuilder(
                "Reported bug",
                TaskKind.BUG,
                self._rng.randrange(0, 2),
                self._rng.randrange(2, 12),
            )
            return BugReported(task)
        if roll >= 950:
            n_tasks = self._rng.randint(1, 3)
            tasks = [
                TaskBuilder(
                    "Extraordinary task",
                    TaskKind.NORMAL,
                    # generally higher score and harder than usual
                    self._rng.randint(4, 16),
                    self._rng.randrange(3, 15),
                    max_time=self._config.extraordinary_task_max_time,
                )
                for _ in range(n_tasks)
            ]
            return MajorFeatureRequested(tasks)
        if 750 <= roll <= 899:
            return RandomReport(self._rng.randint(0, 8))
        if window is not None and window[0] <= roll <= window[1]:
            return ExtraTechnicalDebt(self._rng.randint(2, 6))
        return None

    def ingest_task(
        self,
        you_experience: int,
        bugs: int,
        complexity: int,
        task_ingest_rate: int,
        tasks_in_backlog: int,
    ) -> TaskBuilder | None:
        """Roll for the player devising a new task while idle."""
        det = 4_400 + task_ingest_rate
        num = task_ingest_rate + you_experience

        # a crowded backlog discourages more ideas
        if tasks_in_backlog <= 1:
            num *= 2
        elif tasks_in_backlog <= 7:
            pass
        elif tasks_in_backlog <= 12:
            num //= 2
        elif tasks_in_backlog <= 20:
            num //= 4
        elif tasks_in_backlog <= 29:
            num //= 8
        else:
            return None

        if not self._ratio(num, det):
            return None

        # weighted sampling: bugs weigh on bug count, chores on complexity
        n_fraction = 24
        b_fraction = bugs
        c_fraction = complexity // 2
        total = n_fraction + b_fraction + c_fraction
        logger.debug(
            "ingestion fractions - n: %d b: %d c: %d", n_fraction, b_fraction, c_fraction
        )
        i = self._rng.randrange(total)

        if i < b_fraction:
            kind = TaskKind.BUG
        elif i >= total - c_fraction:
            kind = TaskKind.CHORE
        else:
            kind = TaskKind.NORMAL

        if kind is TaskKind.CHORE:
            score = 0
            difficulty = self._rng.randrange(5, 16)
        elif kind is TaskKind.BUG:
            score = self._rng.randint(0, 2)
            difficulty = self._rng.randrange(2, 12)
        else:
            score = self._rng.randint(1, 8)
            difficulty = self._rng.randrange(1, 12)
        return TaskBuilder("", kind, score, difficulty)

    def ingest_important_tasks(self, month: int, task_ingest_rate: int) -> list[TaskBuilder]:
        """Generate the batch of feature tasks for the start of a month."""
        sample = self._rng.gauss((month + task_ingest_rate) / 5, 2.0)
        num_tasks = max(3, round(sample))

        base_difficulty = 4 + month // 4
        base_score = 4 + month // 5
        return [
            TaskBuilder(
                "",
                TaskKind.NORMAL,
                self._rng.randint(base_score, base_score + 6),
                self._rng.randrange(base_difficulty, base_difficulty + 10),
                max_time=self._config.important_task_max_time,
            )
            for _ in range(num_tasks)
        ]

    def new_human(self, id: HumanId, month: int) -> Human:
        """Generate a new hire."""
        sample = self._rng.gauss(50.0, 10.0)
        experience = int(min(max(sample, 35.0), 80.0))
        n = max(0, month - 3) % len(NAMES)
        return Human(id=id, name=NAMES[n], color=COLORS[n], experience=experience)

    # --- Serialization ---

    def snapshot(self) -> dict[str, Any]:
        return {
            "seed": self._seed,
            "rng_state": _serialize_rng_state(self._rng.getstate()),
        }

    def restore(self, data: dict[str, Any]) -> None:
        self._seed = data["seed"]
        self._rng.setstate(_deserialize_rng_state(data["rng_state"]))


def _serialize_rng_state(state: tuple[Any, ...]) -> list[Any]:
    """Convert Random.getstate() tuple to JSON-compatible list.

    The state format (version, internalstate, gauss_next) is the
    CPython Mersenne Twister representation.
    """
    version, internalstate, gauss_next = state
    return [version, list(internalstate), gauss_next]


def _deserialize_rng_state(data: list[Any]) -> tuple[Any, ...]:
    """Convert JSON list back to Random.setstate() tuple."""
    version, internalstate, gauss_next = data
    return (version, tuple(internalstate), gauss_next)
