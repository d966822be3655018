"""WorldState - the aggregate owning every task, human and counter of a game."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterator

from sprint_master import messages
from sprint_master.config import DEFAULT_CONFIG, GameConfig
from sprint_master.human import Human
from sprint_master.outcomes import NOTHING, UPDATE, EndOfMonth, OpenMessage, Outcome
from sprint_master.reactor import (
    BugReported,
    EventReactor,
    ExtraTechnicalDebt,
    GameEvent,
    MajorFeatureRequested,
    RandomReport,
)
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
from sprint_master.stages import StageGuards, can_transition, default_guards, enter_stage
from sprint_master.task import Task, TaskBuilder
from sprint_master.tutorial import (
    CLOSING_PHASE,
    GUY_COLOR,
    GUY_EXPERIENCE,
    GUY_NAME,
    GUY_PHASE,
    INGESTION_PHASE,
)
from sprint_master.types import (
    PLAYER_ID,
    HumanId,
    HumanStatus,
    SnapshotError,
    StageId,
    TaskId,
    TaskKind,
    UnknownHumanError,
)

logger = logging.getLogger(__name__)

_STAGE_KEYS = {
    StageId.BACKLOG: "tasks_backlog",
    StageId.CANDIDATE: "tasks_candidate",
    StageId.PROGRESS: "tasks_progress",
    StageId.REVIEW: "tasks_review",
    StageId.DONE: "tasks_done",
}

_COUNTERS = (
    "month",
    "time",
    "time_in_month",
    "next_task_id",
    "total_score",
    "score_in_month",
    "bugs",
    "bugs_fixed_in_total",
    "bugs_fixed_in_month",
    "complexity",
    "score_linger_rate",
    "task_ingest_rate",
)


def _first(current: Outcome | None, candidate: Outcome) -> Outcome:
    return current if current is not None else candidate


class WorldState:
    """The full state of a game.

    Scores are kept in fine-grained units (``config.score_unit`` per
    displayed point) so that score damage can accumulate fractionally.
    All mutation goes through :meth:`apply`.
    """

    def __init__(self, product_name: str, config: GameConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.product_name = product_name
        self.month: int = 0
        self.time: int = 0
        self.time_in_month: int = 0
        self.next_task_id: TaskId = config.first_task_id
        self.total_score: int = 0
        self.score_in_month: int = 0
        self.bugs: int = 0
        self.bugs_fixed_in_total: int = 0
        self.bugs_fixed_in_month: int = 0
        self.complexity: int = config.initial_complexity
        self.score_linger_rate: int = 0
        self.task_ingest_rate: int = config.initial_ingest_rate
        self.humans: list[Human] = []
        self.tutorial: int | None = None
        self._stages: dict[StageId, list[Task]] = {stage: [] for stage in StageId}
        self._guards: StageGuards = default_guards()
        self._handlers: dict[type, Callable[[Any, EventReactor], Outcome]] = {
            MoveTask: lambda req, reactor: self.move_task(req.task, req.to),
            AssignTask: lambda req, reactor: self.assign_task(req.task, req.human_id),
            DragTaskStart: lambda req, reactor: NOTHING,
            DragTaskEnd: lambda req, reactor: NOTHING,
            AddTask: self._handle_add_task,
            AdvanceTutorial: lambda req, reactor: self.advance_tutorial(),
            Tick: lambda req, reactor: self.tick(reactor),
            NextMonth: lambda req, reactor: self.next_month(),
        }

    @classmethod
    def new(
        cls, product_name: str, tutorial: bool = False, config: GameConfig = DEFAULT_CONFIG
    ) -> WorldState:
        """Create the world state of a brand new game."""
        state = cls(product_name, config)
        state.humans.append(Human(PLAYER_ID, "You", "#fff", config.player_experience))
        if tutorial:
            # no self-devised tasks during the tutorial
            state.task_ingest_rate = 0
            state.tutorial = 0
        return state

    @classmethod
    def from_snapshot(
        cls, data: dict[str, Any], config: GameConfig = DEFAULT_CONFIG
    ) -> WorldState:
        state = cls("", config)
        state.restore(data)
        return state

    # --- Queries ---

    def tasks(self, stage: StageId) -> list[Task]:
        """Tasks of a stage, in board order. The returned list is a copy."""
        return list(self._stages[stage])

    def all_tasks(self) -> Iterator[Task]:
        for stage in StageId:
            yield from self._stages[stage]

    def open_tasks(self) -> Iterator[Task]:
        """Every task not yet merged."""
        for stage in StageId:
            if stage is not StageId.DONE:
                yield from self._stages[stage]

    def find_task(self, ref: TaskRef) -> Task | None:
        for task in self._stages[ref.from_stage]:
            if task.id == ref.id:
                return task
        return None

    def human(self, human_id: HumanId) -> Human:
        for human in self.humans:
            if human.id == human_id:
                return human
        raise UnknownHumanError(human_id, f"No human with id {human_id}")

    @property
    def player(self) -> Human:
        return self.human(PLAYER_ID)

    def next_human_id(self) -> HumanId:
        return self.humans[-1].id + 1 if self.humans else PLAYER_ID

    @property
    def pending_rollover(self) -> bool:
        """Whether the month is over and waits for a ``NextMonth`` request."""
        return self.time_in_month >= self.config.ticks_per_month

    def _ingestion_active(self) -> bool:
        return self.tutorial is None or self.tutorial >= INGESTION_PHASE

    # --- Request entry point ---

    def apply(self, request: Request, reactor: EventReactor) -> Outcome:
        """Apply the given request to the world state."""
        handler = self._handlers.get(type(request))
        if handler is None:
            raise TypeError(f"No handler registered for {type(request).__qualname__}")
        return handler(request, reactor)

    def _handle_add_task(self, request: AddTask, reactor: EventReactor) -> Outcome:
        self.add_task(request.builder)
        return UPDATE

    # --- Task operations ---

    def add_task(self, builder: TaskBuilder) -> TaskId:
        """Create a task in the backlog from the builder. Return its id."""
        task_id = self.next_task_id
        self.next_task_id += 1
        deadline = None
        if builder.max_time is not None:
            deadline = self.time + builder.max_time
        task = Task.new(
            task_id,
            self.time,
            builder.description,
            builder.kind,
            builder.score,
            builder.difficulty,
            deadline=deadline,
        )
        self._stages[StageId.BACKLOG].append(task)
        return task_id

    def add_tasks(self, builders: list[TaskBuilder]) -> None:
        for builder in builders:
            self.add_task(builder)

    def _relocate(self, task: Task, to: StageId) -> None:
        self._stages[task.stage].remove(task)
        enter_stage(task, to, self.config.review_rework_progress)
        self._stages[to].append(task)

    def move_task(self, ref: TaskRef, to: StageId) -> Outcome:
        """Move a task to another stage if the stage machine allows it."""
        task = self.find_task(ref)
        if task is None:
            logger.debug("T%d not found in %s, ignoring move", ref.id, ref.from_stage.value)
            return NOTHING
        if not can_transition(task, to, self._guards):
            return NOTHING

        origin = task.stage
        self._relocate(task, to)

        if to is StageId.DONE:
            self.merge_task(task)
            if self.tutorial in (6, 7, 8):
                self.tutorial = 8
                return self.advance_tutorial()
        elif origin is StageId.PROGRESS and to is StageId.REVIEW and self.tutorial == 7:
            return self.advance_tutorial()
        return UPDATE

    def merge_task(self, task: Task) -> None:
        """Fold the effects of a task reaching done into the world totals."""
        task.assigned = None
        task.progress = 0.0

        task_score = task.score * self.config.score_unit
        self.total_score = max(0, self.total_score + task_score)
        self.score_in_month += task_score

        self.bugs += task.bugs

        if task.kind is TaskKind.BUG:
            self.complexity += task.difficulty // 5
            # the bug that was upstream is gone
            self.bugs = max(0, self.bugs - 1)
        elif task.kind is TaskKind.NORMAL:
            self.complexity += 1 + task.difficulty // 4
        else:
            self.complexity = max(0, self.complexity - (2 + task.difficulty // 4))

        logger.debug("T%d merged (%s, score %d)", task.id, task.kind.value, task.score)
        self.update_score_linger_rate()

    def update_score_linger_rate(self) -> None:
        self.score_linger_rate = max(
            0, self.bugs + (self.complexity * self.config.linger_factor) // 2 - 10
        )
        logger.debug(
            "complexity: %d; linger rate: %d", self.complexity, self.score_linger_rate
        )

    def assign_task(self, ref: TaskRef, human_id: HumanId) -> Outcome:
        task = self.find_task(ref)
        if task is None:
            return NOTHING
        human = self.human(human_id)
        if human.quit or task.assigned == human_id:
            return NOTHING
        task.assigned = human_id
        return UPDATE

    def _deduct_score(self, amount: int) -> None:
        self.total_score = max(0, self.total_score - amount)
        self.score_in_month -= amount

    # --- Time ---

    def tick(self, reactor: EventReactor) -> Outcome:
        """Advance the simulation by one tick."""
        cfg = self.config
        if self.pending_rollover:
            return EndOfMonth(self.month_report())

        self.time += 1
        self.time_in_month += 1

        acted: set[HumanId] = set()
        outcome: Outcome | None = None

        self._apply_deadline_penalties()

        # development
        for task in self._stages[StageId.PROGRESS]:
            if task.is_developed() or task.assigned is None or task.assigned in acted:
                continue
            human = self.human(task.assigned)
            added = 0.005 + (5 + human.experience) / max(
                1, task.difficulty * 60 + self.complexity * 55
            )
            complete = task.add_progress(added)
            human.status = HumanStatus.CODING
            acted.add(human.id)

            if reactor.human_introduced_bug(human, task, self.complexity):
                task.bugs += 1
                logger.debug("bug introduced in T%d", task.id)

            if complete:
                task.developed_by = human.id
                self.bugs_fixed_in_month += task.bugs_found
                self.bugs_fixed_in_total += task.bugs_found
                task.bugs -= task.bugs_found
                task.bugs_found = 0
                human.gain_experience(task.difficulty // 4, cfg.max_experience)

                if self.tutorial == 5:
                    # make sure the first review has something to find
                    task.bugs = max(task.bugs, 1)
                    self.player.gain_experience(1, cfg.max_experience)
                    outcome = _first(outcome, self.advance_tutorial())

        # specification, only by the player
        if PLAYER_ID not in acted:
            for task in self._stages[StageId.CANDIDATE]:
                if task.is_specified():
                    continue
                you = self.player
                added = (1 + you.experience) / max(1, task.difficulty * 128)
                complete = task.add_progress(added)
                you.status = HumanStatus.WRITING
                acted.add(PLAYER_ID)
                if complete and self.tutorial in (4, 10):
                    outcome = _first(outcome, self.advance_tutorial())
                break

        # review
        for task in self._stages[StageId.REVIEW]:
            if task.assigned is None or task.assigned in acted:
                continue
            human = self.human(task.assigned)
            human.status = HumanStatus.REVIEWING
            acted.add(human.id)
            if reactor.human_detected_bug(human, task, self.complexity):
                task.bugs_found += 1
                logger.debug("bug found in T%d", task.id)
                if self.tutorial == 6:
                    outcome = _first(outcome, self.advance_tutorial())

        for human in self.humans:
            if human.id not in acted:
                human.status = HumanStatus.IDLE

        # an idle player thinks of new things to do
        if PLAYER_ID not in acted and self._ingestion_active():
            builder = reactor.ingest_task(
                self.player.experience,
                self.bugs,
                self.complexity,
                self.task_ingest_rate,
                len(self._stages[StageId.BACKLOG]),
            )
            if builder is not None:
                task_id = self.add_task(builder)
                logger.debug("T%d ingested", task_id)

        if self.time_in_month == cfg.start_of_month_tick:
            started = self.start_of_month(reactor)
            if started is not None:
                outcome = _first(outcome, started)

        if self.pending_rollover:
            return EndOfMonth(self.month_report())

        if (
            self.time_in_month >= cfg.tutorial_closing_tick
            and self.tutorial is not None
            and self.tutorial < CLOSING_PHASE
        ):
            self.tutorial = CLOSING_PHASE - 1
            outcome = _first(outcome, self.advance_tutorial())

        if self.tutorial is None:
            if self.time % cfg.ticks_per_major_tick == 0:
                event = reactor.major_event(self)
                if event is not None:
                    outcome = _first(outcome, self._apply_major_event(event))

            if self.time_in_month % cfg.ticks_per_score_damage == 0:
                damage = reactor.score_damage(self.total_score, self.score_linger_rate)
                if damage > 0:
                    logger.debug("score damage to apply: %d", damage)
                    self._deduct_score(damage)

        return _first(outcome, UPDATE)

    def _apply_deadline_penalties(self) -> None:
        penalty = 0
        for task in self.open_tasks():
            if task.deadline is not None and task.deadline < self.time:
                penalty += task.score * self.config.score_unit
                # penalize once
                task.deadline = None
        if penalty > 0:
            logger.debug("deadline penalty: %d", penalty)
            self._deduct_score(penalty)

    def _apply_major_event(self, event: GameEvent) -> Outcome:
        if isinstance(event, RandomReport):
            return OpenMessage(messages.random_report(event.report_id))
        if isinstance(event, BugReported):
            self.add_task(event.task)
            self._deduct_score(self.config.bug_report_penalty)
            return OpenMessage(messages.bug_reported())
        if isinstance(event, ExtraTechnicalDebt):
            self.complexity += event.extra_complexity
            self.update_score_linger_rate()
            return OpenMessage(messages.extra_technical_debt())
        if isinstance(event, MajorFeatureRequested):
            self.add_tasks(event.tasks)
            return OpenMessage(messages.feature_requested())
        raise TypeError(f"Unknown game event {type(event).__qualname__}")

    # --- Month cycle ---

    def start_of_month(self, reactor: EventReactor) -> Outcome | None:
        """Ingest the month's important tasks and hire if understaffed.

        Returns None while the tutorial is active.
        """
        if self.tutorial is not None:
            return None

        self.add_tasks(reactor.ingest_important_tasks(self.month, self.task_ingest_rate))

        humans_count = sum(1 for h in self.humans if not h.quit)
        expected_humans = 1 + (self.month + 3) // 6
        if expected_humans > humans_count:
            new_human = reactor.new_human(self.next_human_id(), self.month)
            self.humans.append(new_human)
            logger.info("%s was hired (experience %d)", new_human.name, new_human.experience)
            return OpenMessage(messages.new_human(new_human))
        return UPDATE

    def month_report(self) -> MonthlyReport:
        unit = self.config.score_unit
        # truncate toward zero, a month can end with a loss
        score = abs(self.score_in_month) // unit
        if self.score_in_month < 0:
            score = -score
        return MonthlyReport(
            month=self.month,
            score=score,
            total_score=self.total_score // unit,
            tasks_done=sum(1 for t in self._stages[StageId.DONE] if t.visible),
            bugs_fixed=self.bugs_fixed_in_month,
            complexity=self.complexity,
        )

    def next_month(self) -> Outcome:
        """Commit the rollover of a finished month."""
        if not self.pending_rollover:
            return NOTHING

        self.month += 1
        self.time_in_month = 0
        self.score_in_month = 0
        self.bugs_fixed_in_month = 0
        self.task_ingest_rate += 1

        for task in self._stages[StageId.DONE]:
            task.visible = False

        if self.tutorial is not None:
            self.tutorial = None
            for human in self.humans:
                if human.name == GUY_NAME and not human.quit:
                    human.quit = True
                    for task in self.open_tasks():
                        if task.assigned == human.id:
                            task.assigned = None

        logger.info("month %d started", self.month)
        return UPDATE

    def advance_tutorial(self) -> Outcome:
        # nothing follows the closing message
        if self.tutorial is None or self.tutorial >= CLOSING_PHASE:
            return NOTHING
        self.tutorial += 1
        if self.tutorial == GUY_PHASE:
            self.humans.append(
                Human(self.next_human_id(), GUY_NAME, GUY_COLOR, GUY_EXPERIENCE)
            )
        return OpenMessage(messages.tutorial(self.tutorial))

    # --- Snapshot / restore ---

    def snapshot(self) -> dict[str, Any]:
        data: dict[str, Any] = {"product_name": self.product_name}
        for name in _COUNTERS:
            data[name] = getattr(self, name)
        for stage, key in _STAGE_KEYS.items():
            data[key] = [task.to_dict() for task in self._stages[stage]]
        data["humans"] = [human.to_dict() for human in self.humans]
        data["tutorial"] = self.tutorial
        return data

    def restore(self, data: dict[str, Any]) -> None:
        try:
            product_name = str(data["product_name"])
            counters = {name: int(data[name]) for name in _COUNTERS}
            stages = {
                stage: [Task.from_dict(t) for t in data[key]]
                for stage, key in _STAGE_KEYS.items()
            }
            humans = [Human.from_dict(h) for h in data["humans"]]
            tutorial = data.get("tutorial")
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed world state: {exc!r}") from exc

        for stage, tasks in stages.items():
            for task in tasks:
                if task.stage is not stage:
                    raise SnapshotError(
                        f"T{task.id} is listed in {stage.value} but is in {task.stage.value}"
                    )

        self.product_name = product_name
        for name, value in counters.items():
            setattr(self, name, value)
        self._stages = stages
        self.humans = humans
        self.tutorial = None if tutorial is None else int(tutorial)
