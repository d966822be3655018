"""Tests for WorldState requests and tick allocation."""
from __future__ import annotations

import itertools

import pytest

from conftest import ScriptedReactor
from sprint_master.config import GameConfig
from sprint_master.human import Human
from sprint_master.messages import MessageKind
from sprint_master.outcomes import NOTHING, UPDATE, OpenMessage
from sprint_master.reactor import (
    BugReported,
    EventReactor,
    ExtraTechnicalDebt,
    MajorFeatureRequested,
    RandomReport,
)
from sprint_master.requests import (
    AddTask,
    AssignTask,
    DragTaskEnd,
    DragTaskStart,
    MoveTask,
    TaskRef,
    Tick,
)
from sprint_master.stages import TRANSITIONS
from sprint_master.task import Task, TaskBuilder
from sprint_master.types import (
    PLAYER_ID,
    HumanStatus,
    StageId,
    TaskKind,
    UnknownHumanError,
)
from sprint_master.world import WorldState


@pytest.fixture
def world() -> WorldState:
    return WorldState.new("Product")


def _task(world: WorldState, task_id: int) -> Task:
    for task in world.all_tasks():
        if task.id == task_id:
            return task
    raise AssertionError(f"T{task_id} not on the board")


def _move(world: WorldState, task_id: int, to: StageId):
    return world.apply(MoveTask(TaskRef.of(_task(world, task_id)), to), EventReactor(seed=0))


def _in_progress(world: WorldState, builder: TaskBuilder, assignee: int = PLAYER_ID) -> int:
    """Add a task and walk it into the in progress stage."""
    task_id = world.add_task(builder)
    _move(world, task_id, StageId.CANDIDATE)
    task = _task(world, task_id)
    task.specified = True
    task.assigned = assignee
    assert _move(world, task_id, StageId.PROGRESS) == UPDATE
    return task_id


class TestNewWorld:
    def test_initial_state(self, world: WorldState) -> None:
        assert world.month == 0
        assert world.time == 0
        assert world.complexity == 15
        assert world.task_ingest_rate == 10
        assert world.next_task_id == 351
        assert world.tutorial is None
        assert [h.name for h in world.humans] == ["You"]
        assert world.player.experience == 50

    def test_tutorial_world_has_no_ingestion(self) -> None:
        world = WorldState.new("Product", tutorial=True)
        assert world.tutorial == 0
        assert world.task_ingest_rate == 0

    def test_unknown_request_type(self, world: WorldState, reactor: ScriptedReactor) -> None:
        with pytest.raises(TypeError):
            world.apply(object(), reactor)  # type: ignore[arg-type]

    def test_drag_requests_change_nothing(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        assert world.apply(DragTaskStart(351), reactor) == NOTHING
        assert world.apply(DragTaskEnd(351), reactor) == NOTHING


class TestAddTask:
    def test_ids_are_sequential(self, world: WorldState, reactor: ScriptedReactor) -> None:
        assert world.apply(AddTask(TaskBuilder("a", TaskKind.NORMAL, 1, 1)), reactor) == UPDATE
        world.apply(AddTask(TaskBuilder("b", TaskKind.NORMAL, 1, 1)), reactor)
        assert [t.id for t in world.tasks(StageId.BACKLOG)] == [351, 352]
        assert world.next_task_id == 353

    def test_deadline_is_relative_to_now(self, world: WorldState) -> None:
        world.time = 40
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1, max_time=900))
        assert _task(world, task_id).deadline == 940
        assert _task(world, task_id).created == 40

    def test_tasks_returns_a_copy(self, world: WorldState) -> None:
        world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        world.tasks(StageId.BACKLOG).clear()
        assert len(world.tasks(StageId.BACKLOG)) == 1


class TestMoveTask:
    def test_legal_move(self, world: WorldState) -> None:
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        assert _move(world, task_id, StageId.CANDIDATE) == UPDATE
        assert [t.id for t in world.tasks(StageId.CANDIDATE)] == [task_id]
        assert world.tasks(StageId.BACKLOG) == []

    def test_illegal_move_changes_nothing(self, world: WorldState) -> None:
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        before = world.snapshot()
        assert _move(world, task_id, StageId.REVIEW) == NOTHING
        assert world.snapshot() == before

    def test_stale_reference_is_ignored(self, world: WorldState, reactor: ScriptedReactor) -> None:
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        ref = TaskRef(task_id, StageId.CANDIDATE)
        assert world.apply(MoveTask(ref, StageId.BACKLOG), reactor) == NOTHING
        assert world.apply(MoveTask(TaskRef(999, StageId.BACKLOG), StageId.CANDIDATE),
                           reactor) == NOTHING

    def test_unassigned_task_cannot_start(self, world: WorldState) -> None:
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        _move(world, task_id, StageId.CANDIDATE)
        _task(world, task_id).specified = True
        assert _move(world, task_id, StageId.PROGRESS) == NOTHING

    def test_task_ends_in_exactly_one_stage(self, world: WorldState) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        _move(world, task_id, StageId.CANDIDATE)
        ids = [t.id for t in world.all_tasks()]
        assert ids.count(task_id) == 1


class TestMerge:
    def test_normal_task_merge(self, world: WorldState) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 3, 8))
        task = _task(world, task_id)
        task.progress = 1.0
        task.bugs = 2

        assert _move(world, task_id, StageId.DONE) == UPDATE
        assert task.stage is StageId.DONE
        assert task.assigned is None
        assert task.progress == 0.0
        assert world.total_score == 3_000
        assert world.score_in_month == 3_000
        assert world.bugs == 2
        assert world.complexity == 15 + 1 + 8 // 4
        assert world.score_linger_rate == 2 + (18 * 120) // 2 - 10

    def test_bug_task_merge_removes_upstream_bug(self, world: WorldState) -> None:
        world.bugs = 3
        task = Task.new(1, 0, "", TaskKind.BUG, 1, 10)
        world.merge_task(task)
        assert world.bugs == 3 + 1 - 1
        assert world.complexity == 15 + 2

    def test_bug_count_does_not_go_negative(self, world: WorldState) -> None:
        task = Task.new(1, 0, "", TaskKind.BUG, 1, 4)
        task.bugs = 0
        world.merge_task(task)
        assert world.bugs == 0

    def test_chore_merge_reduces_complexity(self, world: WorldState) -> None:
        world.merge_task(Task.new(1, 0, "", TaskKind.CHORE, 0, 8))
        assert world.complexity == 15 - (2 + 2)
        assert world.total_score == 0

    def test_complexity_does_not_go_negative(self, world: WorldState) -> None:
        world.complexity = 1
        world.merge_task(Task.new(1, 0, "", TaskKind.CHORE, 0, 15))
        assert world.complexity == 0
        assert world.score_linger_rate == 0

    def test_review_to_done_merges(self, world: WorldState) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 2, 2))
        _task(world, task_id).progress = 1.0
        assert _move(world, task_id, StageId.REVIEW) == UPDATE
        assert _move(world, task_id, StageId.DONE) == UPDATE
        assert world.total_score == 2_000
        assert len(world.tasks(StageId.DONE)) == 1


class TestAssign:
    def test_assign(self, world: WorldState, reactor: ScriptedReactor) -> None:
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        ref = TaskRef.of(_task(world, task_id))
        assert world.apply(AssignTask(ref, PLAYER_ID), reactor) == UPDATE
        assert _task(world, task_id).assigned == PLAYER_ID
        assert world.apply(AssignTask(ref, PLAYER_ID), reactor) == NOTHING

    def test_unknown_human(self, world: WorldState, reactor: ScriptedReactor) -> None:
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        ref = TaskRef.of(_task(world, task_id))
        with pytest.raises(UnknownHumanError) as excinfo:
            world.apply(AssignTask(ref, 7), reactor)
        assert excinfo.value.human_id == 7

    def test_human_who_quit(self, world: WorldState, reactor: ScriptedReactor) -> None:
        world.humans.append(Human(1, "Guy", "#333", 126, quit=True))
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
        ref = TaskRef.of(_task(world, task_id))
        assert world.apply(AssignTask(ref, 1), reactor) == NOTHING
        assert _task(world, task_id).assigned is None


class TestTick:
    def test_tick_advances_time(self, world: WorldState, reactor: ScriptedReactor) -> None:
        assert world.apply(Tick(), reactor) == UPDATE
        assert world.time == 1
        assert world.time_in_month == 1

    def test_development(self, world: WorldState, reactor: ScriptedReactor) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 2))
        world.tick(reactor)
        expected = 0.005 + (5 + 50) / (2 * 60 + 15 * 55)
        assert _task(world, task_id).progress == pytest.approx(expected)
        assert world.player.status is HumanStatus.CODING

    def test_specification_only_by_idle_player(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 2))
        candidate = world.add_task(TaskBuilder("b", TaskKind.NORMAL, 1, 2))
        _move(world, candidate, StageId.CANDIDATE)
        world.tick(reactor)
        assert _task(world, candidate).progress == 0.0

    def test_specification(self, world: WorldState, reactor: ScriptedReactor) -> None:
        first = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 2))
        second = world.add_task(TaskBuilder("b", TaskKind.NORMAL, 1, 2))
        _move(world, first, StageId.CANDIDATE)
        _move(world, second, StageId.CANDIDATE)

        world.tick(reactor)
        assert _task(world, first).progress == pytest.approx(51 / 256)
        assert _task(world, second).progress == 0.0
        assert world.player.status is HumanStatus.WRITING

        for _ in range(5):
            world.tick(reactor)
        assert _task(world, first).is_specified()
        assert not _task(world, second).is_specified()

        world.tick(reactor)
        assert _task(world, second).progress > 0.0

    def test_human_works_on_one_task_per_tick(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        first = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 2))
        second = _in_progress(world, TaskBuilder("b", TaskKind.NORMAL, 1, 2))
        world.tick(reactor)
        assert _task(world, first).progress > 0.0
        assert _task(world, second).progress == 0.0

    def test_unassigned_humans_idle(self, world: WorldState, reactor: ScriptedReactor) -> None:
        world.humans.append(Human(1, "May", "#00d", 50, status=HumanStatus.CODING))
        world.tick(reactor)
        assert world.human(1).status is HumanStatus.IDLE
        assert world.player.status is HumanStatus.IDLE

    def test_completion_fixes_found_bugs(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 8))
        task = _task(world, task_id)
        task.progress = 0.999
        task.bugs = 2
        task.bugs_found = 1

        world.tick(reactor)
        assert task.is_developed()
        assert task.developed_by == PLAYER_ID
        assert task.bugs == 1
        assert task.bugs_found == 0
        assert world.bugs_fixed_in_month == 1
        assert world.bugs_fixed_in_total == 1
        assert world.player.experience == 50 + 8 // 4

    def test_developed_task_is_not_worked_on(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 8))
        _task(world, task_id).progress = 1.0
        world.tick(reactor)
        assert world.player.status is HumanStatus.IDLE

    def test_introduced_bug(self, world: WorldState, reactor: ScriptedReactor) -> None:
        reactor.introduce_bugs = True
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 8))
        world.tick(reactor)
        assert _task(world, task_id).bugs == 1

    def test_review_finds_bug(self, world: WorldState, reactor: ScriptedReactor) -> None:
        reactor.detect_bugs = True
        world.humans.append(Human(1, "May", "#00d", 50))
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 8))
        task = _task(world, task_id)
        task.progress = 1.0
        task.bugs = 2
        _move(world, task_id, StageId.REVIEW)
        task.assigned = 1

        world.tick(reactor)
        assert task.bugs_found == 1
        assert world.human(1).status is HumanStatus.REVIEWING

    def test_idle_player_ingests(self, world: WorldState, reactor: ScriptedReactor) -> None:
        reactor.ingested.append(TaskBuilder("", TaskKind.CHORE, 0, 6))
        world.tick(reactor)
        backlog = world.tasks(StageId.BACKLOG)
        assert [t.kind for t in backlog] == [TaskKind.CHORE]
        assert backlog[0].created == 1

    def test_busy_player_does_not_ingest(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 1, 8))
        reactor.ingested.append(TaskBuilder("", TaskKind.CHORE, 0, 6))
        world.tick(reactor)
        assert world.tasks(StageId.BACKLOG) == []

    def test_same_seed_same_game(self) -> None:
        snapshots = []
        for _ in range(2):
            world = WorldState.new("Product")
            reactor = EventReactor(seed=1234)
            for _ in range(1_000):
                world.tick(reactor)
            snapshots.append(world.snapshot())
        assert snapshots[0] == snapshots[1]


class TestDeadlines:
    def test_missed_deadline_is_penalized_once(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        world.total_score = 10_000
        task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 5, 3, max_time=3))
        for _ in range(3):
            world.tick(reactor)
        assert world.total_score == 10_000

        world.tick(reactor)
        assert world.total_score == 5_000
        assert world.score_in_month == -5_000
        assert _task(world, task_id).deadline is None

        world.tick(reactor)
        assert world.total_score == 5_000

    def test_total_score_does_not_go_negative(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        world.add_task(TaskBuilder("a", TaskKind.NORMAL, 5, 3, max_time=0))
        world.tick(reactor)
        assert world.total_score == 0
        assert world.score_in_month == -5_000

    def test_merged_tasks_are_not_penalized(
        self, world: WorldState, reactor: ScriptedReactor
    ) -> None:
        task_id = _in_progress(world, TaskBuilder("a", TaskKind.NORMAL, 5, 3, max_time=2))
        _task(world, task_id).progress = 1.0
        _move(world, task_id, StageId.DONE)
        for _ in range(4):
            world.tick(reactor)
        assert world.total_score == 5_000


class TestEvents:
    @pytest.fixture
    def world(self) -> WorldState:
        return WorldState.new("Product", config=GameConfig(ticks_per_major_tick=2))

    def test_major_event_cadence(self, world: WorldState, reactor: ScriptedReactor) -> None:
        for _ in range(6):
            world.tick(reactor)
        assert reactor.major_rolls == 3

    def test_random_report(self, world: WorldState, reactor: ScriptedReactor) -> None:
        reactor.events.append(RandomReport(2))
        world.tick(reactor)
        outcome = world.tick(reactor)
        assert isinstance(outcome, OpenMessage)
        assert outcome.message.kind is MessageKind.SIMPLE
        assert "coffee" in outcome.message.body

    def test_unknown_random_report(self, world: WorldState, reactor: ScriptedReactor) -> None:
        reactor.events.append(RandomReport(8))
        world.tick(reactor)
        outcome = world.tick(reactor)
        assert isinstance(outcome, OpenMessage)
        assert "no message for you" in outcome.message.body

    def test_bug_report(self, world: WorldState, reactor: ScriptedReactor) -> None:
        world.total_score = 5_000
        reactor.events.append(BugReported(TaskBuilder("Reported bug", TaskKind.BUG, 1, 4)))
        world.tick(reactor)
        outcome = world.tick(reactor)
        assert isinstance(outcome, OpenMessage)
        assert outcome.message.kind is MessageKind.BUG_REPORT
        assert world.total_score == 3_000
        assert [t.description for t in world.tasks(StageId.BACKLOG)] == ["Reported bug"]

    def test_feature_request(self, world: WorldState, reactor: ScriptedReactor) -> None:
        builders = [
            TaskBuilder("Extraordinary task", TaskKind.NORMAL, 8, 5, max_time=600)
            for _ in range(2)
        ]
        reactor.events.append(MajorFeatureRequested(builders))
        world.tick(reactor)
        outcome = world.tick(reactor)
        assert isinstance(outcome, OpenMessage)
        assert outcome.message.kind is MessageKind.FEATURE_REQUEST
        assert [t.deadline for t in world.tasks(StageId.BACKLOG)] == [602, 602]

    def test_technical_debt(self, world: WorldState, reactor: ScriptedReactor) -> None:
        reactor.events.append(ExtraTechnicalDebt(4))
        world.tick(reactor)
        outcome = world.tick(reactor)
        assert isinstance(outcome, OpenMessage)
        assert outcome.message.kind is MessageKind.TECHNICAL_DEBT
        assert world.complexity == 19
        assert world.score_linger_rate == (19 * 120) // 2 - 10

    def test_score_decay(self, reactor: ScriptedReactor) -> None:
        world = WorldState.new("Product")
        world.total_score = 100_000
        reactor.damage = 700
        for _ in range(24):
            world.tick(reactor)
        assert world.total_score == 100_000
        world.tick(reactor)
        assert world.total_score == 99_300
        assert world.score_in_month == -700

    def test_no_events_during_tutorial(self, reactor: ScriptedReactor) -> None:
        world = WorldState.new("Product", tutorial=True,
                               config=GameConfig(ticks_per_major_tick=2))
        world.total_score = 100_000
        reactor.damage = 700
        for _ in range(50):
            world.tick(reactor)
        assert reactor.major_rolls == 0
        assert world.total_score == 100_000


class TestScenario:
    def test_first_feature_from_stub_to_done(self, reactor: ScriptedReactor) -> None:
        world = WorldState.new("Product")
        task_id = world.add_task(TaskBuilder("Feature", TaskKind.NORMAL, 5, 1))
        assert task_id == 351

        assert _move(world, task_id, StageId.CANDIDATE) == UPDATE
        assert _move(world, task_id, StageId.PROGRESS) == NOTHING

        while not _task(world, task_id).is_specified():
            world.tick(reactor)
        world.apply(AssignTask(TaskRef.of(_task(world, task_id)), PLAYER_ID), reactor)
        assert _move(world, task_id, StageId.PROGRESS) == UPDATE

        while not _task(world, task_id).is_developed():
            world.tick(reactor)
            assert _task(world, task_id).progress <= 1.0
        assert _move(world, task_id, StageId.REVIEW) == UPDATE
        assert _move(world, task_id, StageId.DONE) == UPDATE

        assert world.total_score == 5_000
        assert world.score_in_month == 5_000
        assert world.month_report().tasks_done == 1


def _place(world: WorldState, stage: StageId, to: StageId) -> Task:
    """Put a fresh task in ``stage``, meeting the guard of the move to ``to``."""
    task_id = world.add_task(TaskBuilder("a", TaskKind.NORMAL, 1, 1))
    task = _task(world, task_id)
    world._stages[StageId.BACKLOG].remove(task)
    task.stage = stage
    task.specified = not (stage is StageId.CANDIDATE and to is StageId.BACKLOG)
    task.assigned = PLAYER_ID
    task.progress = 1.0
    world._stages[stage].append(task)
    return task


class TestEveryMove:
    @pytest.mark.parametrize("origin, to", list(itertools.product(StageId, StageId)))
    def test_move_touches_only_two_stages(
        self, world: WorldState, reactor: ScriptedReactor, origin: StageId, to: StageId
    ) -> None:
        # a bystander in every stage
        for stage in StageId:
            _place(world, stage, to)
        task = _place(world, origin, to)
        before = {stage: len(world.tasks(stage)) for stage in StageId}
        legal = any(target is to for _, target in TRANSITIONS[origin])

        outcome = world.apply(MoveTask(TaskRef.of(task), to), reactor)

        after = {stage: len(world.tasks(stage)) for stage in StageId}
        if legal:
            assert outcome == UPDATE
            assert task.stage is to
            expected = dict(before)
            expected[origin] -= 1
            expected[to] += 1
            assert after == expected
        else:
            assert outcome == NOTHING
            assert task.stage is origin
            assert after == before
