"""Game configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GameConfig:
    """Immutable tuning constants for the simulation.

    Attributes:
        ticks_per_month: Length of a game month in ticks.
        ticks_per_major_tick: Interval (in total ticks) between major event rolls.
        ticks_per_score_damage: Interval (in month ticks) between score decay rolls.
        start_of_month_tick: Month tick at which start-of-month logic runs.
        linger_factor: Weight of complexity in the score linger rate.
        score_unit: Fine-grained score units per displayed point.
        first_task_id: Id of the first task created in a new game.
        initial_complexity: Complexity of a brand new product.
        initial_ingest_rate: Task ingestion rate outside the tutorial.
        player_experience: Starting experience of the player.
        max_experience: Experience cap for every human.
        review_rework_progress: Progress kept when a task with found bugs
            goes back from review to development.
        important_task_max_time: Deadline offset of start-of-month tasks.
        extraordinary_task_max_time: Deadline offset of requested features.
        bug_report_penalty: Score (fine-grained) lost when clients report a bug.
        tech_debt_window: Inclusive major-event roll range producing an
            extra technical debt event, or None to never produce it.
        base_milliseconds_per_tick: Tick period at normal game speed.
    """

    ticks_per_month: int = 1_000
    ticks_per_major_tick: int = 250
    ticks_per_score_damage: int = 25
    start_of_month_tick: int = 5
    linger_factor: int = 120
    score_unit: int = 1_000
    first_task_id: int = 351
    initial_complexity: int = 15
    initial_ingest_rate: int = 10
    player_experience: int = 50
    max_experience: int = 128
    review_rework_progress: float = 2 / 3
    important_task_max_time: int = 900
    extraordinary_task_max_time: int = 600
    bug_report_penalty: int = 2_000
    tech_debt_window: tuple[int, int] | None = None
    base_milliseconds_per_tick: int = 200

    @property
    def tutorial_closing_tick(self) -> int:
        """Month tick from which an unfinished tutorial skips to its last phase."""
        return self.ticks_per_month - self.ticks_per_month // 16


DEFAULT_CONFIG = GameConfig()
