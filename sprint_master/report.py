"""Monthly report produced at the end of every month."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MonthlyReport:
    """Read-only summary of a month. Scores are in displayed units."""

    month: int
    score: int
    total_score: int
    tasks_done: int
    bugs_fixed: int
    complexity: int

    @property
    def complexity_label(self) -> str:
        if self.complexity <= 7:
            return "very low"
        if self.complexity <= 15:
            return "low"
        if self.complexity <= 40:
            return "manageable"
        if self.complexity <= 64:
            return "high"
        if self.complexity <= 70:
            return "very high"
        return "unbearable"

    def lines(self) -> list[str]:
        return [
            f"Score gained: {self.score}",
            f"Total score: {self.total_score}",
            f"Tasks done: {self.tasks_done}",
            f"Bugs fixed: {self.bugs_fixed}",
            f"Technical debt: {self.complexity_label}",
        ]
