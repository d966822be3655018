"""Human resources."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sprint_master.types import HumanId, HumanStatus

NAMES = (
    "May", "Ben", "Joan", "Sam", "Kris", "Joe", "Sue", "Tim",
    "Dory", "Tom", "Anne", "Abe", "Yao", "Mary", "Ray", "Jon",
)

COLORS = (
    "#00d", "#dd0", "#c6c", "#0cc", "#0dd", "#ccc", "#d00", "#6c0",
    "#d0d", "#c0c", "#ddc", "#cdd", "#c6c", "#3f7", "#c0c", "#f30",
)


@dataclass
class Human:
    """A worker. Id 0 is always the player."""

    id: HumanId
    name: str
    color: str
    experience: int
    status: HumanStatus = HumanStatus.IDLE
    quit: bool = False

    def gain_experience(self, amount: int, cap: int) -> None:
        # never lowers experience, even if it started above the cap
        self.experience = max(self.experience, min(self.experience + amount, cap))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "status": self.status.value,
            "experience": self.experience,
        }
        if self.quit:
            data["quit"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Human:
        return cls(
            id=data["id"],
            name=data["name"],
            color=data["color"],
            experience=data["experience"],
            status=HumanStatus(data.get("status", HumanStatus.IDLE.value)),
            quit=data.get("quit", False),
        )
