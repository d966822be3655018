"""Outcomes of applying a request to the world state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sprint_master.messages import Message
from sprint_master.report import MonthlyReport


@dataclass(frozen=True)
class Nothing:
    """No state change, no need to re-render."""


@dataclass(frozen=True)
class Update:
    """The state changed and should be re-rendered."""


@dataclass(frozen=True)
class OpenMessage:
    """A message for the player should appear."""

    message: Message


@dataclass(frozen=True)
class EndOfMonth:
    """The month is over; rollover waits for a ``NextMonth`` request."""

    report: MonthlyReport


Outcome = Union[Nothing, Update, OpenMessage, EndOfMonth]

NOTHING = Nothing()
UPDATE = Update()
