"""Informational messages surfaced to the player."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sprint_master.human import Human
from sprint_master.report import MonthlyReport
from sprint_master.tutorial import tutorial_text

BOARD_TITLE = "A message from the board of directors"

RANDOM_REPORTS = (
    "Today is pizza day! Don't forget to mark your preference in the #lunch channel!",
    "Don't forget that next Wednesday is Meme day. Post your memes on the #memes channel.",
    "Hey folks, let's go grab some coffee!",
    "I heard it's been a rough night for the DevOps team. "
    "I wonder why we still have a single DevOps team in the first place...",
    "Things have been complicated over at DevOps. Lend a hand if you can.",
)


class MessageKind(str, Enum):
    SIMPLE = "simple"
    TUTORIAL = "tutorial"
    END_OF_MONTH = "end_of_month"
    HIRE = "hire"
    BUG_REPORT = "bug_report"
    FEATURE_REQUEST = "feature_request"
    TECHNICAL_DEBT = "technical_debt"


@dataclass(frozen=True)
class Message:
    kind: MessageKind
    title: str
    body: str = ""
    phase: int | None = None
    report: MonthlyReport | None = None


def simple(title: str, body: str) -> Message:
    return Message(MessageKind.SIMPLE, title, body)


def random_report(report_id: int) -> Message:
    if 0 <= report_id < len(RANDOM_REPORTS):
        body = RANDOM_REPORTS[report_id]
    else:
        body = "Sorry, my mistake. There is no message for you."
    return simple("General message via chat", body)


def bug_reported() -> Message:
    return Message(
        MessageKind.BUG_REPORT,
        BOARD_TITLE,
        "Clients are complaining about a problem with the software. "
        "This is crippling our image. Please fix it as soon as possible.",
    )


def feature_requested() -> Message:
    return Message(
        MessageKind.FEATURE_REQUEST,
        BOARD_TITLE,
        "Our favorite client has requested a feature. "
        "Please be sure to work on it in due time.",
    )


def extra_technical_debt() -> Message:
    return Message(
        MessageKind.TECHNICAL_DEBT,
        "Emergency dev meeting report",
        "Team members have called out that one of the key dependencies is very "
        "outdated, and are having trouble working with this version. "
        "Consider placing more efforts in migrating dependencies.",
    )


def new_human(human: Human) -> Message:
    return Message(
        MessageKind.HIRE,
        BOARD_TITLE,
        f"{human.name} has been hired, and is now part of your development team!",
    )


def tutorial(phase: int) -> Message:
    return Message(MessageKind.TUTORIAL, "Onboarding", tutorial_text(phase), phase=phase)


def end_of_month(report: MonthlyReport) -> Message:
    return Message(
        MessageKind.END_OF_MONTH,
        f"End of Month {report.month}",
        "\n".join(report.lines()),
        report=report,
    )
