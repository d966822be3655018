"""Onboarding script.

The tutorial is a phase counter stored in the world state. The world
advances it when the player performs the expected actions; this module
holds what the host does when a tutorial message is acknowledged, and the
text of every phase.
"""
from __future__ import annotations

from dataclasses import dataclass

from sprint_master.requests import AddTask, AdvanceTutorial, Request
from sprint_master.task import TaskBuilder
from sprint_master.types import TaskKind

GUY_NAME = "Guy"
GUY_COLOR = "#333"
GUY_EXPERIENCE = 126

# advancing into this phase brings the scripted developer in
GUY_PHASE = 11
# phase from which the player may devise tasks again
INGESTION_PHASE = 12
CLOSING_PHASE = 13

# delay before the first message of a fresh tutorial
START_DELAY_MS = 700


@dataclass(frozen=True)
class FollowUp:
    """A request the host submits some time after a message is acknowledged."""

    delay_ms: int
    request: Request


_FOLLOW_UPS: dict[int, tuple[FollowUp, ...]] = {
    1: (FollowUp(0, AdvanceTutorial()),),
    2: (FollowUp(0, AdvanceTutorial()),),
    3: (
        FollowUp(750, AddTask(TaskBuilder("Easy task", TaskKind.NORMAL, 5, 2))),
        FollowUp(750 + 600, AdvanceTutorial()),
    ),
    9: (
        FollowUp(2_800, AddTask(TaskBuilder("Bug!", TaskKind.BUG, 2, 4))),
        FollowUp(2_800 + 600, AdvanceTutorial()),
    ),
    11: (
        FollowUp(20_000, AddTask(TaskBuilder("Refactor stuff", TaskKind.CHORE, 0, 3))),
        FollowUp(21_000, AdvanceTutorial()),
    ),
}

_TEXT: dict[int, str] = {
    1: "Hey there! So I heard you are going to replace me as the next development "
       "lead next month. I'll give you an overview of the code base and explain how "
       "to coordinate a team once you have more developers involved.",
    2: "Behind me is the workboard that the company is using to keep track of tasks "
       "and understand how much progress has been done in them. There are five "
       "stages every task must go through, in this order: Backlog, Sprint candidate, "
       "In progress, Under review and Done.",
    3: "Let's get our hands dirty. I just received a request for an easy, but "
       "definitely game-changing feature. This is a good first task for you! Here, "
       "let me file a ticket with the main idea real quick.",
    4: "Here it is. You will find the ticket with a unique ID in the Backlog. But "
       "note that this is a stub. Before we start working on it, we need to nail "
       "down the requirements. To prepare the task, move it onto the next column, "
       "Sprint candidate.",
    5: "This would be the part where you delegate someone to work on it, by "
       "assigning the task to someone. This time, you'll be the one writing some "
       "code. Assign this task to yourself, then move it to the next stage, In "
       "progress.",
    6: "Once done, we can merge these changes or review them first. Move the task "
       "to the next stage, Under review, and let it stay there for a while. Use the "
       "speed controls if time is running slowly, or pause the game when you're "
       "under pressure!",
    7: "You're most likely to find bugs than not, so don't worry. There is still "
       "time to fix it. Move it back to In progress and rework on it.",
    8: "You can perform as many review iterations as you like. The more time you "
       "review, the higher the chances of finding more bugs! Move the task to Done "
       "when you no longer intend to work on it.",
    9: "Each task has a score representing its overall impact on the product. Merge "
       "more of these tasks each month to increase your score! In your spare time, "
       "you will think of other things to work on and write them down as stubs.",
    10: "Ah, you stumbled upon a bug while playing around with the software! Bug "
        "tasks do not yield as many points, but will improve the quality and image "
        "towards our clients.",
    11: "I will work alongside you as a developer for the rest of the month. You can "
        "either give me tasks to code for, or let me review your own code. Peer "
        "review is generally better: it is easier for other developers to discover "
        "certain bugs.",
    12: "You have just created a chore task. Chores do not contribute to your score, "
        "but they help to keep the code maintainable.",
    13: "I don't have much time left in the team. You can't work on task "
        "specification or task ingestion while also coding or reviewing, so delegate "
        "those as much as you can. Deliver features on time, otherwise you'll get "
        "penalties. Working and merging fast will increase the complexity of the "
        "software and make future tasks harder. Best wishes!",
}


def tutorial_text(phase: int) -> str:
    return _TEXT.get(phase, "")


def follow_ups(phase: int) -> tuple[FollowUp, ...]:
    """Requests to submit once the message of ``phase`` is acknowledged.

    Phases without follow-ups wait for the player to act on the board.
    """
    return _FOLLOW_UPS.get(phase, ())
