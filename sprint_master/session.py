"""Game - owns a world, its reactor, the request queue and tick pacing."""
from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

from sprint_master import messages
from sprint_master.clock import GameClock, GameSpeed
from sprint_master.config import DEFAULT_CONFIG, GameConfig
from sprint_master.messages import Message, MessageKind
from sprint_master.outcomes import EndOfMonth, OpenMessage, Outcome, Update
from sprint_master.reactor import EventReactor
from sprint_master.requests import AdvanceTutorial, NextMonth, Request, Tick
from sprint_master.storage import JsonFileStore, MemoryStore
from sprint_master.tutorial import START_DELAY_MS, follow_ups
from sprint_master.types import PersistenceError, SnapshotError
from sprint_master.world import WorldState

logger = logging.getLogger(__name__)

_SNAPSHOT_VERSION = 1

Store = JsonFileStore | MemoryStore


@dataclass
class ScheduledRequest:
    """One-shot countdown. Submitted when remaining reaches 0."""

    remaining: int
    request: Request


class Game:
    """A running game session.

    Requests are queued and applied one at a time, in submission order;
    a request submitted while another is being applied waits for it.
    Messages pause tick delivery until acknowledged.
    """

    def __init__(
        self,
        state: WorldState,
        reactor: EventReactor | None = None,
        seed: int | None = None,
        store: Store | None = None,
    ) -> None:
        self._state = state
        if reactor is None:
            reactor = EventReactor(seed, state.config)
        self._reactor = reactor
        self._clock = GameClock(state.config.base_milliseconds_per_tick)
        self._store = store
        self._pending: deque[Request] = deque()
        self._scheduled: list[ScheduledRequest] = []
        self._message: Message | None = None
        self._processing = False
        self._stop_requested = False

    @classmethod
    def new(
        cls,
        product_name: str,
        tutorial: bool = False,
        seed: int | None = None,
        store: Store | None = None,
        config: GameConfig = DEFAULT_CONFIG,
    ) -> Game:
        game = cls(WorldState.new(product_name, tutorial, config), seed=seed, store=store)
        if store is not None:
            game.save()
        if tutorial:
            # bring the tutorial in after a small while
            game.schedule(AdvanceTutorial(), game.clock.ticks_for(START_DELAY_MS))
        game.clock.start()
        return game

    @classmethod
    def load(cls, store: Store, config: GameConfig = DEFAULT_CONFIG) -> Game:
        """Continue the game saved in ``store``."""
        data = store.load()
        if data is None:
            raise PersistenceError("No saved game to continue")
        game = cls(WorldState("", config), store=store)
        game.restore(data)
        game.clock.start()
        return game

    @property
    def state(self) -> WorldState:
        return self._state

    @property
    def reactor(self) -> EventReactor:
        return self._reactor

    @property
    def clock(self) -> GameClock:
        return self._clock

    @property
    def message(self) -> Message | None:
        """The message currently shown to the player, if any."""
        return self._message

    # --- Requests ---

    def submit(self, request: Request) -> None:
        """Queue a request. Safe to call while another is being applied."""
        self._pending.append(request)

    def schedule(self, request: Request, ticks: int) -> None:
        """Submit ``request`` after ``ticks`` delivered ticks."""
        if ticks <= 0:
            self.submit(request)
        else:
            self._scheduled.append(ScheduledRequest(ticks, request))

    def pending(self) -> int:
        return len(self._pending)

    def process(self) -> list[tuple[Request, Outcome]]:
        """Apply all queued requests. Returns ``[(request, outcome), ...]``."""
        if self._processing:
            return []
        self._processing = True
        results: list[tuple[Request, Outcome]] = []
        try:
            while self._pending:
                request = self._pending.popleft()
                outcome = self._state.apply(request, self._reactor)
                if isinstance(request, Tick):
                    self._advance_scheduled()
                self._present(outcome)
                results.append((request, outcome))
        finally:
            self._processing = False
        return results

    def dispatch(self, request: Request) -> Outcome:
        """Submit a request and process the queue. Returns its outcome."""
        self.submit(request)
        for done, outcome in self.process():
            if done is request:
                return outcome
        raise RuntimeError("dispatch called while the queue is being processed")

    def _advance_scheduled(self) -> None:
        due: list[ScheduledRequest] = []
        for entry in self._scheduled:
            entry.remaining -= 1
            if entry.remaining <= 0:
                due.append(entry)
        for entry in due:
            self._scheduled.remove(entry)
            self.submit(entry.request)

    def _present(self, outcome: Outcome) -> None:
        if isinstance(outcome, OpenMessage):
            self._message = outcome.message
            self._clock.pause()
        elif isinstance(outcome, EndOfMonth):
            self._message = messages.end_of_month(outcome.report)
            self._clock.pause()

    def acknowledge(self) -> list[tuple[Request, Outcome]]:
        """Close the current message and resume the game.

        Closing an end-of-month report commits the month rollover and
        saves the game; closing a tutorial message runs its follow-ups.
        """
        message = self._message
        if message is None:
            return []
        self._message = None

        if message.kind is MessageKind.END_OF_MONTH:
            self.submit(NextMonth())
        elif message.kind is MessageKind.TUTORIAL and message.phase is not None:
            for follow_up in follow_ups(message.phase):
                self.schedule(follow_up.request, self._clock.ticks_for(follow_up.delay_ms))

        self._clock.start()
        results = self.process()
        if self._store is not None and any(
            isinstance(req, NextMonth) and isinstance(out, Update) for req, out in results
        ):
            self.save()
        return results

    # --- Time ---

    def pause(self) -> None:
        self._clock.pause()

    def resume(self) -> None:
        if self._message is None:
            self._clock.start()

    def set_speed(self, speed: GameSpeed) -> None:
        if speed is not self._clock.current_speed:
            self._clock.set_speed(speed)
            logger.debug("game speed set to %s", speed.value)

    def step(self) -> list[tuple[Request, Outcome]]:
        """Deliver a single tick, then anything it caused to be queued."""
        self.submit(Tick())
        return self.process()

    def run(self, n: int) -> list[tuple[Request, Outcome]]:
        """Deliver up to ``n`` ticks. Stops early when the game pauses."""
        results: list[tuple[Request, Outcome]] = []
        for _ in range(n):
            if not self._clock.running:
                break
            results.extend(self.step())
        return results

    def request_stop(self) -> None:
        self._stop_requested = True

    def run_forever(self, on_message: Callable[[Game, Message], None] | None = None) -> None:
        """Deliver ticks in real time at the current speed until stopped.

        While a message is open, ``on_message`` is called with it instead;
        it is expected to acknowledge it or request a stop.
        """
        self._stop_requested = False
        while not self._stop_requested:
            start = time.monotonic()
            if self._clock.running:
                self.step()
            elif self._message is not None and on_message is not None:
                on_message(self, self._message)
                continue
            else:
                self.process()
            sleep_time = self._clock.interval - (time.monotonic() - start)
            if sleep_time > 0:
                time.sleep(sleep_time)

    # --- Persistence ---

    def save(self) -> None:
        if self._store is None:
            raise PersistenceError("No store attached to this game")
        self._store.save(self.snapshot())

    def snapshot(self) -> dict[str, Any]:
        reactor = self._reactor.snapshot()
        return {
            "version": _SNAPSHOT_VERSION,
            "seed": reactor["seed"],
            "rng_state": reactor["rng_state"],
            "world": self._state.snapshot(),
        }

    def restore(self, data: dict[str, Any]) -> None:
        version = data.get("version")
        if version != _SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r}, expected {_SNAPSHOT_VERSION}"
            )
        try:
            world = data["world"]
            rng = {"seed": data["seed"], "rng_state": data["rng_state"]}
            EventReactor(0).restore(rng)
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed snapshot: {exc!r}") from exc
        # validate the world on a scratch instance before touching this game
        WorldState.from_snapshot(world, self._state.config)

        self._state.restore(world)
        self._reactor.restore(rng)
        self._pending.clear()
        self._scheduled.clear()
        self._message = None
