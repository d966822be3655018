"""Tick delivery cadence: game speed, pause and resume."""
from __future__ import annotations

from enum import Enum


class GameSpeed(str, Enum):
    NORMAL = "normal"
    FAST = "fast"
    FASTER = "faster"

    @property
    def multiplier(self) -> int:
        return {"normal": 1, "fast": 2, "faster": 4}[self.value]


class GameClock:
    """Decides when the next tick is due. Never touches the simulation."""

    def __init__(self, base_milliseconds_per_tick: int = 200) -> None:
        if base_milliseconds_per_tick <= 0:
            raise ValueError("base_milliseconds_per_tick must be positive")
        self._base_ms = base_milliseconds_per_tick
        self._speed = GameSpeed.NORMAL
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def current_speed(self) -> GameSpeed | None:
        """The speed ticks are delivered at, or None while paused."""
        return self._speed if self._running else None

    def milliseconds_per_tick(self, speed: GameSpeed | None = None) -> int:
        speed = speed or self._speed
        return self._base_ms // speed.multiplier

    @property
    def interval(self) -> float:
        """Seconds between ticks at the current speed."""
        return self.milliseconds_per_tick() / 1_000

    def start(self) -> None:
        self._running = True

    def pause(self) -> None:
        self._running = False

    def toggle(self) -> None:
        self._running = not self._running

    def set_speed(self, speed: GameSpeed) -> None:
        """Set the new game speed, unpausing if necessary."""
        self._speed = speed
        self._running = True

    def ticks_for(self, milliseconds: int) -> int:
        """Number of ticks at normal speed covering ``milliseconds``."""
        return -(-milliseconds // self._base_ms)
