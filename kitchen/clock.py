"""Virtual game clock.

Every timestamp in the engine comes from one :class:`GameClock`.  The
clock only moves when :meth:`GameClock.advance` is called (the game loop
feeds it the real frame time), so pausing is just "stop advancing" and
tests can step time exactly.
"""
from __future__ import annotations


class GameClock:
    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._paused = False

    def now(self) -> float:
        return self._now

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def advance(self, dt: float) -> float:
        """Move time forward by ``dt`` seconds unless paused. Returns the new time."""
        if not self._paused and dt > 0:
            self._now += dt
        return self._now

    def reset(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._paused = False
