from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from models import TimerState

logger = logging.getLogger(__name__)

NO_LIMIT_LABEL = "No Limit"
TIME_LIMIT_PRESETS = (30, 60, 90, 120)

Listener = Callable[["GameTimer"], None]


def format_seconds(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class GameTimer:
    """Shared count-down clock for a game session.

    A limit of 0 means no limit: the clock still counts elapsed time but
    never expires. Ticks are scheduled on the running asyncio loop against
    monotonic deadlines; without a running loop the owner drives ``tick()``.
    """

    def __init__(self, time_limit: int = 0, *, interval: float = 1.0, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.time_limit = max(0, int(time_limit))
        self.remaining = self.time_limit
        self.elapsed = 0
        self.is_running = False
        self.is_expired = False
        self.interval = interval

        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._next_deadline: Optional[float] = None
        self._tick_listeners: List[Listener] = []
        self._expiry_listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def on_tick(self, listener: Listener) -> Callable[[], None]:
        self._tick_listeners.append(listener)
        return lambda: self._discard(self._tick_listeners, listener)

    def on_expired(self, listener: Listener) -> Callable[[], None]:
        self._expiry_listeners.append(listener)
        return lambda: self._discard(self._expiry_listeners, listener)

    @staticmethod
    def _discard(listeners: List[Listener], listener: Listener):
        if listener in listeners:
            listeners.remove(listener)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------
    def set_time_limit(self, seconds: int):
        if seconds < 0:
            logger.warning("Negative time limit %s clamped to 0", seconds)
            seconds = 0
        self.time_limit = int(seconds)
        if not self.is_running:
            self.remaining = self.time_limit
            self.is_expired = False
        elif self.time_limit:
            self.remaining = min(self.remaining, self.time_limit) if self.remaining else self.time_limit

    def start(self):
        if self.is_running or self.is_expired:
            return
        self.is_running = True
        loop = self._resolve_loop()
        if loop is None:
            logger.debug("No running event loop, timer ticks are driven manually")
            return
        self._next_deadline = loop.time() + self.interval
        self._handle = loop.call_at(self._next_deadline, self._on_scheduled_tick)

    def pause(self):
        self._cancel()
        self.is_running = False

    def stop(self):
        self._cancel()
        self.is_running = False
        self.remaining = self.time_limit
        self.elapsed = 0
        self.is_expired = False

    def reset(self):
        self.stop()

    def tick(self):
        """Advance the clock by one second."""
        if not self.is_running:
            return
        self.elapsed += 1
        if self.time_limit > 0:
            self.remaining = max(0, self.remaining - 1)
        for listener in list(self._tick_listeners):
            listener(self)
        if self.time_limit > 0 and self.remaining == 0 and self.is_running:
            self.is_expired = True
            self.pause()
            logger.info("Timer expired after %ss", self.elapsed)
            for listener in list(self._expiry_listeners):
                listener(self)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _resolve_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _on_scheduled_tick(self):
        self._handle = None
        if not self.is_running:
            return
        loop = self._resolve_loop()
        self.tick()
        if self.is_running and loop is not None and self._handle is None:
            self._next_deadline += self.interval
            self._handle = loop.call_at(self._next_deadline, self._on_scheduled_tick)

    def _cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._next_deadline = None

    @property
    def has_pending_tick(self) -> bool:
        return self._handle is not None

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------
    @property
    def formatted_time(self) -> str:
        if self.time_limit > 0:
            return format_seconds(self.remaining)
        return format_seconds(self.elapsed)

    @property
    def formatted_time_limit(self) -> str:
        if self.time_limit <= 0:
            return NO_LIMIT_LABEL
        return format_seconds(self.time_limit)

    def to_state(self) -> TimerState:
        return TimerState(
            timeLimit=self.time_limit,
            remaining=self.remaining,
            elapsed=self.elapsed,
            isRunning=self.is_running,
            isExpired=self.is_expired,
            formattedTime=self.formatted_time,
            formattedTimeLimit=self.formatted_time_limit,
        )
