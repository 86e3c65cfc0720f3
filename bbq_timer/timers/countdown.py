"""Countdown state machine with a companion elapsed-time counter."""

import threading
from enum import Enum
from typing import Callable, Optional


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"


def format_time(seconds: int) -> str:
    """125 -> '02:05', 3725 -> '01:02:05'."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class CountdownTimer:
    """
    One-second countdown.

    Each tick while running either moves one second from ``remaining`` to
    ``elapsed`` or, when nothing remains, stops the timer and reports expiry
    exactly once. Ticks come from a ``ClockTicker``; the timer subscribes
    when started and unsubscribes when it stops.
    """

    def __init__(self, timer_id: str, name: str, ticker=None, order: int = 0,
                 on_expired: Optional[Callable[["CountdownTimer"], None]] = None):
        self.id = timer_id
        self.name = name
        self.order = order
        self.on_expired = on_expired
        self.remaining = 0
        self.elapsed = 0
        self.state = TimerState.IDLE
        self._ticker = ticker
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self.state == TimerState.RUNNING

    def start(self):
        """Start (or restart) counting from the current remaining time."""
        with self._lock:
            self.state = TimerState.RUNNING
        if self._ticker is not None:
            self._ticker.subscribe(self)

    def stop(self):
        with self._lock:
            if self.state == TimerState.RUNNING:
                self.state = TimerState.IDLE
        self._unsubscribe()

    def toggle(self):
        if self.running:
            self.stop()
        else:
            self.start()

    def reset(self):
        """Stop and zero both counters."""
        with self._lock:
            self.state = TimerState.IDLE
            self.remaining = 0
            self.elapsed = 0
        self._unsubscribe()

    def reset_elapsed(self):
        with self._lock:
            self.elapsed = 0

    def reset_interval(self):
        """Zero the countdown without sounding an alert; elapsed is kept."""
        with self._lock:
            self.state = TimerState.IDLE
            self.remaining = 0
        self._unsubscribe()

    def set_interval(self, seconds: int):
        """Load a countdown without starting it."""
        seconds = _validate_seconds(seconds)
        with self._lock:
            self.remaining = seconds
            if self.state == TimerState.EXPIRED:
                self.state = TimerState.IDLE

    def select_preset(self, seconds: int):
        """Load ``seconds``, zero elapsed and start."""
        seconds = _validate_seconds(seconds)
        with self._lock:
            self.remaining = seconds
            self.elapsed = 0
        self.start()

    def tick(self) -> bool:
        """Advance one second. Returns True if the timer expired on this tick."""
        with self._lock:
            if self.state != TimerState.RUNNING:
                return False
            if self.remaining > 0:
                self.remaining -= 1
                self.elapsed += 1
                return False
            self.state = TimerState.EXPIRED

        self._unsubscribe()
        if self.on_expired is not None:
            self.on_expired(self)
        return True

    def _unsubscribe(self):
        if self._ticker is not None:
            self._ticker.unsubscribe(self)

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "id": self.id,
                "name": self.name,
                "state": self.state.value,
                "running": self.state == TimerState.RUNNING,
                "remaining": self.remaining,
                "elapsed": self.elapsed,
                "remaining_formatted": format_time(self.remaining),
                "elapsed_formatted": format_time(self.elapsed),
            }


def _validate_seconds(seconds) -> int:
    seconds = int(seconds)
    if seconds < 0:
        raise ValueError("Duration cannot be negative")
    return seconds
