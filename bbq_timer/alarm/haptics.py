"""Haptic pulses while an alert is shown."""

import threading
from enum import Enum
from typing import Optional

from apscheduler.jobstores.base import JobLookupError

from .hardware import HapticMotor
from ..config import DEBUG, HAPTIC_INTERVAL


class PulseIntensity(str, Enum):
    STRONG = "strong"
    MEDIUM = "medium"

    @property
    def strength(self) -> float:
        return 1.0 if self is PulseIntensity.STRONG else 0.6


class HapticPulseScheduler:
    """
    Alternating strong/medium pulses every ``interval`` seconds.

    One pulse fires immediately on start. The counter is incremented before
    each pulse: even counts are strong, odd counts medium, so the sequence
    is medium, strong, medium, ...
    """

    def __init__(self, name: str, scheduler, motor: Optional[HapticMotor] = None,
                 interval: float = HAPTIC_INTERVAL):
        self.name = name
        self.job_id = f"haptics_{name}"
        self.interval = interval
        self.counter = 0
        self.running = False
        self._scheduler = scheduler
        self._motor = motor or HapticMotor()
        self._lock = threading.Lock()

    def start(self):
        """Start pulsing. No-op if already running (cadence phase is kept)."""
        with self._lock:
            if self.running:
                return
            self.running = True

            self._fire()
            self._scheduler.add_job(
                self._pulse,
                "interval",
                seconds=self.interval,
                id=self.job_id,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
        if DEBUG:
            print(f"[Haptics] {self.name}: started")

    def stop(self):
        """Cancel the recurring pulse and reset the counter."""
        with self._lock:
            if not self.running:
                return
            self.running = False
            self.counter = 0

            try:
                self._scheduler.remove_job(self.job_id)
            except JobLookupError:
                pass  # Job might not exist
        if DEBUG:
            print(f"[Haptics] {self.name}: stopped")

    def _pulse(self) -> Optional[PulseIntensity]:
        """Scheduled pulse; ignored once stopped."""
        with self._lock:
            if not self.running:
                return None
            return self._fire()

    def _fire(self) -> PulseIntensity:
        self.counter += 1
        intensity = PulseIntensity.STRONG if self.counter % 2 == 0 else PulseIntensity.MEDIUM
        self._motor.pulse(intensity.strength)
        return intensity
