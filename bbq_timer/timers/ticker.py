"""Steady one-second tick shared by every running countdown."""

import threading

from apscheduler.jobstores.base import JobLookupError

from ..config import DEBUG, TICK_INTERVAL

TICK_JOB_ID = "clock_tick"


class ClockTicker:
    """Fans each tick out to the subscribed timers, in slot order."""

    def __init__(self, scheduler, interval: float = TICK_INTERVAL):
        self.interval = interval
        self._scheduler = scheduler
        self._subscribers = []
        self._lock = threading.Lock()

    def subscribe(self, timer):
        with self._lock:
            if timer not in self._subscribers:
                self._subscribers.append(timer)

    def unsubscribe(self, timer):
        with self._lock:
            if timer in self._subscribers:
                self._subscribers.remove(timer)

    @property
    def subscribers(self) -> list:
        with self._lock:
            return sorted(self._subscribers, key=lambda t: t.order)

    def start(self):
        self._scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.interval,
            id=TICK_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        print("[Timer] Clock ticker started")

    def stop(self):
        try:
            self._scheduler.remove_job(TICK_JOB_ID)
        except JobLookupError:
            pass  # Job might not exist

    def tick(self):
        """Deliver one tick to every subscribed timer."""
        for timer in self.subscribers:
            try:
                timer.tick()
            except Exception as e:
                print(f"[Timer] Error ticking {timer.name}: {e}")
                if DEBUG:
                    import traceback
                    traceback.print_exc()
