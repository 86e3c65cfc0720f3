"""Ties timer expiry to the alert pipeline: sound, haptics and voice."""

import threading
import uuid
from enum import Enum
from typing import Optional

from .countdown import CountdownTimer
from ..alarm.haptics import HapticPulseScheduler
from ..alarm.player import AudioPlayer, PlaybackOutcome
from ..alarm.resolver import AlertSoundResolver, ResolvedSound
from ..config import FREE_ADDITIONAL_TIMERS, PREMIUM_ADDITIONAL_TIMERS
from ..settings import PERMANENT_TIMER_IDS, Settings, SoundTier
from ..voice.announcer import VoiceAnnouncer

PREHEAT_ID = "preheat"
PREHEAT_NAME = "Preheat"


class AlertContext(str, Enum):
    INTERVAL = "interval"
    PREHEAT = "preheat"


class UnknownTimerError(KeyError):
    pass


class TimerLimitReached(Exception):
    pass


class PermanentTimerError(Exception):
    pass


class AlertPresentation:
    """The shown/hidden state of one alert context and its haptic cadence."""

    def __init__(self, context: AlertContext, haptics: HapticPulseScheduler):
        self.context = context
        self.haptics = haptics
        self.presented = False
        self.timer_name: Optional[str] = None
        self._lock = threading.Lock()

    def set_presented(self, presented: bool, haptics: bool = True, timer_name: Optional[str] = None) -> bool:
        """Update the flag and start/stop haptics in the same step. Returns the old flag."""
        with self._lock:
            was_presented = self.presented
            self.presented = presented
            if presented:
                self.timer_name = timer_name
                if haptics:
                    self.haptics.start()
            else:
                self.timer_name = None
                self.haptics.stop()
        return was_presented

    def to_dict(self) -> dict:
        return {
            "context": self.context.value,
            "presented": self.presented,
            "timer_name": self.timer_name,
            "haptics_running": self.haptics.running,
        }


class TimerOrchestrator:
    """
    Owns every countdown and the alert presentation state.

    On expiry: play the resolved sound looped (if sound is on), present the
    alert for the matching context (haptics if enabled) and ask the
    announcer to speak. Dismissing a context stops its sound and haptics;
    speech already in progress is left to finish.
    """

    def __init__(self, settings: Settings, resolver: AlertSoundResolver, player: AudioPlayer,
                 announcer: VoiceAnnouncer, scheduler, ticker=None, motor=None):
        self.settings = settings
        self.resolver = resolver
        self.player = player
        self.announcer = announcer
        self.ticker = ticker
        self._scheduler = scheduler
        self.slots: dict[str, CountdownTimer] = {}
        self.alerts = {
            context: AlertPresentation(context, HapticPulseScheduler(context.value, scheduler, motor))
            for context in AlertContext
        }
        self._sound_owner: Optional[AlertContext] = None
        self._lock = threading.RLock()

        for slot_id in PERMANENT_TIMER_IDS:
            self._add_slot(slot_id, settings.get_timer_name(slot_id))
        for timer in settings.additional_timers:
            self._add_slot(timer["id"], timer["name"])

        self.preheat = CountdownTimer(
            PREHEAT_ID, PREHEAT_NAME, ticker=ticker, order=len(PERMANENT_TIMER_IDS) + 1000,
            on_expired=self._on_preheat_expired,
        )

    def _add_slot(self, slot_id: str, name: str) -> CountdownTimer:
        timer = CountdownTimer(
            slot_id, name, ticker=self.ticker, order=len(self.slots),
            on_expired=self._on_interval_expired,
        )
        self.slots[slot_id] = timer
        return timer

    # --- Timer slots ---------------------------------------------------

    def get_slot(self, slot_id: str) -> CountdownTimer:
        with self._lock:
            try:
                return self.slots[slot_id]
            except KeyError:
                raise UnknownTimerError(slot_id)

    def select_preset(self, slot_id: str, index: int) -> CountdownTimer:
        """Load preset 1 or 2 of the slot, zero elapsed and start."""
        if index not in (1, 2):
            raise ValueError(f"Preset index must be 1 or 2, got {index}")
        timer = self.get_slot(slot_id)
        seconds = self.settings.get_presets(slot_id)[index - 1]
        timer.select_preset(seconds)
        print(f"[Timer] {timer.name}: preset {index} ({seconds}s) started")
        return timer

    def start_preheat(self) -> CountdownTimer:
        self.preheat.select_preset(self.settings.preheat_duration)
        print(f"[Timer] Preheat started ({self.settings.preheat_duration}s)")
        return self.preheat

    def additional_timer_limit(self) -> Optional[int]:
        """How many timers beyond the permanent two are allowed (None = no cap)."""
        return PREMIUM_ADDITIONAL_TIMERS if self.settings.is_premium else FREE_ADDITIONAL_TIMERS

    def add_timer(self, name: str, preset1: int = 300, preset2: int = 600) -> CountdownTimer:
        name = name.strip()
        if not name:
            raise ValueError("Timer name cannot be empty")
        if int(preset1) < 0 or int(preset2) < 0:
            raise ValueError("Duration cannot be negative")

        with self._lock:
            timers = self.settings.additional_timers
            limit = self.additional_timer_limit()
            if limit is not None and len(timers) >= limit:
                raise TimerLimitReached(f"At most {limit} additional timers allowed")

            slot_id = uuid.uuid4().hex[:12]
            timers.append({"id": slot_id, "name": name, "preset1": int(preset1), "preset2": int(preset2)})
            self.settings.additional_timers = timers
            timer = self._add_slot(slot_id, name)

        print(f"[Timer] Added timer '{name}'")
        return timer

    def remove_timer(self, slot_id: str):
        if slot_id in PERMANENT_TIMER_IDS:
            raise PermanentTimerError(f"{slot_id} cannot be removed")

        with self._lock:
            timer = self.get_slot(slot_id)
            timer.reset()
            del self.slots[slot_id]
            self.settings.additional_timers = [
                t for t in self.settings.additional_timers if t["id"] != slot_id
            ]
        print(f"[Timer] Removed timer '{timer.name}'")

    def rename_timer(self, slot_id: str, name: str) -> CountdownTimer:
        timer = self.get_slot(slot_id)
        self.settings.set_timer_name(slot_id, name)
        timer.name = name.strip()
        return timer

    # --- Expiry pipeline -----------------------------------------------

    def _on_interval_expired(self, timer: CountdownTimer):
        self._schedule_expiry(timer, AlertContext.INTERVAL)

    def _on_preheat_expired(self, timer: CountdownTimer):
        timer.reset_elapsed()
        self._schedule_expiry(timer, AlertContext.PREHEAT)

    def _schedule_expiry(self, timer: CountdownTimer, context: AlertContext):
        # Runs on the clock tick; the headphone check and playback start must not hold it up
        self._scheduler.add_job(
            self._handle_expiry,
            "date",
            args=[timer, context],
            id=f"expiry_{timer.id}",
            replace_existing=True,
            misfire_grace_time=None,
        )

    def _handle_expiry(self, timer: CountdownTimer, context: AlertContext):
        print(f"[Timer] {timer.name} complete")

        if self.settings.sound_enabled:
            try:
                self._play_alert(context)
            except Exception as e:
                print(f"[Alarm] Error starting alert sound: {e}")

        self.alerts[context].set_presented(
            True, haptics=self.settings.haptics_enabled, timer_name=timer.name
        )

        try:
            self.announcer.announce_completion(timer.name)
        except Exception as e:
            print(f"[Voice] Error scheduling announcement: {e}")

    def _play_alert(self, context: AlertContext, below: Optional[SoundTier] = None) -> bool:
        sound = self.resolver.resolve(self.settings, below=below)
        with self._lock:
            self._sound_owner = context
        return self.player.play(
            sound,
            loop=True,
            on_complete=lambda outcome: self._on_playback_complete(context, sound, outcome),
        )

    def _on_playback_complete(self, context: AlertContext, sound: ResolvedSound, outcome: PlaybackOutcome):
        """Retry a lower tier when a file could not be played."""
        if outcome != PlaybackOutcome.FAILED:
            return
        with self._lock:
            if self._sound_owner != context:
                return
        if sound.tier == SoundTier.SYSTEM:
            print("[Alarm] System sound failed, no further fallback")
            return
        print(f"[Alarm] '{sound.name}' failed to play, falling back")
        self._play_alert(context, below=sound.tier)

    # --- Dismiss -------------------------------------------------------

    def dismiss(self, context: AlertContext) -> bool:
        """
        Dismiss one alert context.

        Stops the alert sound if this context started it and stops the
        context's haptics. Returns True if the alert was shown.
        """
        with self._lock:
            owns_sound = self._sound_owner == context
            if owns_sound:
                self._sound_owner = None

        if owns_sound:
            self.player.stop()
        was_presented = self.alerts[context].set_presented(False)
        if was_presented:
            print(f"[Timer] {context.value} alert dismissed")
        return was_presented

    def dismiss_all(self):
        for context in AlertContext:
            self.dismiss(context)

    # --- Lifecycle -----------------------------------------------------

    def shutdown(self):
        if self.ticker is not None:
            self.ticker.stop()
        self.dismiss_all()
        self.player.stop()

    def snapshot(self) -> dict:
        with self._lock:
            slots = list(self.slots.values())
        timers = []
        for timer in slots:
            data = timer.to_dict()
            data["presets"] = list(self.settings.get_presets(timer.id))
            data["permanent"] = timer.id in PERMANENT_TIMER_IDS
            timers.append(data)

        preheat = self.preheat.to_dict()
        preheat["duration"] = self.settings.preheat_duration
        return {
            "timers": timers,
            "preheat": preheat,
            "alerts": {context.value: alert.to_dict() for context, alert in self.alerts.items()},
            "additional_timer_limit": self.additional_timer_limit(),
        }
