"""Speak a completion message when a timer expires."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from .audio_route import headphones_connected
from .tts import TextToSpeech, resolve_voice
from ..config import ANNOUNCEMENT_DELAY, DEBUG
from ..settings import Settings


class VoiceAnnouncer:
    """
    Decides whether to announce a finished timer and speaks it after a delay.

    Checks, in order: sound and voice announcements enabled, then (if set)
    headphones connected. A failed check is a normal skip. Each
    announcement builds its own ``TextToSpeech`` instance.
    """

    def __init__(self, settings: Settings, scheduler,
                 headphone_check: Callable[[], bool] = headphones_connected,
                 tts_factory: Callable[[Path], TextToSpeech] = TextToSpeech,
                 delay: float = ANNOUNCEMENT_DELAY,
                 voices_dir: Optional[Path] = None):
        self.settings = settings
        self.delay = delay
        self.voices_dir = voices_dir
        self._scheduler = scheduler
        self._headphone_check = headphone_check
        self._tts_factory = tts_factory

    def compose_message(self, timer_name: str) -> str:
        return self.settings.custom_announcement_message or f"{timer_name} timer is complete."

    def announce_completion(self, timer_name: str) -> bool:
        """
        Schedule the announcement for ``timer_name``.

        Returns True if it was scheduled, False if a precondition skipped it.
        """
        if not (self.settings.sound_enabled and self.settings.voice_announcements_enabled):
            if DEBUG:
                print(f"[Voice] Announcements off, skipping '{timer_name}'")
            return False

        if self.settings.announce_only_with_headphones and not self._headphone_check():
            print(f"[Voice] No headphones connected, skipping announcement for '{timer_name}'")
            return False

        message = self.compose_message(timer_name)
        # Let the alert sound start first
        self._scheduler.add_job(
            self._speak,
            "date",
            run_date=datetime.now() + timedelta(seconds=self.delay),
            args=[message],
        )
        return True

    def _speak(self, message: str) -> bool:
        voice = resolve_voice(self.settings.selected_voice_id, voices_dir=self.voices_dir)
        if voice is None:
            print("[Voice] No voices installed, cannot announce")
            return False

        try:
            tts = self._tts_factory(voice.model_path)
        except FileNotFoundError as e:
            print(f"[Voice] {e}")
            return False

        print(f"[Voice] Announcing: {message}")
        return tts.speak(message)
