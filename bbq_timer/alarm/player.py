"""Alert sound player using mpv, with canberra for system sounds."""

import subprocess
import threading
from enum import Enum
from typing import Callable, Optional

from .resolver import ResolvedSound
from ..config import (
    AMIXER_COMMAND, DEBUG, MPV_COMMAND, SYSTEM_SOUND_COMMAND, SYSTEM_SOUND_COMPLETION_DELAY,
)


class PlaybackOutcome(str, Enum):
    FINISHED = "finished"
    STOPPED = "stopped"
    FAILED = "failed"


class AudioSessionError(Exception):
    """The output device could not be claimed or released."""


class AudioSession:
    """
    Claims the master output while an alert plays.

    Activating unmutes the master channel; deactivating restores the mute
    if it was muted before, handing the output back to the rest of the
    system.
    """

    def __init__(self):
        self.active = False
        self._restore_mute = False

    def _amixer(self, *args: str) -> str:
        try:
            result = subprocess.run(
                [AMIXER_COMMAND, *args],
                capture_output=True,
                text=True,
                timeout=2,
            )
        except FileNotFoundError:
            raise AudioSessionError(f"{AMIXER_COMMAND} not installed")
        except subprocess.TimeoutExpired:
            raise AudioSessionError(f"{AMIXER_COMMAND} timed out")

        if result.returncode != 0:
            raise AudioSessionError(result.stderr.strip() or f"{AMIXER_COMMAND} exited {result.returncode}")
        return result.stdout

    def activate(self):
        if self.active:
            return
        muted = "[off]" in self._amixer("get", "Master")
        if muted:
            self._amixer("set", "Master", "unmute")
        self._restore_mute = muted
        self.active = True

    def deactivate(self):
        if not self.active:
            return
        self.active = False
        if self._restore_mute:
            self._restore_mute = False
            self._amixer("set", "Master", "mute")


class Playback:
    """A single ``play()`` call. Its completion callback fires exactly once."""

    def __init__(self, sound: ResolvedSound, loop: bool,
                 on_complete: Optional[Callable[[PlaybackOutcome], None]] = None):
        self.sound = sound
        self.loop = loop
        self.process: Optional[subprocess.Popen] = None
        self.timer: Optional[threading.Timer] = None
        self.stopped = False
        self.outcome: Optional[PlaybackOutcome] = None
        self._on_complete = on_complete
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def finish(self, outcome: PlaybackOutcome) -> bool:
        with self._lock:
            if self.outcome is not None:
                return False
            self.outcome = outcome

        if DEBUG:
            print(f"[Alarm] Playback of '{self.sound.name}' {outcome.value}")
        if self._on_complete is not None:
            try:
                self._on_complete(outcome)
            except Exception as e:
                print(f"[Alarm] Error in playback completion handler: {e}")
        return True


class AudioPlayer:
    """
    Plays one alert sound at a time.

    Starting a playback always stops the previous one first. File sounds
    loop natively through mpv; system sounds play once and report
    completion after a fixed delay.
    """

    def __init__(self, session: Optional[AudioSession] = None,
                 system_completion_delay: float = SYSTEM_SOUND_COMPLETION_DELAY):
        self.session = session or AudioSession()
        self.system_completion_delay = system_completion_delay
        self._current: Optional[Playback] = None
        self._lock = threading.RLock()

    def play(self, sound: ResolvedSound, loop: bool = False,
             on_complete: Optional[Callable[[PlaybackOutcome], None]] = None) -> bool:
        """
        Play ``sound``, optionally looping until stopped.

        Returns True if playback started, False on error. ``on_complete`` is
        called exactly once with the outcome, including on failure.
        """
        print(f"[Alarm] Playing '{sound.name}' ({sound.tier.value}), loop: {loop}")
        playback = Playback(sound, loop, on_complete)

        with self._lock:
            self._stop_current()

            try:
                self.session.activate()
            except AudioSessionError as e:
                print(f"[Alarm] Error activating audio session: {e}")

            if sound.can_loop:
                started = self._start_file(playback)
            else:
                started = self._start_system(playback)

            if started:
                self._current = playback

        if not started:
            playback.finish(PlaybackOutcome.FAILED)
        return started

    def _start_file(self, playback: Playback) -> bool:
        try:
            playback.process = subprocess.Popen(
                [
                    MPV_COMMAND,
                    "--no-video",
                    "--really-quiet",
                    f"--loop-file={'inf' if playback.loop else 'no'}",
                    "--",  # End of options
                    str(playback.sound.path),
                ],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            print(f"[Alarm] Error: {MPV_COMMAND} not installed. Run: sudo apt install mpv")
            return False
        except OSError as e:
            print(f"[Alarm] Error starting playback: {e}")
            return False

        watcher = threading.Thread(target=self._watch, args=(playback,), daemon=True)
        watcher.start()
        return True

    def _start_system(self, playback: Playback) -> bool:
        sound = playback.sound.system_sound
        if playback.loop:
            print(f"[Alarm] System sound '{sound.value}' cannot loop, playing once")
        try:
            playback.process = subprocess.Popen(
                [SYSTEM_SOUND_COMMAND, f"--id={sound.value}"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            print(f"[Alarm] Error: {SYSTEM_SOUND_COMMAND} not installed. Run: sudo apt install gnome-session-canberra")
            return False
        except OSError as e:
            print(f"[Alarm] Error playing system sound: {e}")
            return False

        # No completion notification for theme sounds; approximate it
        playback.timer = threading.Timer(
            self.system_completion_delay, self._system_sound_done, args=(playback,)
        )
        playback.timer.daemon = True
        playback.timer.start()
        return True

    def _watch(self, playback: Playback):
        """Wait for mpv to exit and report how it ended."""
        returncode = playback.process.wait()

        with self._lock:
            if self._current is playback:
                self._current = None

        if playback.stopped:
            playback.finish(PlaybackOutcome.STOPPED)
        elif returncode == 0:
            playback.finish(PlaybackOutcome.FINISHED)
        else:
            print(f"[Alarm] Could not play '{playback.sound.name}' (mpv exit code {returncode})")
            playback.finish(PlaybackOutcome.FAILED)

    def _system_sound_done(self, playback: Playback):
        with self._lock:
            if self._current is playback:
                self._current = None

        process = playback.process
        if process is not None and process.poll() is None:
            # Outlived the estimate; reap it once it exits
            threading.Thread(target=process.wait, daemon=True).start()
        if not playback.stopped:
            playback.finish(PlaybackOutcome.FINISHED)

    def _stop_current(self) -> Optional[Playback]:
        playback = self._current
        self._current = None
        if playback is None:
            return None

        playback.stopped = True
        if playback.timer is not None:
            playback.timer.cancel()

        process = playback.process
        if process is not None and process.poll() is None:
            try:
                # Send SIGTERM for graceful shutdown
                process.terminate()
                process.wait(timeout=2)
            except subprocess.TimeoutExpired:
                # Force kill if it doesn't respond
                process.kill()
                process.wait()
            except OSError as e:
                print(f"[Alarm] Error stopping playback: {e}")

        playback.finish(PlaybackOutcome.STOPPED)
        return playback

    def stop(self) -> bool:
        """
        Stop current playback and release the audio session.

        Safe to call when nothing is playing. Returns True if something was
        stopped.
        """
        with self._lock:
            playback = self._stop_current()
            try:
                self.session.deactivate()
            except AudioSessionError as e:
                print(f"[Alarm] Error deactivating audio session: {e}")

        if playback is not None:
            print("[Alarm] Playback stopped")
        return playback is not None

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._current is not None

    @property
    def current_sound(self) -> Optional[ResolvedSound]:
        with self._lock:
            return self._current.sound if self._current is not None else None
