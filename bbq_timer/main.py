"""Main entry point for the BBQ timer service."""

import signal
import sys
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from .alarm.diagnostics import run_diagnostic
from .alarm.hardware import HapticMotor, HardwareController
from .alarm.player import AudioPlayer
from .alarm.resolver import AlertSoundResolver
from .alarm.sounds import BundledSoundCatalog, CustomSoundLibrary
from .app import create_app
from .config import BUTTON_GPIO, DEBUG, DIAGNOSTIC_DELAY, HAPTIC_GPIO, WEB_HOST, WEB_PORT
from .settings import Settings
from .timers.orchestrator import TimerOrchestrator
from .timers.ticker import ClockTicker
from .voice.announcer import VoiceAnnouncer

# Global references for the signal handler
_orchestrator: TimerOrchestrator = None
_scheduler: BackgroundScheduler = None
_hardware: HardwareController = None
_motor: HapticMotor = None


def shutdown():
    """Stop alerts, the tick and the hardware. Safe to call more than once."""
    if _orchestrator is not None:
        _orchestrator.shutdown()
    if _hardware is not None:
        _hardware.stop()
    if _motor is not None:
        _motor.close()
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    print("\n[Timer] Shutting down...")
    shutdown()
    sys.exit(0)


def _on_dismiss_button():
    """Callback when the physical dismiss button is pressed."""
    print("[Timer] Dismiss button triggered")
    _orchestrator.dismiss_all()


def build_services(scheduler) -> TimerOrchestrator:
    """Wire the settings, catalogs, player, haptics and announcer together."""
    global _motor

    settings = Settings()
    bundled = BundledSoundCatalog()
    custom = CustomSoundLibrary()
    _motor = HapticMotor(pin=HAPTIC_GPIO)

    return TimerOrchestrator(
        settings=settings,
        resolver=AlertSoundResolver(bundled, custom),
        player=AudioPlayer(),
        announcer=VoiceAnnouncer(settings, scheduler),
        scheduler=scheduler,
        ticker=ClockTicker(scheduler),
        motor=_motor,
    )


def main():
    """Main entry point."""
    global _orchestrator, _scheduler, _hardware

    # Set up signal handlers
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    print("=" * 50)
    print("BBQ Timer Service")
    print("=" * 50)

    _scheduler = BackgroundScheduler(job_defaults={"coalesce": True, "max_instances": 1})
    _orchestrator = build_services(_scheduler)

    settings = _orchestrator.settings
    print(f"Timers: {', '.join(t.name for t in _orchestrator.slots.values())}")
    print(f"Sound: {settings.sound_enabled}, haptics: {settings.haptics_enabled}, "
          f"voice: {settings.voice_announcements_enabled}")
    print(f"Alert sound: {settings.alert_sound.tier.value} / {settings.alert_sound.sound_id}")
    print()

    # Physical dismiss button
    _hardware = HardwareController(on_button_press=_on_dismiss_button, pin=BUTTON_GPIO)
    if _hardware.is_available:
        _hardware.start()
        print(f"Hardware controls active (button: GPIO {BUTTON_GPIO}, haptics: GPIO {HAPTIC_GPIO})")
    else:
        print("Hardware controls not available (software-only mode)")
    print()

    # Report missing sound files once everything has settled
    resolver = _orchestrator.resolver
    _scheduler.add_job(
        run_diagnostic,
        "date",
        run_date=datetime.now() + timedelta(seconds=DIAGNOSTIC_DELAY),
        args=[resolver.bundled, resolver.custom],
        id="sound_diagnostic",
    )

    _scheduler.start()
    _orchestrator.ticker.start()

    print(f"Timer service running on http://{WEB_HOST}:{WEB_PORT}. Press Ctrl+C to stop.")

    app = create_app(_orchestrator)
    try:
        # Reloader would start a second scheduler
        app.run(host=WEB_HOST, port=WEB_PORT, debug=DEBUG, use_reloader=False)
    except KeyboardInterrupt:
        pass
    finally:
        shutdown()


if __name__ == "__main__":
    main()
