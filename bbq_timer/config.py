"""Configuration for the BBQ timer service."""

import os
from pathlib import Path

from . import PROJECT_DIR

# Private storage (settings, custom sound library)
DATA_DIR = Path(os.environ.get("BBQ_TIMER_DATA_DIR", PROJECT_DIR / "data"))
SETTINGS_FILE = DATA_DIR / "settings.json"
CUSTOM_SOUNDS_FILE = DATA_DIR / "custom_sounds.json"
CUSTOM_SOUNDS_DIR = DATA_DIR / "custom_sounds"
USER_SOUNDS_DIR = DATA_DIR / "sounds"  # extra location searched for bundled files
MODELS_DIR = Path(os.environ.get("BBQ_TIMER_MODELS_DIR", PROJECT_DIR / "models"))

# Timing (seconds)
TICK_INTERVAL = 1.0
HAPTIC_INTERVAL = 1.5
HAPTIC_PULSE_LENGTH = 0.15
ANNOUNCEMENT_DELAY = float(os.environ.get("BBQ_TIMER_ANNOUNCEMENT_DELAY", "1.0"))
SYSTEM_SOUND_COMPLETION_DELAY = 3.0  # most system sounds are shorter than this
DIAGNOSTIC_DELAY = 2.0

# Entitlements - additional timer slots beyond the two permanent ones
FREE_ADDITIONAL_TIMERS = 1
PREMIUM_ADDITIONAL_TIMERS = os.environ.get("BBQ_TIMER_PREMIUM_TIMER_LIMIT", None)  # None = uncapped
if PREMIUM_ADDITIONAL_TIMERS is not None:
    PREMIUM_ADDITIONAL_TIMERS = int(PREMIUM_ADDITIONAL_TIMERS)

# External programs
MPV_COMMAND = os.environ.get("BBQ_TIMER_MPV", "mpv")
SYSTEM_SOUND_COMMAND = "canberra-gtk-play"
AMIXER_COMMAND = "amixer"
PACTL_COMMAND = "pactl"
PIPER_COMMAND = "piper"
APLAY_COMMAND = "aplay"

# Piper TTS voices: <PIPER_VOICES_DIR>/<voice id>.onnx (+ .onnx.json)
PIPER_VOICES_DIR = MODELS_DIR / "piper"
DEFAULT_VOICE_ID = os.environ.get("BBQ_TIMER_VOICE", "en_US-bryce-medium")
VOICE_LANGUAGE = "en"

# GPIO (BCM numbering)
BUTTON_GPIO = 17
HAPTIC_GPIO = 18

# Control surface
WEB_HOST = os.environ.get("BBQ_TIMER_HOST", "0.0.0.0")
WEB_PORT = int(os.environ.get("BBQ_TIMER_PORT", "5050"))

# Debug settings
DEBUG = os.environ.get("BBQ_TIMER_DEBUG", "0") == "1"
