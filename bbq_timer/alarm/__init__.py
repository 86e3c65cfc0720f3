"""Alarm module: alert sounds, playback, haptics and hardware controls."""

from .. import BUNDLED_SOUNDS_DIR
from ..config import CUSTOM_SOUNDS_DIR, USER_SOUNDS_DIR

# Candidate locations for bundled sound files, searched in order
BUNDLED_SEARCH_DIRS = [
    BUNDLED_SOUNDS_DIR,
    BUNDLED_SOUNDS_DIR / "Sounds",
    USER_SOUNDS_DIR,
]

MANIFEST_NAME = "sound_metadata.json"

__all__ = ["BUNDLED_SEARCH_DIRS", "CUSTOM_SOUNDS_DIR", "MANIFEST_NAME"]
