"""Persisted user settings.

``SettingsStore`` is a flat JSON key/value file. ``Settings`` is the typed
facade the timer core reads and writes through.
"""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .alarm.sounds import SystemSound
from .config import SETTINGS_FILE


class EntitlementRequired(Exception):
    """Raised when a premium-only feature is used without premium."""


class SoundTier(str, Enum):
    SYSTEM = "system"
    BUNDLED = "bundled"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SoundSelection:
    """The one active alert sound. Selecting another replaces it wholesale."""
    tier: SoundTier
    sound_id: str

    def to_dict(self) -> dict:
        return {"tier": self.tier.value, "id": self.sound_id}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["SoundSelection"]:
        try:
            return cls(SoundTier(data["tier"]), str(data["id"]))
        except (KeyError, TypeError, ValueError):
            return None


PERMANENT_TIMER_IDS = ("timer1", "timer2")

DEFAULT_SETTINGS = {
    "timer1_name": "Timer 1",
    "timer1_preset1": 300,
    "timer1_preset2": 600,
    "timer2_name": "Timer 2",
    "timer2_preset1": 900,
    "timer2_preset2": 1200,
    "preheat_duration": 900,  # 15 minutes
    "sound_enabled": True,
    "haptics_enabled": True,
    "voice_announcements_enabled": False,
    "announce_only_with_headphones": False,
    "custom_announcement_message": "",
    "selected_voice_id": None,
    "is_premium": False,
    "system_sound": SystemSound.default().value,
    "alert_sound": None,
    "additional_timers": [],
}


class SettingsStore:
    """JSON-backed key/value store. Every ``set`` is written through."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else SETTINGS_FILE
        self._values = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return dict(DEFAULT_SETTINGS)

        try:
            with open(self.path, "r") as f:
                values = json.load(f)
            if not isinstance(values, dict):
                raise ValueError("settings file must contain an object")
            # Merge with defaults for any missing keys
            return {**DEFAULT_SETTINGS, **values}
        except (json.JSONDecodeError, IOError, ValueError) as e:
            print(f"[Settings] Error loading settings: {e}")
            return dict(DEFAULT_SETTINGS)

    def save(self) -> bool:
        """Save all values to the JSON file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.path, "w") as f:
                json.dump(self._values, f, indent=2)
                f.write("\n")
            return True
        except IOError as e:
            print(f"[Settings] Error saving settings: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, DEFAULT_SETTINGS.get(key, default))

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self.save()

    def delete(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self.save()

    def as_dict(self) -> dict:
        return dict(self._values)


class Settings:
    """Typed access to the settings the timer core depends on."""

    def __init__(self, store: Optional[SettingsStore] = None):
        self.store = store or SettingsStore()

    # --- Toggles -------------------------------------------------------

    @property
    def sound_enabled(self) -> bool:
        return bool(self.store.get("sound_enabled"))

    @sound_enabled.setter
    def sound_enabled(self, value: bool):
        self.store.set("sound_enabled", bool(value))

    @property
    def haptics_enabled(self) -> bool:
        return bool(self.store.get("haptics_enabled"))

    @haptics_enabled.setter
    def haptics_enabled(self, value: bool):
        self.store.set("haptics_enabled", bool(value))

    @property
    def voice_announcements_enabled(self) -> bool:
        return bool(self.store.get("voice_announcements_enabled"))

    @voice_announcements_enabled.setter
    def voice_announcements_enabled(self, value: bool):
        self.store.set("voice_announcements_enabled", bool(value))

    @property
    def announce_only_with_headphones(self) -> bool:
        return bool(self.store.get("announce_only_with_headphones"))

    @announce_only_with_headphones.setter
    def announce_only_with_headphones(self, value: bool):
        self.store.set("announce_only_with_headphones", bool(value))

    @property
    def is_premium(self) -> bool:
        return bool(self.store.get("is_premium"))

    @is_premium.setter
    def is_premium(self, value: bool):
        self.store.set("is_premium", bool(value))

    # --- Announcements -------------------------------------------------

    @property
    def custom_announcement_message(self) -> str:
        return self.store.get("custom_announcement_message") or ""

    @custom_announcement_message.setter
    def custom_announcement_message(self, value: str):
        self.store.set("custom_announcement_message", (value or "").strip())

    @property
    def selected_voice_id(self) -> Optional[str]:
        return self.store.get("selected_voice_id")

    @selected_voice_id.setter
    def selected_voice_id(self, value: Optional[str]):
        self.store.set("selected_voice_id", value or None)

    # --- Durations -----------------------------------------------------

    @property
    def preheat_duration(self) -> int:
        return int(self.store.get("preheat_duration"))

    @preheat_duration.setter
    def preheat_duration(self, seconds: int):
        self.store.set("preheat_duration", _validate_seconds(seconds))

    # --- Timer slots ---------------------------------------------------

    @property
    def additional_timers(self) -> list[dict]:
        return [dict(t) for t in self.store.get("additional_timers") or []]

    @additional_timers.setter
    def additional_timers(self, timers: list[dict]):
        self.store.set("additional_timers", [dict(t) for t in timers])

    def get_timer_name(self, slot_id: str) -> str:
        if slot_id in PERMANENT_TIMER_IDS:
            return self.store.get(f"{slot_id}_name")
        return self._additional(slot_id)["name"]

    def set_timer_name(self, slot_id: str, name: str):
        name = name.strip()
        if not name:
            raise ValueError("Timer name cannot be empty")
        self._update_slot(slot_id, "name", name)

    def get_presets(self, slot_id: str) -> tuple[int, int]:
        if slot_id in PERMANENT_TIMER_IDS:
            return (
                int(self.store.get(f"{slot_id}_preset1")),
                int(self.store.get(f"{slot_id}_preset2")),
            )
        timer = self._additional(slot_id)
        return int(timer["preset1"]), int(timer["preset2"])

    def set_preset(self, slot_id: str, index: int, seconds: int):
        if index not in (1, 2):
            raise ValueError(f"Preset index must be 1 or 2, got {index}")
        self._update_slot(slot_id, f"preset{index}", _validate_seconds(seconds))

    def _additional(self, slot_id: str) -> dict:
        for timer in self.additional_timers:
            if timer["id"] == slot_id:
                return timer
        raise KeyError(slot_id)

    def _update_slot(self, slot_id: str, field: str, value):
        if slot_id in PERMANENT_TIMER_IDS:
            self.store.set(f"{slot_id}_{field}", value)
            return
        timers = self.additional_timers
        for timer in timers:
            if timer["id"] == slot_id:
                timer[field] = value
                self.additional_timers = timers
                return
        raise KeyError(slot_id)

    # --- Alert sound selection -----------------------------------------

    @property
    def system_sound(self) -> SystemSound:
        return SystemSound.from_id(self.store.get("system_sound"))

    @property
    def alert_sound(self) -> SoundSelection:
        selection = SoundSelection.from_dict(self.store.get("alert_sound"))
        if selection is None:
            return SoundSelection(SoundTier.SYSTEM, self.system_sound.value)
        return selection

    @property
    def selected_bundled_sound_id(self) -> Optional[str]:
        selection = self.alert_sound
        return selection.sound_id if selection.tier == SoundTier.BUNDLED else None

    @property
    def selected_custom_sound_id(self) -> Optional[str]:
        selection = self.alert_sound
        return selection.sound_id if selection.tier == SoundTier.CUSTOM else None

    def select_system_sound(self, sound: SystemSound):
        self.store.set("system_sound", sound.value)
        self.store.set("alert_sound", SoundSelection(SoundTier.SYSTEM, sound.value).to_dict())

    def select_bundled_sound(self, sound_id: str):
        self._require_premium("Bundled sounds")
        self.store.set("alert_sound", SoundSelection(SoundTier.BUNDLED, sound_id).to_dict())

    def select_custom_sound(self, sound_id: str):
        self._require_premium("Custom sounds")
        self.store.set("alert_sound", SoundSelection(SoundTier.CUSTOM, sound_id).to_dict())

    def deselect_sound(self, tier: Optional[SoundTier] = None):
        """Fall back to the system sound, optionally only if ``tier`` is active."""
        if tier is not None and self.alert_sound.tier != tier:
            return
        self.store.set("alert_sound", None)

    def _require_premium(self, feature: str):
        if not self.is_premium:
            raise EntitlementRequired(f"{feature} require premium")


def _validate_seconds(seconds) -> int:
    seconds = int(seconds)
    if seconds < 0:
        raise ValueError("Duration cannot be negative")
    return seconds
