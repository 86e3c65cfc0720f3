"""Pick the one alert sound to play for the current settings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .sounds import BundledSoundCatalog, CustomSoundLibrary, SystemSound
from ..settings import Settings, SoundTier


@dataclass(frozen=True)
class ResolvedSound:
    """A playable alert sound: a file (custom/bundled) or a system sound."""
    tier: SoundTier
    name: str
    path: Optional[Path] = None
    system_sound: Optional[SystemSound] = None

    @classmethod
    def system(cls, sound: SystemSound) -> "ResolvedSound":
        return cls(SoundTier.SYSTEM, sound.display_name, system_sound=sound)

    @property
    def can_loop(self) -> bool:
        return self.path is not None


TIER_ORDER = (SoundTier.CUSTOM, SoundTier.BUNDLED, SoundTier.SYSTEM)


class AlertSoundResolver:
    """Custom file, then bundled file, then the system sound.

    A selected custom or bundled sound whose file is missing is deselected
    so the lookup is not repeated on every alert. Missing files never fail
    the resolution; the system tier is always available.
    """

    def __init__(self, bundled: BundledSoundCatalog, custom: CustomSoundLibrary):
        self.bundled = bundled
        self.custom = custom

    def resolve(self, settings: Settings, below: Optional[SoundTier] = None) -> ResolvedSound:
        """
        Resolve the alert sound.

        Args:
            settings: Current settings; may be modified (auto-deselect).
            below: Only consider tiers lower than this one. Used to retry
                after a file that exists failed to play.
        """
        selection = settings.alert_sound
        allowed = TIER_ORDER[TIER_ORDER.index(below) + 1:] if below is not None else TIER_ORDER

        if selection.tier == SoundTier.CUSTOM and SoundTier.CUSTOM in allowed and settings.is_premium:
            sound = self.custom.get(selection.sound_id)
            if sound is not None and self.custom.file_exists(sound):
                return ResolvedSound(SoundTier.CUSTOM, sound.name, path=self.custom.path_for(sound))
            print(f"[Alarm] Custom sound {selection.sound_id} not found, deselecting")
            settings.deselect_sound(SoundTier.CUSTOM)

        if selection.tier == SoundTier.BUNDLED and SoundTier.BUNDLED in allowed and settings.is_premium:
            sound = self.bundled.get(selection.sound_id)
            path = self.bundled.resolve_file(sound.filename) if sound is not None else None
            if path is not None:
                return ResolvedSound(SoundTier.BUNDLED, sound.display_name, path=path)
            print(f"[Alarm] Bundled sound {selection.sound_id} not found, deselecting")
            settings.deselect_sound(SoundTier.BUNDLED)

        return ResolvedSound.system(settings.system_sound)
