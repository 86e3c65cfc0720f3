"""Alert sound catalogs: system sounds, bundled sounds and custom imports."""

import json
import random
import shutil
import time
import uuid
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from . import BUNDLED_SEARCH_DIRS, CUSTOM_SOUNDS_DIR, MANIFEST_NAME
from ..config import CUSTOM_SOUNDS_FILE, DEBUG

# Supported audio formats for imports
AUDIO_EXTENSIONS = {".m4a", ".opus", ".mp3", ".wav", ".flac", ".ogg", ".aiff", ".aif"}

# Category display order; unlisted categories sort last, ties alphabetical
CATEGORY_PRIORITIES = {
    "For the Faint of Heart": 1,
    "Standard": 2,
    "Get My Attention": 3,
    "Annoying": 4,
}


class SystemSound(str, Enum):
    """Freedesktop sound-theme events, always available as the last resort."""
    ALARM_CLOCK = "alarm-clock-elapsed"
    COMPLETE = "complete"
    BELL = "bell"
    MESSAGE = "message-new-instant"
    PHONE = "phone-incoming-call"
    WARNING = "dialog-warning"

    @classmethod
    def default(cls) -> "SystemSound":
        return cls.ALARM_CLOCK

    @classmethod
    def from_id(cls, value: Optional[str]) -> "SystemSound":
        try:
            return cls(value)
        except ValueError:
            return cls.default()

    @property
    def display_name(self) -> str:
        return self.value.replace("-", " ").title()


@dataclass(frozen=True)
class BundledSound:
    id: str
    filename: str
    display_name: str
    category: str
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CustomSound:
    id: str
    name: str
    filename: str

    def to_dict(self) -> dict:
        return asdict(self)


def _category_sort_key(category: str) -> tuple:
    return (CATEGORY_PRIORITIES.get(category, len(CATEGORY_PRIORITIES) + 1), category)


class BundledSoundCatalog:
    """Read-only catalog of the sounds shipped with the app.

    The manifest and the sound files are looked up in an ordered list of
    candidate directories; the first existing match wins. A missing or
    malformed manifest leaves the catalog empty.
    """

    def __init__(self, search_dirs: Optional[Iterable[Path]] = None):
        self.search_dirs = [Path(d) for d in (search_dirs if search_dirs is not None else BUNDLED_SEARCH_DIRS)]
        self.sounds: list[BundledSound] = []
        self.sounds_by_category: dict[str, list[BundledSound]] = {}
        self.categories: list[str] = []
        self.load()

    def find_manifest(self) -> Optional[Path]:
        for directory in self.search_dirs:
            candidate = directory / MANIFEST_NAME
            if candidate.exists():
                return candidate
        return None

    def load(self):
        """(Re)load the manifest."""
        self.sounds = []
        self.sounds_by_category = {}
        self.categories = []

        manifest = self.find_manifest()
        if manifest is None:
            print(f"[Sounds] Could not find {MANIFEST_NAME} in any expected location")
            return

        try:
            with open(manifest, "r") as f:
                entries = json.load(f)
            if not isinstance(entries, list):
                raise ValueError("manifest must be a list of sounds")
            sounds = [self._parse_entry(entry) for entry in entries]
        except (json.JSONDecodeError, IOError, KeyError, TypeError, ValueError) as e:
            print(f"[Sounds] Error loading bundled sounds from {manifest}: {e}")
            return

        self.sounds = sounds
        for sound in sounds:
            self.sounds_by_category.setdefault(sound.category, []).append(sound)
        self.categories = sorted(self.sounds_by_category, key=_category_sort_key)
        print(f"[Sounds] Loaded {len(sounds)} bundled sounds in {len(self.categories)} categories")

    @staticmethod
    def _parse_entry(entry: dict) -> BundledSound:
        filename = str(entry["filename"])
        if Path(filename).name != filename:
            raise ValueError(f"Invalid sound filename: {filename}")
        # Entries without an id get one derived from the filename so it is stable across loads
        sound_id = entry.get("id") or str(uuid.uuid5(uuid.NAMESPACE_URL, f"bundled:{filename}"))
        return BundledSound(
            id=str(sound_id),
            filename=filename,
            display_name=str(entry.get("display_name") or entry.get("displayName") or Path(filename).stem),
            category=str(entry.get("category") or "Standard"),
            description=str(entry.get("description") or ""),
        )

    def resolve_file(self, filename: str) -> Optional[Path]:
        """Return the first candidate location holding ``filename``."""
        for directory in self.search_dirs:
            candidate = directory / filename
            try:
                if candidate.is_file():
                    return candidate
            except OSError as e:
                if DEBUG:
                    print(f"[Sounds] Cannot check {candidate}: {e}")
        return None

    def sounds_in(self, category: str) -> list[BundledSound]:
        return list(self.sounds_by_category.get(category, []))

    def get(self, sound_id: str) -> Optional[BundledSound]:
        return next((s for s in self.sounds if s.id == sound_id), None)

    def get_by_filename(self, filename: str) -> Optional[BundledSound]:
        return next((s for s in self.sounds if s.filename == filename), None)


class CustomSoundLibrary:
    """User-imported sounds copied into private storage.

    Records are persisted as a JSON list of ``{id, name, filename}``.
    """

    def __init__(self, directory: Optional[Path] = None, index_file: Optional[Path] = None):
        self.directory = Path(directory) if directory is not None else CUSTOM_SOUNDS_DIR
        self.index_file = Path(index_file) if index_file is not None else CUSTOM_SOUNDS_FILE
        self._sounds: list[CustomSound] = []

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"[Sounds] Error setting up custom sounds directory: {e}")

        self._load()

    def _load(self):
        if not self.index_file.exists():
            return

        try:
            with open(self.index_file, "r") as f:
                records = json.load(f)
            self._sounds = [
                CustomSound(id=str(r["id"]), name=str(r["name"]), filename=str(r["filename"]))
                for r in records
            ]
        except (json.JSONDecodeError, IOError, KeyError, TypeError) as e:
            print(f"[Sounds] Error loading custom sounds: {e}")
            self._sounds = []

    def _save(self, sounds: list[CustomSound]) -> bool:
        try:
            self.index_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.index_file, "w") as f:
                json.dump([s.to_dict() for s in sounds], f, indent=2)
                f.write("\n")
            return True
        except IOError as e:
            print(f"[Sounds] Error saving custom sounds: {e}")
            return False

    def _unique_filename(self, extension: str) -> str:
        while True:
            filename = f"custom_{int(time.time())}_{random.randint(1000, 9999)}{extension}"
            if not (self.directory / filename).exists():
                return filename

    def import_sound(self, source: Path, name: Optional[str] = None) -> Optional[str]:
        """
        Copy ``source`` into private storage and record it.

        Returns the new sound id, or None if nothing was imported.
        """
        source = Path(source)
        extension = source.suffix.lower()
        if extension not in AUDIO_EXTENSIONS:
            print(f"[Sounds] Not an audio file: {source.name}")
            return None

        destination = self.directory / self._unique_filename(extension)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
        except OSError as e:
            print(f"[Sounds] Error importing sound: {e}")
            destination.unlink(missing_ok=True)
            return None

        sound = CustomSound(
            id=str(uuid.uuid4()),
            name=(name or "").strip() or source.stem,
            filename=destination.name,
        )
        sounds = self._sounds + [sound]
        if not self._save(sounds):
            destination.unlink(missing_ok=True)
            return None

        self._sounds = sounds
        print(f"[Sounds] Imported '{sound.name}' as {sound.filename}")
        return sound.id

    def rename(self, sound_id: str, new_name: str) -> bool:
        new_name = new_name.strip()
        if not new_name or self.get(sound_id) is None:
            return False

        sounds = [
            CustomSound(s.id, new_name, s.filename) if s.id == sound_id else s
            for s in self._sounds
        ]
        if not self._save(sounds):
            return False
        self._sounds = sounds
        return True

    def delete(self, sound_id: str) -> bool:
        """Drop the record, then its backing file."""
        sound = self.get(sound_id)
        if sound is None:
            return False

        sounds = [s for s in self._sounds if s.id != sound_id]
        if not self._save(sounds):
            return False
        self._sounds = sounds

        try:
            self.path_for(sound).unlink(missing_ok=True)
        except OSError as e:
            print(f"[Sounds] Error deleting sound file: {e}")
        print(f"[Sounds] Deleted '{sound.name}'")
        return True

    def list(self) -> list[CustomSound]:
        return list(self._sounds)

    def get(self, sound_id: str) -> Optional[CustomSound]:
        return next((s for s in self._sounds if s.id == sound_id), None)

    def path_for(self, sound: CustomSound) -> Path:
        return self.directory / sound.filename

    def file_exists(self, sound: CustomSound) -> bool:
        return self.path_for(sound).is_file()
