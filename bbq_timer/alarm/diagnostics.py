"""Report where alert sounds are found (or not) on this machine."""

import shutil

from .sounds import BundledSoundCatalog, CustomSoundLibrary, SystemSound
from ..config import MPV_COMMAND, SYSTEM_SOUND_COMMAND


def run_diagnostic(bundled: BundledSoundCatalog, custom: CustomSoundLibrary) -> dict:
    """
    Print a sound system report and return the counts.

    Missing files only show up here; lookups during alerts fall back
    silently to the next tier.
    """
    print("\n====== SOUND SYSTEM DIAGNOSTIC ======\n")

    print("Bundled sound search locations:")
    for directory in bundled.search_dirs:
        print(f"  - {directory} {'(exists)' if directory.exists() else '(missing)'}")

    manifest = bundled.find_manifest()
    print(f"\nManifest: {manifest if manifest else 'NOT FOUND'}")
    print(f"Categories: {', '.join(bundled.categories) or 'none'}")

    missing_bundled = 0
    for category in bundled.categories:
        print(f"\n[{category}]")
        for sound in bundled.sounds_in(category):
            path = bundled.resolve_file(sound.filename)
            if path is None:
                missing_bundled += 1
            print(f"  - {sound.display_name}: {path if path else 'MISSING ' + sound.filename}")

    missing_custom = 0
    sounds = custom.list()
    print(f"\nCustom sounds ({len(sounds)}) in {custom.directory}:")
    for sound in sounds:
        exists = custom.file_exists(sound)
        if not exists:
            missing_custom += 1
        print(f"  - {sound.name}: {sound.filename} {'OK' if exists else 'MISSING'}")

    print("\nPlayers:")
    for command in (MPV_COMMAND, SYSTEM_SOUND_COMMAND):
        print(f"  - {command}: {shutil.which(command) or 'NOT INSTALLED'}")
    print(f"System sounds: {', '.join(s.value for s in SystemSound)}")

    print("\n====== DIAGNOSTIC COMPLETE ======\n")
    return {
        "bundled": len(bundled.sounds),
        "bundled_missing": missing_bundled,
        "custom": len(sounds),
        "custom_missing": missing_custom,
    }


if __name__ == "__main__":
    run_diagnostic(BundledSoundCatalog(), CustomSoundLibrary())
