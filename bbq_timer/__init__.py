"""BBQ timer: countdown slots, preheat timer and layered expiry alerts."""

from pathlib import Path

__version__ = "1.0.0"

# Base paths
PACKAGE_DIR = Path(__file__).parent
PROJECT_DIR = PACKAGE_DIR.parent
BUNDLED_SOUNDS_DIR = PACKAGE_DIR / "sounds"
