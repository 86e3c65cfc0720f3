"""Text-to-speech using Piper."""

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import APLAY_COMMAND, DEBUG, DEFAULT_VOICE_ID, PIPER_COMMAND, PIPER_VOICES_DIR, VOICE_LANGUAGE


@dataclass(frozen=True)
class Voice:
    """An installed Piper voice model, e.g. ``en_US-bryce-medium``."""
    id: str
    name: str
    locale: str
    model_path: Path

    @property
    def language(self) -> str:
        return self.locale.split("_")[0]


# Voices found per directory
_voice_cache: dict[Path, list[Voice]] = {}


def _voice_from_model(model_path: Path) -> Voice:
    voice_id = model_path.name[: -len(".onnx")]
    locale, _, rest = voice_id.partition("-")
    speaker, _, quality = rest.partition("-")
    name = speaker.replace("_", " ").title() or voice_id
    if quality:
        name = f"{name} ({locale}, {quality})"
    return Voice(id=voice_id, name=name, locale=locale, model_path=model_path)


def list_voices(language: str = VOICE_LANGUAGE, voices_dir: Optional[Path] = None,
                refresh: bool = False) -> list[Voice]:
    """Installed voices for a language family, sorted by name."""
    voices_dir = Path(voices_dir) if voices_dir is not None else PIPER_VOICES_DIR

    if refresh or voices_dir not in _voice_cache:
        voices = []
        if voices_dir.exists():
            voices = [_voice_from_model(p) for p in voices_dir.glob("*.onnx")]
        _voice_cache[voices_dir] = sorted(voices, key=lambda v: (v.name, v.id))
        if DEBUG:
            print(f"[Voice] Found {len(voices)} voices in {voices_dir}")

    return [v for v in _voice_cache[voices_dir] if v.language == language]


def resolve_voice(voice_id: Optional[str], language: str = VOICE_LANGUAGE,
                  voices_dir: Optional[Path] = None) -> Optional[Voice]:
    """
    Find the configured voice.

    Falls back to the default voice, then to the first voice of the
    language. Returns None if no voice is installed.
    """
    voices = list_voices(language, voices_dir)
    by_id = {v.id: v for v in voices}

    if voice_id and voice_id in by_id:
        return by_id[voice_id]
    if voice_id:
        print(f"[Voice] Voice '{voice_id}' not available, using default")
    if DEFAULT_VOICE_ID in by_id:
        return by_id[DEFAULT_VOICE_ID]
    return voices[0] if voices else None


def _kill(*procs):
    """Stop whichever pipeline stages started and release their pipes."""
    for proc in procs:
        if proc is None:
            continue
        if proc.poll() is None:
            proc.kill()
        proc.wait()
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()


class TextToSpeech:
    """Piper TTS wrapper piping raw audio into aplay."""

    def __init__(self, model_path: Path):
        self.model_path = Path(model_path)
        self.sample_rate = 22050  # Default, will be updated from config
        self._verify_model()
        self._load_config()

    def _verify_model(self):
        """Check that model files exist."""
        json_file = self.model_path.with_suffix(".onnx.json")

        if not self.model_path.exists():
            raise FileNotFoundError(f"Piper model not found: {self.model_path}")
        if not json_file.exists():
            raise FileNotFoundError(f"Piper config not found: {json_file}")

    def _load_config(self):
        """Load sample rate from model config."""
        json_file = self.model_path.with_suffix(".onnx.json")
        try:
            with open(json_file, "r") as f:
                config = json.load(f)
            self.sample_rate = config.get("audio", {}).get("sample_rate", 22050)
            if DEBUG:
                print(f"[Voice] Model sample rate: {self.sample_rate}")
        except (json.JSONDecodeError, IOError, AttributeError) as e:
            if DEBUG:
                print(f"[Voice] Could not load config, using default sample rate: {e}")

    def speak(self, text: str) -> bool:
        """Synthesize and play text. Blocks until playback ends."""
        if DEBUG:
            print(f"[Voice] Speaking: {text}")

        piper_proc = None
        aplay_proc = None
        try:
            # Use pipes to avoid shell escaping issues
            piper_proc = subprocess.Popen(
                [PIPER_COMMAND, "--model", str(self.model_path), "--output-raw"],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
            aplay_proc = subprocess.Popen(
                [APLAY_COMMAND, "-r", str(self.sample_rate), "-f", "S16_LE", "-t", "raw", "-q"],
                stdin=piper_proc.stdout,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )

            # Send text to piper
            piper_proc.stdin.write(text.encode())
            piper_proc.stdin.close()
            piper_proc.stdout.close()  # Allow aplay to receive EOF

            # Wait for completion
            aplay_proc.wait(timeout=30)
            piper_proc.wait(timeout=5)
        except FileNotFoundError as e:
            _kill(piper_proc, aplay_proc)
            print(f"[Voice] Speech tools not installed: {e}")
            return False
        except subprocess.TimeoutExpired:
            _kill(piper_proc, aplay_proc)
            print("[Voice] Timeout during speech")
            return False
        except OSError as e:
            _kill(piper_proc, aplay_proc)
            print(f"[Voice] Error: {e}")
            return False

        if piper_proc.returncode != 0:
            print(f"[Voice] Piper error: {piper_proc.stderr.read().decode(errors='replace').strip()}")
            return False
        if aplay_proc.returncode != 0:
            print(f"[Voice] Aplay error: {aplay_proc.stderr.read().decode(errors='replace').strip()}")
            return False
        return True


if __name__ == "__main__":
    import sys

    text = " ".join(sys.argv[1:]) or "Timer 1 timer is complete."
    voice = resolve_voice(None)
    if voice is None:
        print(f"No voices installed in {PIPER_VOICES_DIR}")
        sys.exit(1)
    print(f"Testing voice {voice.name} with: {text}")
    TextToSpeech(voice.model_path).speak(text)
