#!/usr/bin/env python3
"""Generate the bundled alert sounds and their manifest.

Usage:
    python scripts/generate_sounds.py [output_dir]

Writes one WAV file per manifest entry (default: bbq_timer/sounds/).
"""

import json
import os
import sys
import wave

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bbq_timer import BUNDLED_SOUNDS_DIR
from bbq_timer.alarm import MANIFEST_NAME

SAMPLE_RATE = 44100
AMPLITUDE = 0.6


def tone(freq: float, duration: float, wave_shape: str = "sine") -> np.ndarray:
    t = np.linspace(0, duration, int(SAMPLE_RATE * duration), endpoint=False)
    signal = np.sin(2 * np.pi * freq * t)
    if wave_shape == "square":
        signal = np.sign(signal)
    # 5ms fade in/out to avoid clicks
    fade = min(len(signal) // 2, int(SAMPLE_RATE * 0.005))
    if fade:
        ramp = np.linspace(0, 1, fade)
        signal[:fade] *= ramp
        signal[-fade:] *= ramp[::-1]
    return signal


def sweep(start: float, end: float, duration: float) -> np.ndarray:
    t = np.linspace(0, duration, int(SAMPLE_RATE * duration), endpoint=False)
    freqs = np.linspace(start, end, len(t))
    phase = 2 * np.pi * np.cumsum(freqs) / SAMPLE_RATE
    return np.sin(phase)


def silence(duration: float) -> np.ndarray:
    return np.zeros(int(SAMPLE_RATE * duration))


def bell(freq: float, duration: float) -> np.ndarray:
    t = np.linspace(0, duration, int(SAMPLE_RATE * duration), endpoint=False)
    partials = sum(np.sin(2 * np.pi * freq * k * t) / k for k in (1, 2, 3))
    return partials * np.exp(-3 * t)


SOUNDS = [
    {
        "filename": "soft_chime.wav",
        "display_name": "Soft Chime",
        "category": "For the Faint of Heart",
        "description": "Two gentle tones",
        "build": lambda: np.concatenate([tone(660, 0.4) * 0.5, tone(880, 0.6) * 0.5, silence(0.6)]),
    },
    {
        "filename": "wind_down.wav",
        "display_name": "Wind Down",
        "category": "For the Faint of Heart",
        "description": "Slow falling tone",
        "build": lambda: np.concatenate([sweep(700, 400, 1.2) * 0.5, silence(0.5)]),
    },
    {
        "filename": "kitchen_timer.wav",
        "display_name": "Kitchen Timer",
        "category": "Standard",
        "description": "Classic double beep",
        "build": lambda: np.concatenate([tone(1000, 0.15), silence(0.1), tone(1000, 0.15), silence(0.6)]),
    },
    {
        "filename": "dinner_bell.wav",
        "display_name": "Dinner Bell",
        "category": "Standard",
        "description": "Ringing bell with decay",
        "build": lambda: np.concatenate([bell(520, 1.5), silence(0.3)]),
    },
    {
        "filename": "pit_alarm.wav",
        "display_name": "Pit Alarm",
        "category": "Get My Attention",
        "description": "Fast rising sweep",
        "build": lambda: np.concatenate([sweep(500, 1500, 0.4), silence(0.1)] * 2),
    },
    {
        "filename": "triple_beep.wav",
        "display_name": "Triple Beep",
        "category": "Get My Attention",
        "description": "Three sharp beeps",
        "build": lambda: np.concatenate([tone(1400, 0.1), silence(0.08)] * 3 + [silence(0.5)]),
    },
    {
        "filename": "smoke_detector.wav",
        "display_name": "Smoke Detector",
        "category": "Annoying",
        "description": "High pitched square wave",
        "build": lambda: np.concatenate([tone(3100, 0.5, "square") * 0.4, silence(0.25)] * 2),
    },
]


def write_wav(path: str, samples: np.ndarray):
    peak = np.max(np.abs(samples)) or 1.0
    pcm = (samples / peak * AMPLITUDE * 32767).astype(np.int16)
    with wave.open(path, "wb") as f:
        f.setnchannels(1)
        f.setsampwidth(2)
        f.setframerate(SAMPLE_RATE)
        f.writeframes(pcm.tobytes())


def main():
    output_dir = sys.argv[1] if len(sys.argv) > 1 else str(BUNDLED_SOUNDS_DIR)
    os.makedirs(output_dir, exist_ok=True)

    manifest = []
    for sound in SOUNDS:
        path = os.path.join(output_dir, sound["filename"])
        write_wav(path, sound["build"]())
        manifest.append({k: v for k, v in sound.items() if k != "build"})
        print(f"  Wrote {path}")

    manifest_path = os.path.join(output_dir, MANIFEST_NAME)
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)
        f.write("\n")

    print(f"\nGenerated {len(SOUNDS)} sounds and {manifest_path}")


if __name__ == "__main__":
    main()
