"""Detect whether audio is routed to headphones (wired or Bluetooth)."""

import subprocess
from typing import Optional

from ..config import DEBUG, PACTL_COMMAND

# Active port names that mean the sound stays private
HEADPHONE_PORT_HINTS = ("headphone", "headset", "earpiece")


def _pactl(*args: str) -> str:
    result = subprocess.run(
        [PACTL_COMMAND, *args],
        capture_output=True,
        text=True,
        timeout=2,
    )
    if result.returncode != 0:
        raise subprocess.SubprocessError(result.stderr.strip() or f"pactl exited {result.returncode}")
    return result.stdout


def _default_sink(info: str) -> Optional[str]:
    for line in info.splitlines():
        key, _, value = line.partition(":")
        if key.strip() == "Default Sink":
            return value.strip()
    return None


def _active_port(sinks: str, sink_name: str) -> Optional[str]:
    """Find the active port of ``sink_name`` in ``pactl list sinks`` output."""
    for block in sinks.split("Sink #")[1:]:
        fields = {}
        for line in block.splitlines():
            key, sep, value = line.strip().partition(":")
            if sep:
                fields.setdefault(key.strip(), value.strip())
        if fields.get("Name") == sink_name:
            return fields.get("Active Port")
    return None


def headphones_connected() -> bool:
    """
    Live check of the default output route.

    True for Bluetooth sinks and for wired outputs whose active port is a
    headphone/headset jack. Any probe failure counts as no headphones.
    """
    try:
        sink = _default_sink(_pactl("info"))
        if sink is None:
            return False
        if sink.startswith("bluez_"):
            return True
        port = _active_port(_pactl("list", "sinks"), sink)
    except FileNotFoundError:
        print(f"[Voice] {PACTL_COMMAND} not installed, assuming no headphones")
        return False
    except (subprocess.SubprocessError, OSError) as e:
        print(f"[Voice] Could not check audio route: {e}")
        return False

    if DEBUG:
        print(f"[Voice] Default sink {sink}, active port {port}")
    return port is not None and any(hint in port.lower() for hint in HEADPHONE_PORT_HINTS)
