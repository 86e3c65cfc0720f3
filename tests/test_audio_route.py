"""Tests for headphone detection through pactl."""

import subprocess

import pytest

from bbq_timer.voice import audio_route
from bbq_timer.voice.audio_route import headphones_connected

SINKS = """Sink #0
\tState: RUNNING
\tName: alsa_output.pci-0000_00_1f.3.analog-stereo
\tDescription: Built-in Audio Analog Stereo
\tPorts:
\t\tanalog-output-speaker: Speakers (type: Speaker, priority: 10000)
\t\tanalog-output-headphones: Headphones (type: Headphones, priority: 9900)
\tActive Port: {port}
Sink #1
\tState: SUSPENDED
\tName: alsa_output.hdmi
\tActive Port: hdmi-output-0
"""


def fake_pactl(monkeypatch, default_sink, port="analog-output-speaker", returncode=0):
    def run(args, **kwargs):
        if args[1] == "info":
            stdout = f"Server Name: PulseAudio (on PipeWire 1.0.5)\nDefault Sink: {default_sink}\n"
        else:
            stdout = SINKS.format(port=port)
        return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr="")

    monkeypatch.setattr(audio_route.subprocess, "run", run)


class TestHeadphonesConnected:
    def test_speakers(self, monkeypatch):
        fake_pactl(monkeypatch, "alsa_output.pci-0000_00_1f.3.analog-stereo")
        assert headphones_connected() is False

    def test_wired_headphones(self, monkeypatch):
        fake_pactl(monkeypatch, "alsa_output.pci-0000_00_1f.3.analog-stereo", port="analog-output-headphones")
        assert headphones_connected() is True

    def test_bluetooth(self, monkeypatch):
        fake_pactl(monkeypatch, "bluez_output.00_1B_66_AA_BB_CC.1")
        assert headphones_connected() is True

    def test_unknown_sink(self, monkeypatch):
        fake_pactl(monkeypatch, "alsa_output.usb")
        assert headphones_connected() is False

    def test_pactl_error(self, monkeypatch):
        fake_pactl(monkeypatch, "bluez_output.x", returncode=1)
        assert headphones_connected() is False

    @pytest.mark.parametrize("error", [FileNotFoundError("pactl"), subprocess.TimeoutExpired("pactl", 2)])
    def test_probe_failure_means_no_headphones(self, monkeypatch, error):
        def run(args, **kwargs):
            raise error

        monkeypatch.setattr(audio_route.subprocess, "run", run)
        assert headphones_connected() is False
