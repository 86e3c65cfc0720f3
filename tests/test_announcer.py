"""Tests for voice announcements and voice selection."""

import json
from unittest.mock import MagicMock

import pytest

from bbq_timer.voice import tts
from bbq_timer.voice.tts import TextToSpeech, list_voices, resolve_voice

from conftest import FakeTTS


@pytest.fixture
def voices_dir(tmp_path):
    directory = tmp_path / "piper"
    directory.mkdir()
    for voice_id in ("en_US-bryce-medium", "en_GB-alan-low", "de_DE-thorsten-medium"):
        (directory / f"{voice_id}.onnx").write_bytes(b"")
        (directory / f"{voice_id}.onnx.json").write_text(json.dumps({"audio": {"sample_rate": 16000}}))
    return directory


@pytest.fixture
def voiced_announcer(announcer, settings, voices_dir):
    settings.voice_announcements_enabled = True
    announcer.voices_dir = voices_dir
    return announcer


class TestAnnounceCompletion:
    def test_schedules_after_delay(self, voiced_announcer, scheduler):
        assert voiced_announcer.announce_completion("Brisket") is True

        [job] = scheduler.date_jobs()
        assert job.args == ["Brisket timer is complete."]
        assert "run_date" in job.kwargs

    def test_speaks_with_fresh_instance_each_time(self, voiced_announcer, scheduler):
        voiced_announcer.announce_completion("Ribs")
        voiced_announcer.announce_completion("Wings")
        for job in scheduler.date_jobs():
            scheduler.fire(job.id)

        assert len(FakeTTS.instances) == 2
        assert [t.spoken for t in FakeTTS.instances] == [
            ["Ribs timer is complete."], ["Wings timer is complete."],
        ]

    def test_custom_message(self, voiced_announcer, settings, scheduler):
        settings.custom_announcement_message = "  Check the smoker  "
        voiced_announcer.announce_completion("Ribs")
        assert scheduler.date_jobs()[0].args == ["Check the smoker"]

    def test_skipped_when_sound_off(self, voiced_announcer, settings, scheduler):
        settings.sound_enabled = False
        assert voiced_announcer.announce_completion("Ribs") is False
        assert scheduler.date_jobs() == []

    def test_skipped_when_announcements_off(self, announcer, scheduler):
        assert announcer.announce_completion("Ribs") is False
        assert scheduler.date_jobs() == []

    def test_headphones_only_without_headphones(self, voiced_announcer, settings, scheduler, headphones):
        settings.announce_only_with_headphones = True
        assert voiced_announcer.announce_completion("Ribs") is False

        headphones["connected"] = True
        assert voiced_announcer.announce_completion("Ribs") is True
        assert len(scheduler.date_jobs()) == 1

    def test_uses_selected_voice(self, voiced_announcer, settings, scheduler, voices_dir):
        settings.selected_voice_id = "en_GB-alan-low"
        voiced_announcer.announce_completion("Ribs")
        scheduler.fire(scheduler.date_jobs()[0].id)

        assert FakeTTS.instances[0].model_path == voices_dir / "en_GB-alan-low.onnx"

    def test_no_voices_installed(self, announcer, settings, scheduler, tmp_path):
        settings.voice_announcements_enabled = True
        announcer.voices_dir = tmp_path / "empty"
        announcer.announce_completion("Ribs")

        assert announcer._speak("Ribs timer is complete.") is False
        assert FakeTTS.instances == []


class TestVoices:
    def test_list_voices_filters_language(self, voices_dir):
        ids = [v.id for v in list_voices("en", voices_dir, refresh=True)]
        assert sorted(ids) == ["en_GB-alan-low", "en_US-bryce-medium"]

    def test_sorted_by_name(self, voices_dir):
        names = [v.name for v in list_voices("en", voices_dir, refresh=True)]
        assert names == sorted(names)

    def test_resolve_falls_back_to_default(self, voices_dir):
        list_voices("en", voices_dir, refresh=True)
        assert resolve_voice("xx_XX-nobody-low", voices_dir=voices_dir).id == "en_US-bryce-medium"
        assert resolve_voice(None, voices_dir=voices_dir).id == "en_US-bryce-medium"

    def test_resolve_falls_back_to_first_voice(self, voices_dir, monkeypatch):
        monkeypatch.setattr(tts, "DEFAULT_VOICE_ID", "en_US-missing-high")
        voices = list_voices("en", voices_dir, refresh=True)
        assert resolve_voice(None, voices_dir=voices_dir) == voices[0]

    def test_tts_reads_sample_rate(self, voices_dir):
        engine = TextToSpeech(voices_dir / "en_US-bryce-medium.onnx")
        assert engine.sample_rate == 16000

    def test_tts_missing_model(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TextToSpeech(tmp_path / "nope.onnx")


class TestSpeak:
    def test_missing_aplay_kills_piper(self, voices_dir, monkeypatch):
        piper = MagicMock()
        piper.poll.return_value = None
        monkeypatch.setattr(tts.subprocess, "Popen", MagicMock(side_effect=[piper, FileNotFoundError("aplay")]))

        engine = TextToSpeech(voices_dir / "en_US-bryce-medium.onnx")
        assert engine.speak("Ribs timer is complete.") is False

        piper.kill.assert_called_once()
        piper.wait.assert_called_once()
        piper.stdout.close.assert_called_once()

    def test_missing_piper_starts_nothing(self, voices_dir, monkeypatch):
        popen = MagicMock(side_effect=FileNotFoundError("piper"))
        monkeypatch.setattr(tts.subprocess, "Popen", popen)

        engine = TextToSpeech(voices_dir / "en_US-bryce-medium.onnx")
        assert engine.speak("Ribs timer is complete.") is False
        assert popen.call_count == 1
