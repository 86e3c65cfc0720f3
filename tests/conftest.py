"""
Pytest fixtures and configuration for the test suite.

Nothing here touches real audio, GPIO or the APScheduler thread pool:
- FakeScheduler records jobs and fires them on demand
- FakeMotor records haptic pulses
- FakePlayer records plays and lets tests finish them
- Settings and sound libraries live in tmp_path
"""

import json
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path so tests can import the bbq_timer package
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Keep default data paths away from the working tree before config is imported
os.environ.setdefault("BBQ_TIMER_DATA_DIR", tempfile.mkdtemp(prefix="bbq_timer_test_"))
os.environ.setdefault("BBQ_TIMER_MODELS_DIR", tempfile.mkdtemp(prefix="bbq_timer_models_"))

from apscheduler.jobstores.base import JobLookupError  # noqa: E402

from bbq_timer.alarm.player import PlaybackOutcome  # noqa: E402
from bbq_timer.alarm.resolver import AlertSoundResolver  # noqa: E402
from bbq_timer.alarm.sounds import BundledSoundCatalog, CustomSoundLibrary  # noqa: E402
from bbq_timer.settings import Settings, SettingsStore  # noqa: E402
from bbq_timer.timers.orchestrator import TimerOrchestrator  # noqa: E402
from bbq_timer.timers.ticker import ClockTicker  # noqa: E402
from bbq_timer.voice.announcer import VoiceAnnouncer  # noqa: E402


# === FAKES ===

class FakeJob:
    def __init__(self, job_id, func, trigger, args, kwargs):
        self.id = job_id
        self.func = func
        self.trigger = trigger
        self.args = list(args or [])
        self.kwargs = kwargs


class FakeScheduler:
    """Stands in for BackgroundScheduler: same add_job/remove_job surface, no threads."""

    def __init__(self):
        self.jobs = {}
        self.added = []
        self.removed = []
        self._counter = 0

    def add_job(self, func, trigger=None, args=None, id=None, replace_existing=False, **kwargs):
        if id is None:
            self._counter += 1
            id = f"job_{self._counter}"
        if id in self.jobs and not replace_existing:
            raise ValueError(f"Job {id} already exists")
        job = FakeJob(id, func, trigger, args, kwargs)
        self.jobs[id] = job
        self.added.append(job)
        return job

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]
        self.removed.append(job_id)

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def fire(self, job_id):
        """Run a job once, dropping one-shot date jobs like APScheduler does."""
        job = self.jobs[job_id]
        if job.trigger == "date":
            del self.jobs[job_id]
        return job.func(*job.args)

    def date_jobs(self):
        return [j for j in self.jobs.values() if j.trigger == "date"]

    def run_due(self):
        """Fire the date jobs added without a run_date, which APScheduler runs right away."""
        due = [j.id for j in self.date_jobs() if "run_date" not in j.kwargs]
        for job_id in due:
            self.fire(job_id)
        return len(due)


class FakeMotor:
    def __init__(self):
        self.pulses = []

    def pulse(self, strength):
        self.pulses.append(strength)
        return True

    def close(self):
        pass

    @property
    def is_available(self):
        return False


class FakePlayer:
    """Records play/stop calls; tests decide how each playback ends."""

    def __init__(self):
        self.plays = []
        self.stop_count = 0
        self._current = None

    def play(self, sound, loop=False, on_complete=None):
        self.plays.append((sound, loop))
        self._current = (sound, on_complete)
        return True

    def stop(self):
        self.stop_count += 1
        current, self._current = self._current, None
        if current is not None and current[1] is not None:
            current[1](PlaybackOutcome.STOPPED)
        return current is not None

    def fail_current(self):
        """Simulate a file that exists but cannot be decoded."""
        current, self._current = self._current, None
        if current[1] is not None:
            current[1](PlaybackOutcome.FAILED)

    @property
    def is_playing(self):
        return self._current is not None

    @property
    def current_sound(self):
        return self._current[0] if self._current else None


class FakeTTS:
    """Records what each instance speaks."""

    instances = []

    def __init__(self, model_path):
        self.model_path = model_path
        self.spoken = []
        FakeTTS.instances.append(self)

    def speak(self, text):
        self.spoken.append(text)
        return True


# === FIXTURES ===

@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def motor():
    return FakeMotor()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def settings(tmp_path):
    return Settings(SettingsStore(tmp_path / "settings.json"))


@pytest.fixture
def premium_settings(settings):
    settings.is_premium = True
    return settings


@pytest.fixture
def bundled_dir(tmp_path):
    """Bundled sound directory with a manifest and two of its three files."""
    directory = tmp_path / "bundled"
    directory.mkdir()
    manifest = [
        {"filename": "chime.wav", "display_name": "Chime", "category": "Standard", "description": ""},
        {"filename": "siren.wav", "displayName": "Siren", "category": "Annoying", "description": "Loud"},
        {"filename": "gone.wav", "display_name": "Gone", "category": "For the Faint of Heart"},
    ]
    (directory / "sound_metadata.json").write_text(json.dumps(manifest))
    (directory / "chime.wav").write_bytes(b"RIFF")
    (directory / "siren.wav").write_bytes(b"RIFF")
    return directory


@pytest.fixture
def bundled(bundled_dir):
    return BundledSoundCatalog([bundled_dir])


@pytest.fixture
def custom(tmp_path):
    return CustomSoundLibrary(tmp_path / "custom", tmp_path / "custom_sounds.json")


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "import" / "brisket done.mp3"
    path.parent.mkdir()
    path.write_bytes(b"ID3fake")
    return path


@pytest.fixture
def resolver(bundled, custom):
    return AlertSoundResolver(bundled, custom)


@pytest.fixture
def headphones():
    """Mutable headphone state read by the announcer."""
    return {"connected": False}


@pytest.fixture
def announcer(settings, scheduler, headphones):
    FakeTTS.instances = []
    return VoiceAnnouncer(
        settings,
        scheduler,
        headphone_check=lambda: headphones["connected"],
        tts_factory=FakeTTS,
        delay=1.0,
    )


@pytest.fixture
def ticker(scheduler):
    return ClockTicker(scheduler)


@pytest.fixture
def orchestrator(settings, resolver, player, announcer, scheduler, ticker, motor):
    return TimerOrchestrator(
        settings=settings,
        resolver=resolver,
        player=player,
        announcer=announcer,
        scheduler=scheduler,
        ticker=ticker,
        motor=motor,
    )


@pytest.fixture
def client(orchestrator):
    from bbq_timer.app import create_app

    app = create_app(orchestrator, {"TESTING": True})
    return app.test_client()
