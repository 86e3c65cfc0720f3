"""Tests for the settings store and sound selection rules."""

import itertools
import json

import pytest

from bbq_timer.alarm.sounds import SystemSound
from bbq_timer.settings import (
    DEFAULT_SETTINGS, EntitlementRequired, Settings, SettingsStore, SoundSelection, SoundTier,
)


class TestSettingsStore:
    def test_defaults_when_missing(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        assert store.as_dict() == DEFAULT_SETTINGS

    def test_write_through(self, tmp_path):
        path = tmp_path / "settings.json"
        SettingsStore(path).set("sound_enabled", False)

        assert json.loads(path.read_text())["sound_enabled"] is False
        assert SettingsStore(path).get("sound_enabled") is False

    def test_merges_missing_keys(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"haptics_enabled": False}))
        store = SettingsStore(path)

        assert store.get("haptics_enabled") is False
        assert store.get("preheat_duration") == 900

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        assert SettingsStore(path).as_dict() == DEFAULT_SETTINGS

    def test_delete(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        store.set("custom_announcement_message", "Done")
        store.delete("custom_announcement_message")
        assert store.get("custom_announcement_message") == ""


class TestSettings:
    def test_toggle_defaults(self, settings):
        assert settings.sound_enabled is True
        assert settings.haptics_enabled is True
        assert settings.voice_announcements_enabled is False
        assert settings.announce_only_with_headphones is False
        assert settings.is_premium is False

    def test_permanent_timer_names_and_presets(self, settings):
        assert settings.get_timer_name("timer1") == "Timer 1"
        assert settings.get_presets("timer2") == (900, 1200)

        settings.set_timer_name("timer1", "  Brisket ")
        settings.set_preset("timer1", 2, 7200)

        assert settings.get_timer_name("timer1") == "Brisket"
        assert settings.get_presets("timer1") == (300, 7200)

    def test_additional_timer_presets(self, settings):
        settings.additional_timers = [{"id": "x", "name": "Wings", "preset1": 60, "preset2": 120}]
        settings.set_preset("x", 1, 90)
        assert settings.get_presets("x") == (90, 120)

    def test_unknown_slot(self, settings):
        with pytest.raises(KeyError):
            settings.get_presets("nope")

    def test_invalid_values(self, settings):
        with pytest.raises(ValueError):
            settings.set_timer_name("timer1", "   ")
        with pytest.raises(ValueError):
            settings.set_preset("timer1", 3, 10)
        with pytest.raises(ValueError):
            settings.preheat_duration = -1


class TestSoundSelection:
    """At most one alert sound is selected at any time."""

    def test_default_is_system_sound(self, settings):
        assert settings.alert_sound == SoundSelection(SoundTier.SYSTEM, SystemSound.default().value)
        assert settings.selected_bundled_sound_id is None
        assert settings.selected_custom_sound_id is None

    @pytest.mark.parametrize("order", list(itertools.permutations(["system", "bundled", "custom"])))
    def test_last_selection_wins(self, premium_settings, order):
        select = {
            "system": lambda: premium_settings.select_system_sound(SystemSound.BELL),
            "bundled": lambda: premium_settings.select_bundled_sound("b1"),
            "custom": lambda: premium_settings.select_custom_sound("c1"),
        }
        for name in order:
            select[name]()

        last = order[-1]
        assert premium_settings.alert_sound.tier == SoundTier(last)
        active = [
            premium_settings.selected_bundled_sound_id is not None,
            premium_settings.selected_custom_sound_id is not None,
        ]
        assert sum(active) == (0 if last == "system" else 1)

    def test_premium_tiers_require_entitlement(self, settings):
        with pytest.raises(EntitlementRequired):
            settings.select_bundled_sound("b1")
        with pytest.raises(EntitlementRequired):
            settings.select_custom_sound("c1")
        assert settings.alert_sound.tier == SoundTier.SYSTEM

    def test_deselect_only_matching_tier(self, premium_settings):
        premium_settings.select_custom_sound("c1")
        premium_settings.deselect_sound(SoundTier.BUNDLED)
        assert premium_settings.selected_custom_sound_id == "c1"

        premium_settings.deselect_sound(SoundTier.CUSTOM)
        assert premium_settings.alert_sound.tier == SoundTier.SYSTEM

    def test_system_sound_survives_premium_selection(self, premium_settings):
        premium_settings.select_system_sound(SystemSound.WARNING)
        premium_settings.select_bundled_sound("b1")
        premium_settings.deselect_sound()

        assert premium_settings.alert_sound == SoundSelection(SoundTier.SYSTEM, "dialog-warning")

    def test_selection_persists(self, tmp_path):
        path = tmp_path / "settings.json"
        settings = Settings(SettingsStore(path))
        settings.is_premium = True
        settings.select_custom_sound("c1")

        assert Settings(SettingsStore(path)).selected_custom_sound_id == "c1"

    def test_malformed_selection_reads_as_system(self, settings):
        settings.store.set("alert_sound", {"tier": "bogus"})
        assert settings.alert_sound.tier == SoundTier.SYSTEM
