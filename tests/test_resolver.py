"""Tests for alert sound resolution and its fallback chain."""

from bbq_timer.alarm.resolver import AlertSoundResolver, ResolvedSound
from bbq_timer.alarm.sounds import SystemSound
from bbq_timer.settings import SoundTier


def _bundled_id(bundled, filename):
    return bundled.get_by_filename(filename).id


class TestAlertSoundResolver:
    def test_default_is_system_sound(self, resolver, settings):
        sound = resolver.resolve(settings)
        assert sound == ResolvedSound.system(SystemSound.default())
        assert sound.can_loop is False

    def test_selected_system_sound(self, resolver, settings):
        settings.select_system_sound(SystemSound.BELL)
        assert resolver.resolve(settings).system_sound == SystemSound.BELL

    def test_custom_sound(self, resolver, premium_settings, custom, audio_file):
        sound_id = custom.import_sound(audio_file, name="Brisket")
        premium_settings.select_custom_sound(sound_id)

        sound = resolver.resolve(premium_settings)

        assert sound.tier == SoundTier.CUSTOM
        assert sound.name == "Brisket"
        assert sound.path == custom.path_for(custom.get(sound_id))
        assert sound.can_loop is True

    def test_bundled_sound(self, resolver, premium_settings, bundled, bundled_dir):
        premium_settings.select_bundled_sound(_bundled_id(bundled, "chime.wav"))

        sound = resolver.resolve(premium_settings)

        assert sound.tier == SoundTier.BUNDLED
        assert sound.path == bundled_dir / "chime.wav"

    def test_missing_custom_file_is_deselected(self, resolver, premium_settings, custom, audio_file):
        sound_id = custom.import_sound(audio_file)
        premium_settings.select_custom_sound(sound_id)
        custom.path_for(custom.get(sound_id)).unlink()

        sound = resolver.resolve(premium_settings)

        assert sound.tier == SoundTier.SYSTEM
        assert premium_settings.selected_custom_sound_id is None
        assert premium_settings.alert_sound.tier == SoundTier.SYSTEM

    def test_unknown_custom_id_is_deselected(self, resolver, premium_settings):
        premium_settings.select_custom_sound("deleted-elsewhere")
        assert resolver.resolve(premium_settings).tier == SoundTier.SYSTEM
        assert premium_settings.selected_custom_sound_id is None

    def test_missing_bundled_file_is_deselected(self, resolver, premium_settings, bundled):
        premium_settings.select_bundled_sound(_bundled_id(bundled, "gone.wav"))

        assert resolver.resolve(premium_settings).tier == SoundTier.SYSTEM
        assert premium_settings.selected_bundled_sound_id is None

    def test_non_premium_ignores_selection_without_clearing(self, resolver, premium_settings, bundled):
        sound_id = _bundled_id(bundled, "chime.wav")
        premium_settings.select_bundled_sound(sound_id)
        premium_settings.is_premium = False

        assert resolver.resolve(premium_settings).tier == SoundTier.SYSTEM
        assert premium_settings.selected_bundled_sound_id == sound_id

    def test_below_skips_higher_tiers(self, resolver, premium_settings, custom, audio_file):
        sound_id = custom.import_sound(audio_file)
        premium_settings.select_custom_sound(sound_id)

        sound = resolver.resolve(premium_settings, below=SoundTier.CUSTOM)

        assert sound.tier == SoundTier.SYSTEM
        # A file that exists but failed to decode stays selected
        assert premium_settings.selected_custom_sound_id == sound_id

    def test_system_tier_always_resolves(self, tmp_path, custom, premium_settings):
        from bbq_timer.alarm.sounds import BundledSoundCatalog

        empty = AlertSoundResolver(BundledSoundCatalog([tmp_path / "none"]), custom)
        premium_settings.select_bundled_sound("anything")

        assert empty.resolve(premium_settings).tier == SoundTier.SYSTEM
