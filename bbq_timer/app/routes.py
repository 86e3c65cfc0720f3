"""JSON routes for the BBQ timer control surface."""

from pathlib import Path

from flask import Blueprint, current_app, jsonify, request

from . import EXTENSION_KEY
from ..alarm.sounds import SystemSound
from ..settings import EntitlementRequired, SoundTier
from ..timers.orchestrator import (
    PREHEAT_ID, AlertContext, PermanentTimerError, TimerLimitReached, UnknownTimerError,
)
from ..voice.tts import list_voices

main_bp = Blueprint("main", __name__, url_prefix="/api")

# Countdown actions that take no arguments
TIMER_ACTIONS = {
    "start": lambda t: t.start(),
    "stop": lambda t: t.stop(),
    "toggle": lambda t: t.toggle(),
    "reset": lambda t: t.reset(),
    "reset-elapsed": lambda t: t.reset_elapsed(),
    "reset-interval": lambda t: t.reset_interval(),
}

# Settings that can be changed with PUT /api/settings
BOOLEAN_SETTINGS = (
    "sound_enabled",
    "haptics_enabled",
    "voice_announcements_enabled",
    "announce_only_with_headphones",
    "is_premium",
)


def _orchestrator():
    return current_app.extensions[EXTENSION_KEY]


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _countdown(timer_id: str):
    orchestrator = _orchestrator()
    if timer_id == PREHEAT_ID:
        return orchestrator.preheat
    return orchestrator.get_slot(timer_id)


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


@main_bp.errorhandler(UnknownTimerError)
def unknown_timer(e):
    return _error(f"Unknown timer: {e.args[0]}", 404)


@main_bp.errorhandler(EntitlementRequired)
def entitlement_required(e):
    return _error(str(e), 403)


@main_bp.errorhandler(TimerLimitReached)
@main_bp.errorhandler(PermanentTimerError)
def conflict(e):
    return _error(str(e), 409)


@main_bp.errorhandler(ValueError)
@main_bp.errorhandler(TypeError)
def bad_request(e):
    return _error(str(e), 400)


# ============== State ==============

@main_bp.route("/state")
def state():
    """Every timer, the preheat timer and both alert contexts."""
    return jsonify(_orchestrator().snapshot())


# ============== Timers ==============

@main_bp.route("/timers", methods=["POST"])
def add_timer():
    data = _json_body()
    timer = _orchestrator().add_timer(
        str(data.get("name", "")),
        preset1=int(data.get("preset1", 300)),
        preset2=int(data.get("preset2", 600)),
    )
    return jsonify(timer.to_dict()), 201


@main_bp.route("/timers/<timer_id>", methods=["DELETE"])
def remove_timer(timer_id):
    _orchestrator().remove_timer(timer_id)
    return jsonify({"status": "ok"})


@main_bp.route("/timers/<timer_id>/name", methods=["PUT"])
def rename_timer(timer_id):
    timer = _orchestrator().rename_timer(timer_id, str(_json_body().get("name", "")))
    return jsonify(timer.to_dict())


@main_bp.route("/timers/<timer_id>/presets/<int:index>", methods=["PUT"])
def set_preset(timer_id, index):
    orchestrator = _orchestrator()
    orchestrator.get_slot(timer_id)
    orchestrator.settings.set_preset(timer_id, index, int(_json_body().get("seconds", 0)))
    return jsonify({"presets": list(orchestrator.settings.get_presets(timer_id))})


@main_bp.route("/timers/<timer_id>/presets/<int:index>/start", methods=["POST"])
def start_preset(timer_id, index):
    timer = _orchestrator().select_preset(timer_id, index)
    return jsonify(timer.to_dict())


@main_bp.route("/timers/<timer_id>/interval", methods=["PUT"])
def set_interval(timer_id):
    timer = _countdown(timer_id)
    timer.set_interval(int(_json_body().get("seconds", 0)))
    return jsonify(timer.to_dict())


@main_bp.route("/timers/<timer_id>/<action>", methods=["POST"])
def timer_action(timer_id, action):
    if action not in TIMER_ACTIONS:
        return _error(f"Unknown action: {action}", 404)
    timer = _countdown(timer_id)
    TIMER_ACTIONS[action](timer)
    return jsonify(timer.to_dict())


# ============== Preheat ==============

@main_bp.route("/preheat/start", methods=["POST"])
def start_preheat():
    data = _json_body()
    orchestrator = _orchestrator()
    if "duration" in data:
        orchestrator.settings.preheat_duration = int(data["duration"])
    return jsonify(orchestrator.start_preheat().to_dict())


# ============== Alerts ==============

@main_bp.route("/alerts/<context>/dismiss", methods=["POST"])
def dismiss_alert(context):
    try:
        context = AlertContext(context)
    except ValueError:
        return _error(f"Unknown alert: {context}", 404)
    was_presented = _orchestrator().dismiss(context)
    return jsonify({"status": "ok", "was_presented": was_presented})


@main_bp.route("/alerts/dismiss", methods=["POST"])
def dismiss_all_alerts():
    _orchestrator().dismiss_all()
    return jsonify({"status": "ok"})


# ============== Settings ==============

def _settings_dict(settings) -> dict:
    return {
        "sound_enabled": settings.sound_enabled,
        "haptics_enabled": settings.haptics_enabled,
        "voice_announcements_enabled": settings.voice_announcements_enabled,
        "announce_only_with_headphones": settings.announce_only_with_headphones,
        "is_premium": settings.is_premium,
        "custom_announcement_message": settings.custom_announcement_message,
        "selected_voice_id": settings.selected_voice_id,
        "preheat_duration": settings.preheat_duration,
        "alert_sound": settings.alert_sound.to_dict(),
    }


@main_bp.route("/settings")
def get_settings():
    return jsonify(_settings_dict(_orchestrator().settings))


@main_bp.route("/settings", methods=["PUT"])
def update_settings():
    data = _json_body()
    settings = _orchestrator().settings

    for key in BOOLEAN_SETTINGS:
        if key in data:
            if not isinstance(data[key], bool):
                return _error(f"{key} must be true or false", 400)
            setattr(settings, key, data[key])

    if "custom_announcement_message" in data:
        settings.custom_announcement_message = str(data["custom_announcement_message"] or "")
    if "selected_voice_id" in data:
        settings.selected_voice_id = data["selected_voice_id"]
    if "preheat_duration" in data:
        settings.preheat_duration = int(data["preheat_duration"])

    return jsonify(_settings_dict(settings))


@main_bp.route("/voices")
def voices():
    return jsonify([
        {"id": v.id, "name": v.name, "locale": v.locale} for v in list_voices()
    ])


# ============== Sounds ==============

@main_bp.route("/sounds")
def list_sounds():
    """System sounds, bundled sounds by category and the custom library."""
    resolver = _orchestrator().resolver
    bundled = resolver.bundled
    return jsonify({
        "system": [{"id": s.value, "name": s.display_name} for s in SystemSound],
        "bundled": [
            {"category": category, "sounds": [s.to_dict() for s in bundled.sounds_in(category)]}
            for category in bundled.categories
        ],
        "custom": [s.to_dict() for s in resolver.custom.list()],
        "selected": _orchestrator().settings.alert_sound.to_dict(),
    })


@main_bp.route("/sounds/select", methods=["POST"])
def select_sound():
    data = _json_body()
    orchestrator = _orchestrator()
    settings = orchestrator.settings
    sound_id = str(data.get("id", ""))

    try:
        tier = SoundTier(data.get("tier"))
    except ValueError:
        return _error("tier must be one of system, bundled, custom", 400)

    if tier == SoundTier.SYSTEM:
        try:
            settings.select_system_sound(SystemSound(sound_id))
        except ValueError:
            return _error(f"Unknown system sound: {sound_id}", 404)
    elif tier == SoundTier.BUNDLED:
        if orchestrator.resolver.bundled.get(sound_id) is None:
            return _error(f"Unknown bundled sound: {sound_id}", 404)
        settings.select_bundled_sound(sound_id)
    else:
        if orchestrator.resolver.custom.get(sound_id) is None:
            return _error(f"Unknown custom sound: {sound_id}", 404)
        settings.select_custom_sound(sound_id)

    return jsonify({"selected": settings.alert_sound.to_dict()})


@main_bp.route("/sounds/custom", methods=["POST"])
def import_custom_sound():
    """Import a sound file already on this machine: {"path": ..., "name": ...}."""
    data = _json_body()
    settings = _orchestrator().settings
    if not settings.is_premium:
        raise EntitlementRequired("Custom sounds require premium")

    source = Path(str(data.get("path", "")))
    if not source.is_file():
        return _error(f"File not found: {source}", 400)

    sound_id = _orchestrator().resolver.custom.import_sound(source, data.get("name"))
    if sound_id is None:
        return _error("Could not import sound", 400)
    return jsonify({"status": "ok", "id": sound_id}), 201


@main_bp.route("/sounds/custom/<sound_id>", methods=["PUT"])
def rename_custom_sound(sound_id):
    library = _orchestrator().resolver.custom
    if library.get(sound_id) is None:
        return _error(f"Unknown custom sound: {sound_id}", 404)
    if not library.rename(sound_id, str(_json_body().get("name", ""))):
        return _error("Could not rename sound", 400)
    return jsonify(library.get(sound_id).to_dict())


@main_bp.route("/sounds/custom/<sound_id>", methods=["DELETE"])
def delete_custom_sound(sound_id):
    orchestrator = _orchestrator()
    library = orchestrator.resolver.custom
    if library.get(sound_id) is None:
        return _error(f"Unknown custom sound: {sound_id}", 404)
    if not library.delete(sound_id):
        return _error("Could not delete sound", 500)
    if orchestrator.settings.selected_custom_sound_id == sound_id:
        orchestrator.settings.deselect_sound(SoundTier.CUSTOM)
    return jsonify({"status": "ok"})
