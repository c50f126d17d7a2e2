"""Persisted settings, reminder presets, and the sent-history store.

Settings are a single JSON object under STATE_DIR: loaded at startup as
defaults merged with whatever is on disk, mutated by the CLI and by scans
(history commits only), and saved after every scan and every edit.

The sent-history maps a reminder identity (`path::kind::trigger_ms`) to the
epoch milliseconds at which it was delivered. It is append-only: removing a
deadline from a note does not clear its entry, so restoring the same date
never re-notifies. The map therefore grows without bound over the life of
the settings file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from vault_nudge.storage import STATE_DIR, read_json, write_json
from vault_nudge.templates import parse_field_list

SETTINGS_FILE: Path = STATE_DIR / "settings.json"
DEFAULT_PRESET_TEMPLATE = "🔔 Reminder: {filename}"

log = logging.getLogger(__name__)


class SettingsError(ValueError):
    """A settings value was rejected; nothing was changed."""


class PresetConfigError(SettingsError):
    """Preset definitions failed to parse or validate."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("; ".join(problems))


@dataclass(frozen=True, slots=True)
class ReminderPreset:
    name: str
    offsets: list[str]
    message_template: str | None = None

    @property
    def template(self) -> str:
        return self.message_template or DEFAULT_PRESET_TEMPLATE


def _default_presets() -> list[ReminderPreset]:
    return [
        ReminderPreset(
            name="finance",
            offsets=["-7d", "0m"],
            message_template="💸 Pay: {filename}\nAmount: {payment_sum}",
        )
    ]


@dataclass(slots=True)
class Settings:
    bot_token: str = ""
    chat_id: str = ""
    check_interval_minutes: int = 60
    timezone_offset: float = 0
    start_hour: int = 9
    end_hour: int = 21
    default_review_template: str = "📅 Reminder: {filename}\nPlease review this note."
    default_inline_template: str = "✅ Task: {task}\nFrom note: {filename}"
    allowed_fields_single: list[str] = field(default_factory=lambda: ["priority", "type"])
    allowed_fields_preset: list[str] = field(
        default_factory=lambda: ["payment_sum", "client", "project_link"]
    )
    presets: list[ReminderPreset] = field(default_factory=_default_presets)
    sent_history: dict[str, int] = field(default_factory=dict)

    def find_preset(self, name: str) -> ReminderPreset | None:
        """Exact, case-sensitive lookup. First match wins."""
        for preset in self.presets:
            if preset.name == name:
                return preset
        return None

    def has_fired(self, identity: str) -> bool:
        return identity in self.sent_history

    def mark_fired(self, identity: str, at: datetime) -> None:
        self.sent_history[identity] = int(at.timestamp() * 1000)


def identity(note_path: str, kind: str, trigger: datetime) -> str:
    """Stable key for one (note, logical reminder, trigger instant) triple."""
    return f"{note_path}::{kind}::{int(trigger.timestamp() * 1000)}"


# --- Presets ---

PRESETS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name", "offsets"],
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "offsets": {"type": "array", "items": {"type": "string"}},
            "message_template": {"type": ["string", "null"]},
        },
    },
}


def parse_presets(raw: str | list[Any]) -> list[ReminderPreset]:
    """Parse preset definitions from JSON text or an already-decoded list.

    Raises PresetConfigError listing every problem; callers keep their
    previous presets in that case.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise PresetConfigError([f"invalid JSON: {e}"]) from e

    validator = Draft7Validator(PRESETS_SCHEMA)
    errors = sorted(validator.iter_errors(raw), key=lambda err: [str(p) for p in err.path])
    if errors:
        problems = []
        for err in errors:
            where = "/".join(str(p) for p in err.path) or "<root>"
            problems.append(f"{where}: {err.message}")
        raise PresetConfigError(problems)

    return [
        ReminderPreset(
            name=item["name"],
            offsets=list(item["offsets"]),
            message_template=item.get("message_template"),
        )
        for item in raw
    ]


def presets_to_json(presets: list[ReminderPreset]) -> str:
    data = []
    for preset in presets:
        item = asdict(preset)
        if item["message_template"] is None:
            del item["message_template"]
        data.append(item)
    return json.dumps(data, indent=2, ensure_ascii=False)


# --- Load / save ---


_NUMERIC_KEYS = ("check_interval_minutes", "timezone_offset", "start_hour", "end_hour")


def load() -> Settings:
    """Defaults merged with the persisted object. Unknown keys are ignored.

    Stored values of the wrong type or out of range keep their default, with
    a warning.
    """
    settings = Settings()
    data = read_json(SETTINGS_FILE)
    if data is None:
        return settings

    known = {f.name for f in fields(Settings)}
    for key, value in data.items():
        if key not in known or key == "presets":
            continue
        if key in _NUMERIC_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float, str)):
                log.warning("Ignoring stored %s=%r: not a number", key, value)
                continue
            if isinstance(value, float) and value.is_integer() and key != "timezone_offset":
                value = int(value)
            try:
                update(settings, key, str(value))
            except SettingsError as e:
                log.warning("Ignoring stored %s: %s", key, e)
            continue
        default = getattr(settings, key)
        if isinstance(default, str) and isinstance(value, int) and not isinstance(value, bool):
            value = str(value)  # chat_id written as a number
        if not isinstance(value, type(default)):
            log.warning("Ignoring stored %s=%r: expected %s", key, value, type(default).__name__)
            continue
        setattr(settings, key, value)

    if "presets" in data:
        try:
            settings.presets = parse_presets(data["presets"])
        except PresetConfigError as e:
            log.warning("Stored presets are invalid, using defaults: %s", e)
    return settings


def save(settings: Settings) -> None:
    data = asdict(settings)
    data["presets"] = json.loads(presets_to_json(settings.presets))
    write_json(SETTINGS_FILE, data)


# --- Editing ---


def _parse_int(key: str, raw: str, low: int, high: int) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise SettingsError(f"{key} must be an integer, got {raw!r}") from None
    if not low <= value <= high:
        raise SettingsError(f"{key} must be between {low} and {high}, got {value}")
    return value


def _parse_offset_hours(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise SettingsError(f"timezone_offset must be a number, got {raw!r}") from None
    if not -24 < value < 24:
        raise SettingsError(f"timezone_offset must be within (-24, 24), got {value}")
    return int(value) if value.is_integer() else value


EDITABLE_KEYS = (
    "bot_token",
    "chat_id",
    "check_interval_minutes",
    "timezone_offset",
    "start_hour",
    "end_hour",
    "default_review_template",
    "default_inline_template",
    "allowed_fields_single",
    "allowed_fields_preset",
)


def update(settings: Settings, key: str, raw: str) -> None:
    """Set one editable field from its CLI text form. Raises SettingsError."""
    if key not in EDITABLE_KEYS:
        raise SettingsError(f"unknown setting {key!r} (editable: {', '.join(EDITABLE_KEYS)})")

    value: object
    if key == "check_interval_minutes":
        value = _parse_int(key, raw, 1, 7 * 24 * 60)
    elif key == "timezone_offset":
        value = _parse_offset_hours(raw)
    elif key == "start_hour":
        value = _parse_int(key, raw, 0, 23)
    elif key == "end_hour":
        value = _parse_int(key, raw, 0, 24)
    elif key.startswith("allowed_fields_"):
        value = parse_field_list(raw)
    elif key.startswith("default_"):
        value = raw.replace("\\n", "\n")
    else:
        value = raw.strip()
    setattr(settings, key, value)
