"""Enumerate the candidate reminders a note currently carries.

Three independent sources, all of which may appear in one note:

- `review_date: 2025-12-25 10:00` in frontmatter -> one Review reminder.
- `due_date: 2025-12-25` + `reminder_preset: finance` -> one PresetOffset
  reminder per offset in the preset.
- `- [ ] Pay rent [check:: 2025-12-25]` on any line -> one InlineLine reminder.

Deleting the field, removing the tag, or ticking the checkbox makes the
reminder disappear on the next scan. Each candidate re-derives the same
identity on every scan of an unchanged note.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

from vault_nudge.dates import apply_offset, parse_deadline
from vault_nudge.notes import Note
from vault_nudge.settings import Settings, identity
from vault_nudge.templates import render

REVIEW_FIELD = "review_date"
DUE_FIELD = "due_date"
PRESET_FIELD = "reminder_preset"

_INLINE_RE = re.compile(r"- \[ \] .*\[check::\s*(.*?)\]", re.IGNORECASE)
_INLINE_TAG_RE = re.compile(r"\[check::.*?\]", re.IGNORECASE)
_UNCHECKED_BOX = "- [ ]"


@dataclass(frozen=True, slots=True)
class Review:
    @property
    def tag(self) -> str:
        return "review"


@dataclass(frozen=True, slots=True)
class PresetOffset:
    preset_name: str
    offset: str

    @property
    def tag(self) -> str:
        return f"preset:{self.preset_name}:{self.offset}"


@dataclass(frozen=True, slots=True)
class InlineLine:
    line_index: int

    @property
    def tag(self) -> str:
        return f"inline:{self.line_index}"


Kind = Review | PresetOffset | InlineLine


@dataclass(frozen=True, slots=True)
class Candidate:
    note_path: str
    kind: Kind
    trigger: datetime
    template: str
    data: Mapping[str, object]
    allowed_fields: frozenset[str]
    offset: str = ""
    filename: str = field(default="", compare=False)

    @property
    def identity(self) -> str:
        return identity(self.note_path, self.kind.tag, self.trigger)

    def render(self) -> str:
        return render(
            self.template,
            self.allowed_fields,
            self.data,
            filename=self.filename,
            offset=self.offset,
        )


def _review(note: Note, fm: Mapping[str, object], settings: Settings, tz: tzinfo) -> list[Candidate]:
    value = fm.get(REVIEW_FIELD)
    if not value:
        return []
    trigger = parse_deadline(value, tz)
    if trigger is None:
        return []
    return [
        Candidate(
            note_path=note.path,
            kind=Review(),
            trigger=trigger,
            template=settings.default_review_template,
            data=fm,
            allowed_fields=frozenset(settings.allowed_fields_single),
            filename=note.basename,
        )
    ]


def _presets(note: Note, fm: Mapping[str, object], settings: Settings, tz: tzinfo) -> list[Candidate]:
    due, preset_name = fm.get(DUE_FIELD), fm.get(PRESET_FIELD)
    if not due or not preset_name or not isinstance(preset_name, str):
        return []
    preset = settings.find_preset(preset_name)
    base = parse_deadline(due, tz)
    if preset is None or base is None:
        return []
    allowed = frozenset(settings.allowed_fields_preset)
    return [
        Candidate(
            note_path=note.path,
            kind=PresetOffset(preset.name, offset),
            trigger=apply_offset(base, offset),
            template=preset.template,
            data=fm,
            allowed_fields=allowed,
            offset=offset,
            filename=note.basename,
        )
        for offset in preset.offsets
    ]


def task_text(line: str) -> str:
    """Line text without its checkbox marker and check tag."""
    return _INLINE_TAG_RE.sub("", line, count=1).replace(_UNCHECKED_BOX, "", 1).strip()


def _inline(note: Note, settings: Settings, tz: tzinfo) -> list[Candidate]:
    candidates = []
    for idx, line in enumerate(note.lines):
        match = _INLINE_RE.search(line)
        if match is None:
            continue
        trigger = parse_deadline(match.group(1).strip(), tz)
        if trigger is None:
            continue
        candidates.append(
            Candidate(
                note_path=note.path,
                kind=InlineLine(idx),
                trigger=trigger,
                template=settings.default_inline_template,
                data={"task": task_text(line)},
                allowed_fields=frozenset({"task"}),
                filename=note.basename,
            )
        )
    return candidates


def extract(note: Note, settings: Settings, tz: tzinfo) -> list[Candidate]:
    """All candidate reminders for one note: review, then presets, then inline."""
    candidates: list[Candidate] = []
    if note.frontmatter:
        candidates += _review(note, note.frontmatter, settings, tz)
        candidates += _presets(note, note.frontmatter, settings, tz)
    candidates += _inline(note, settings, tz)
    return candidates
