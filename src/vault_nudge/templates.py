"""Placeholder substitution for notification messages.

Only `{filename}`, `{offset}` and allow-listed field names are filled in.
Unknown or empty placeholders stay in the text as written, so a template
that references a missing field is visibly broken instead of silently blank.
"""

import re
from collections.abc import Iterable, Mapping

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*?)\}")

# Inline tasks render {task} without any configured allow-list.
ALWAYS_ALLOWED = frozenset({"task"})


def parse_field_list(text: str) -> list[str]:
    """Split a comma-separated field list, e.g. "priority, type"."""
    return [part.strip() for part in text.split(",") if part.strip()]


def _stringify(value: object) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def render(
    template: str,
    allowed_fields: Iterable[str],
    data: Mapping[str, object] | None,
    *,
    filename: str,
    offset: str = "",
) -> str:
    text = template.replace("{filename}", filename).replace("{offset}", offset)
    allowed = set(allowed_fields) | ALWAYS_ALLOWED
    fields = data or {}

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in allowed and fields.get(key) is not None:
            return _stringify(fields[key])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_substitute, text)
