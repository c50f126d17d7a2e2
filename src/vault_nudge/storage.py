"""Shared JSON state I/O and markdown frontmatter parsing."""

import json
import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from vault_nudge.config import DATA_DIR as DATA_DIR

STATE_DIR = DATA_DIR / "state"

log = logging.getLogger(__name__)


def read_json(filepath: Path) -> dict[str, Any] | None:
    """Return the JSON object stored at filepath, or None if missing or corrupt."""
    if not filepath.exists():
        return None
    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except (ValueError, OSError):
        log.warning("Ignoring corrupt state file: %s", filepath)
        return None
    if not isinstance(data, dict):
        log.warning("State file is not a JSON object: %s", filepath)
        return None
    return data


def write_json(filepath: Path, data: dict[str, Any]) -> None:
    """Atomic write via tempfile + os.replace."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False)
    fd, tmp = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        os.write(fd, content.encode())
    finally:
        os.close(fd)
    os.replace(tmp, filepath)


# --- Markdown frontmatter ---


def _as_text(value: object) -> object:
    """Undo YAML's timestamp coercion so dates reach callers as written."""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split a note into (yaml_text, body). yaml_text is None without a block.

    The block must open on the very first line with `---` and close with a
    later line that is exactly `---`.
    """
    lines = text.split("\n")
    if not lines or lines[0].rstrip("\r") != "---":
        return None, text
    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r") == "---":
            return "\n".join(lines[1:idx]), "\n".join(lines[idx + 1 :])
    return None, text


def parse_frontmatter(text: str) -> dict[str, Any] | None:
    """Parse the YAML frontmatter of a note into a mapping.

    Returns None when there is no block, the YAML is invalid, or the block
    is not a mapping.
    """
    yaml_text, _ = split_frontmatter(text)
    if yaml_text is None:
        return None
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError:
        log.warning("Invalid YAML frontmatter, ignoring block")
        return None
    if not isinstance(data, dict):
        return None
    return {str(key): _as_text(value) for key, value in data.items()}
