"""Notes and the vault they are read from."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from vault_nudge.storage import parse_frontmatter

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Note:
    path: str  # vault-relative POSIX path, e.g. "Finance/rent.md"
    frontmatter: dict[str, Any] | None
    lines: list[str]

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).stem

    @staticmethod
    def from_text(path: str, text: str) -> Note:
        return Note(path=path, frontmatter=parse_frontmatter(text), lines=text.split("\n"))


class Vault:
    """A directory tree of markdown notes."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def paths(self) -> list[Path]:
        """All .md files under root, skipping dot-directories like .obsidian or .trash."""
        if not self.root.is_dir():
            return []
        return sorted(
            p
            for p in self.root.rglob("*.md")
            if p.is_file() and not any(part.startswith(".") for part in p.relative_to(self.root).parts)
        )

    async def read(self, filepath: Path) -> Note:
        text = await asyncio.to_thread(filepath.read_text, encoding="utf-8")
        return Note.from_text(filepath.relative_to(self.root).as_posix(), text)

    async def notes(self) -> AsyncIterator[Note]:
        """Yield each note in path order. Unreadable files are logged and skipped."""
        for filepath in self.paths():
            try:
                note = await self.read(filepath)
            except (OSError, UnicodeDecodeError):
                log.warning("Skipping unreadable note: %s", filepath)
                continue
            yield note
