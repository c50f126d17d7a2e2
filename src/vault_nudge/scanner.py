"""Scan pass over the vault: find due reminders, deliver each exactly once.

One Scanner holds the settings, the note source and the gateway for the
life of the process. Every tick (timer or manual) calls `run()`:

    Idle -> gate on active hours -> Scanning -> save -> Idle

A reminder is delivered when its trigger is at or before now and its
identity is not in the sent-history. Only a successful send records it, so
failed sends are retried on the next tick. Overlapping calls on the same
scanner are skipped, not queued.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from vault_nudge import settings as settings_mod
from vault_nudge.dates import timezone_for
from vault_nudge.extractor import Candidate, extract
from vault_nudge.notes import Note, Vault
from vault_nudge.settings import Settings
from vault_nudge.telegram import Gateway

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanResult:
    now: datetime
    skipped: str | None = None  # "outside_hours" or "busy"
    notes: int = 0
    due: int = 0
    sent: int = 0
    failed: int = 0


def within_active_hours(now: datetime, start_hour: int, end_hour: int) -> bool:
    return start_hour <= now.hour < end_hour


class Scanner:
    def __init__(
        self,
        settings: Settings,
        vault: Vault,
        gateway: Gateway,
        *,
        save: Callable[[Settings], None] = settings_mod.save,
        reload: Callable[[], Settings] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.vault = vault
        self.gateway = gateway
        self._save = save
        self._reload = reload
        self._clock = clock
        self._busy = False
        self.status = "Ready"

    @property
    def busy(self) -> bool:
        return self._busy

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(timezone_for(self.settings.timezone_offset))

    def _set_status(self, text: str) -> None:
        self.status = text
        log.info("Status: %s", text)

    async def run(self) -> ScanResult:
        if self._reload is not None and not self._busy:
            # Picks up edits made by the CLI since the last save.
            self.settings = self._reload()
        now = self.now()
        if not within_active_hours(now, self.settings.start_hour, self.settings.end_hour):
            self._set_status(f"Sleep (Zzz... {now.hour}:00)")
            return ScanResult(now=now, skipped="outside_hours")

        if self._busy:
            log.info("Scan already in progress, skipping this tick")
            return ScanResult(now=now, skipped="busy")

        self._busy = True
        try:
            self._set_status("Scanning...")
            result = await self._scan(now)
            self._save(self.settings)
        finally:
            self._busy = False

        failures = f" ({result.failed} failed)" if result.failed else ""
        self._set_status(f"Last scan {now:%H:%M}{failures}")
        log.info(
            "Scanned %d notes: %d due, %d sent, %d failed",
            result.notes,
            result.due,
            result.sent,
            result.failed,
        )
        return result

    async def _scan(self, now: datetime) -> ScanResult:
        tz = now.tzinfo or timezone_for(self.settings.timezone_offset)
        notes = due = sent = failed = 0
        async for note in self.vault.notes():
            notes += 1
            try:
                candidates = extract(note, self.settings, tz)
            except Exception:
                log.exception("Failed to extract reminders from %s", note.path)
                continue
            for candidate in candidates:
                outcome = await self._process(note, candidate, now)
                if outcome is None:
                    continue
                due += 1
                if outcome:
                    sent += 1
                else:
                    failed += 1
        return ScanResult(now=now, notes=notes, due=due, sent=sent, failed=failed)

    async def _process(self, note: Note, candidate: Candidate, now: datetime) -> bool | None:
        """Deliver one candidate if due. Returns None when nothing was attempted."""
        key = candidate.identity
        if self.settings.has_fired(key) or candidate.trigger > now:
            return None
        try:
            delivered = await self.gateway.send(candidate.render())
        except Exception:
            log.exception("Delivery raised for %s", key)
            return False
        if not delivered:
            log.warning("Delivery failed for %s, will retry next scan", key)
            return False
        self.settings.mark_fired(key, now)
        log.info("Sent %s reminder for %s", candidate.kind.tag, note.path)
        return True
