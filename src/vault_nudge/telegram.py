"""Telegram delivery gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import aiohttp

log = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"


class Gateway(Protocol):
    async def send(self, message: str) -> bool: ...


class TelegramGateway:
    """Posts messages to one chat via the Bot API `sendMessage` method.

    `send` never raises for transport problems: failures come back as False
    so the caller can leave the reminder for the next scan.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        *,
        session: aiohttp.ClientSession | None = None,
        base_url: str = API_BASE,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.base_url = base_url.rstrip("/")
        self._session = session

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send(self, message: str) -> bool:
        if not self.configured:
            log.debug("Telegram credentials missing, not sending")
            return False

        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": message, "parse_mode": "Markdown"}
        try:
            if self._session is not None:
                return await self._post(self._session, url, payload)
            async with aiohttp.ClientSession() as session:
                return await self._post(session, url, payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("Telegram send failed: %s", e)
            return False

    @staticmethod
    async def _post(session: aiohttp.ClientSession, url: str, payload: dict[str, str]) -> bool:
        async with session.post(url, json=payload) as resp:
            if not resp.ok:
                body = await resp.text()
                log.warning("Telegram rejected message (%d): %.200s", resp.status, body)
            return resp.ok
