"""User-configurable values loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR: Path = Path(os.environ.get("VAULT_NUDGE_DATA_DIR") or Path.home() / ".vault-nudge")

# Vault root; only required by commands that scan notes.
VAULT_DIR: Path | None = (
    Path(os.environ["VAULT_NUDGE_VAULT"]).expanduser()
    if os.environ.get("VAULT_NUDGE_VAULT")
    else None
)

# When set, these take precedence over the credentials stored in settings.json.
BOT_TOKEN_OVERRIDE: str | None = os.environ.get("TELEGRAM_BOT_TOKEN") or None
CHAT_ID_OVERRIDE: str | None = os.environ.get("TELEGRAM_CHAT_ID") or None
