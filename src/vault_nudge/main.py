"""Entry point for vault-nudge."""

from __future__ import annotations

import asyncio
import atexit
import logging
import os
import signal
import sys
from pathlib import Path

from vault_nudge import config
from vault_nudge import settings as settings_mod
from vault_nudge.notes import Vault
from vault_nudge.scanner import Scanner
from vault_nudge.scheduler import setup_scheduler, trigger_now
from vault_nudge.settings import Settings
from vault_nudge.storage import STATE_DIR
from vault_nudge.telegram import TelegramGateway

PID_FILE = STATE_DIR / "daemon.pid"

HELP = """\
vault-nudge -- Telegram reminders for deadlines in your markdown notes

commands:
  vault-nudge                      Run the scanner daemon
  vault-nudge run                  Run the scanner daemon
  vault-nudge check                Scan once now (signals a running daemon instead)
  vault-nudge test                 Send a test message to check Telegram credentials
  vault-nudge snippet single       Print review_date frontmatter for now
  vault-nudge snippet inline       Print an inline task line for now
  vault-nudge snippet preset NAME  Print due_date/reminder_preset frontmatter
  vault-nudge config show          Show settings
  vault-nudge config set KEY VAL   Change a setting
  vault-nudge preset list          Show presets
  vault-nudge preset export        Print presets as JSON
  vault-nudge preset load FILE     Replace presets from JSON (- for stdin)
  vault-nudge history list         Show delivered reminders
  vault-nudge history count        Number of delivered reminders
  vault-nudge help                 Show this help message

environment (.env):
  VAULT_NUDGE_VAULT       Path to the notes directory (required for run/check)
  VAULT_NUDGE_DATA_DIR    State directory (default ~/.vault-nudge)
  TELEGRAM_BOT_TOKEN      Overrides bot_token from settings
  TELEGRAM_CHAT_ID        Overrides chat_id from settings

Send SIGUSR1 to a running daemon to scan immediately.
"""

log = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("VAULT_NUDGE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _running_daemon_pid() -> int | None:
    """PID of another live vault-nudge process holding PID_FILE, if any."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
    except ValueError:
        return None
    if pid == os.getpid():
        return None
    proc_cmdline = Path(f"/proc/{pid}/cmdline")
    if proc_cmdline.exists() and "vault-nudge" in proc_cmdline.read_bytes().decode(errors="replace"):
        return pid
    return None


def _check_already_running() -> None:
    STATE_DIR.mkdir(parents=True, exist_ok=True)
    pid = _running_daemon_pid()
    if pid is not None:
        print(f"vault-nudge is already running (pid {pid})")
        raise SystemExit(1)
    PID_FILE.write_text(str(os.getpid()))
    atexit.register(PID_FILE.unlink, missing_ok=True)


def _require_vault() -> Vault:
    if config.VAULT_DIR is None:
        print("Set VAULT_NUDGE_VAULT in .env")
        raise SystemExit(1)
    if not config.VAULT_DIR.is_dir():
        print(f"Vault directory not found: {config.VAULT_DIR}")
        raise SystemExit(1)
    return Vault(config.VAULT_DIR)


def build_gateway(settings: Settings) -> TelegramGateway:
    return TelegramGateway(
        config.BOT_TOKEN_OVERRIDE or settings.bot_token,
        config.CHAT_ID_OVERRIDE or settings.chat_id,
    )


def _dispatch_subcommand() -> bool:
    """Route CLI subcommands. Returns True if handled."""
    if len(sys.argv) < 2:
        return False
    cmd = sys.argv[1]
    rest = sys.argv[2:]
    if cmd in ("help", "--help", "-h"):
        print(HELP)
        return True
    if cmd == "check":
        _setup_logging()
        _check_once()
        return True
    routes: dict[str, tuple[str, str]] = {
        "snippet": ("vault_nudge.snippets", "run_snippet_command"),
        "config": ("vault_nudge.settings_cmd", "run_config_command"),
        "preset": ("vault_nudge.settings_cmd", "run_preset_command"),
        "history": ("vault_nudge.settings_cmd", "run_history_command"),
        "test": ("vault_nudge.settings_cmd", "run_test_command"),
    }
    if cmd in routes:
        from importlib import import_module

        mod_path, func_name = routes[cmd]
        getattr(import_module(mod_path), func_name)(rest)
        return True
    if cmd != "run":
        print(f"unknown command: {cmd}\n")
        print(HELP)
        raise SystemExit(2)
    return False


def _check_once() -> None:
    """Manual trigger: one scan pass, then exit.

    A running daemon owns the sent-history, so it is asked to scan (SIGUSR1)
    instead of racing it from a second process.
    """
    pid = _running_daemon_pid()
    if pid is not None:
        try:
            os.kill(pid, signal.SIGUSR1)
        except OSError as e:
            print(f"could not signal vault-nudge daemon (pid {pid}): {e}")
            raise SystemExit(1) from None
        print(f"asked running daemon (pid {pid}) to scan now; see its log for results")
        return

    vault = _require_vault()
    _check_already_running()
    settings = settings_mod.load()
    scanner = Scanner(settings, vault, build_gateway(settings))
    result = asyncio.run(scanner.run())
    if result.skipped == "outside_hours":
        print(f"outside active hours ({settings.start_hour}:00-{settings.end_hour}:00), nothing sent")
        return
    print(f"scanned {result.notes} notes: {result.due} due, {result.sent} sent, {result.failed} failed")
    if result.failed:
        raise SystemExit(1)


async def _run(scanner: Scanner) -> None:
    """Run the scheduler until SIGINT/SIGTERM. SIGUSR1 scans immediately."""
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    scheduler = setup_scheduler(scanner, scanner.settings.check_interval_minutes)
    scheduler.start()
    log.info(
        "Scanning %s every %d min",
        scanner.vault.root,
        scanner.settings.check_interval_minutes,
    )

    loop.add_signal_handler(signal.SIGTERM, stop.set)
    loop.add_signal_handler(signal.SIGINT, stop.set)
    loop.add_signal_handler(signal.SIGUSR1, trigger_now, scheduler)

    try:
        await stop.wait()
    finally:
        scheduler.shutdown(wait=False)
        # Let a scan that is already running finish; only future ticks stop.
        while scanner.busy:
            await asyncio.sleep(0.2)
        log.info("Stopped")


def main() -> None:
    if _dispatch_subcommand():
        return

    _setup_logging()
    vault = _require_vault()
    _check_already_running()

    settings = settings_mod.load()
    scanner = Scanner(settings, vault, build_gateway(settings), reload=settings_mod.load)
    asyncio.run(_run(scanner))


if __name__ == "__main__":
    main()
