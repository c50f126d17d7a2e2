"""CLI handlers for `vault-nudge config`, `preset`, `history` and `test`."""

import argparse
import asyncio
import sys
from datetime import datetime, timezone

from vault_nudge import settings as settings_mod
from vault_nudge.settings import EDITABLE_KEYS, PresetConfigError, SettingsError
from vault_nudge.telegram import Gateway

_SECRET_KEYS = ("bot_token",)
TEST_MESSAGE = "Ping! Connection OK."


def _mask(value: str) -> str:
    if not value:
        return "(unset)"
    return value[:4] + "..." if len(value) > 8 else "***"


def run_config_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="vault-nudge config")
    sub = parser.add_subparsers(dest="action")

    sub.add_parser("show", help="Show current settings")

    set_p = sub.add_parser("set", help="Change one setting")
    set_p.add_argument("key", choices=EDITABLE_KEYS)
    set_p.add_argument("value", help="New value (comma-separated for field lists)")

    args = parser.parse_args(argv)

    if args.action == "show":
        _handle_show()
    elif args.action == "set":
        _handle_set(args.key, args.value)
    else:
        parser.print_help()
        sys.exit(1)


def _handle_show() -> None:
    current = settings_mod.load()
    for key in EDITABLE_KEYS:
        value = getattr(current, key)
        if key in _SECRET_KEYS:
            shown = _mask(value)
        elif isinstance(value, list):
            shown = ", ".join(value) or "(none)"
        else:
            shown = repr(value) if isinstance(value, str) else str(value)
        print(f"  {key:26s} {shown}")
    print(f"  {'presets':26s} {', '.join(p.name for p in current.presets) or '(none)'}")
    print(f"  {'sent_history':26s} {len(current.sent_history)} entries")


def _handle_set(key: str, value: str) -> None:
    current = settings_mod.load()
    try:
        settings_mod.update(current, key, value)
    except SettingsError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    settings_mod.save(current)
    print(f"updated {key}")


def run_preset_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="vault-nudge preset")
    sub = parser.add_subparsers(dest="action")

    sub.add_parser("list", help="Show configured presets")
    sub.add_parser("export", help="Print presets as JSON")

    load_p = sub.add_parser("load", help="Replace all presets from a JSON file")
    load_p.add_argument("file", help="Path to a JSON array, or - for stdin")

    args = parser.parse_args(argv)

    if args.action == "list":
        _handle_preset_list()
    elif args.action == "export":
        print(settings_mod.presets_to_json(settings_mod.load().presets))
    elif args.action == "load":
        _handle_preset_load(args.file)
    else:
        parser.print_help()
        sys.exit(1)


def _handle_preset_list() -> None:
    presets = settings_mod.load().presets
    if not presets:
        print("no presets")
        return
    for p in presets:
        template = p.template.replace("\n", "\\n")
        print(f"  {p.name:16s} {' '.join(p.offsets):24s}  {template}")


def _handle_preset_load(path: str) -> None:
    if path == "-":
        text = sys.stdin.read()
    else:
        with open(path, encoding="utf-8") as f:
            text = f.read()

    current = settings_mod.load()
    try:
        presets = settings_mod.parse_presets(text)
    except PresetConfigError as e:
        print("error: presets not changed", file=sys.stderr)
        for problem in e.problems:
            print(f"  {problem}", file=sys.stderr)
        sys.exit(1)
    current.presets = presets
    settings_mod.save(current)
    print(f"loaded {len(presets)} preset(s): {', '.join(p.name for p in presets)}")


def run_history_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="vault-nudge history")
    sub = parser.add_subparsers(dest="action")
    sub.add_parser("list", help="Show delivered reminders")
    sub.add_parser("count", help="Number of history entries")
    args = parser.parse_args(argv)

    history = settings_mod.load().sent_history
    if args.action == "count":
        print(len(history))
    elif args.action == "list":
        if not history:
            print("no reminders sent yet")
            return
        for key, sent_ms in sorted(history.items(), key=lambda kv: kv[1]):
            sent = datetime.fromtimestamp(sent_ms / 1000, tz=timezone.utc)
            print(f"  {sent:%Y-%m-%d %H:%M}Z  {key}")
    else:
        parser.print_help()
        sys.exit(1)


async def send_test_message(gateway: Gateway, message: str = TEST_MESSAGE) -> bool:
    return await gateway.send(message)


def run_test_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="vault-nudge test", description="Send a test message")
    parser.add_argument("--message", default=TEST_MESSAGE, help="Text to send")
    args = parser.parse_args(argv)

    from vault_nudge.main import build_gateway

    gateway = build_gateway(settings_mod.load())
    if not gateway.configured:
        print("error: bot_token and chat_id must both be set", file=sys.stderr)
        sys.exit(1)
    if not asyncio.run(send_test_message(gateway, args.message)):
        print("error: test message was not delivered, check bot_token and chat_id", file=sys.stderr)
        sys.exit(1)
    print(f"test message sent to chat {gateway.chat_id}")
