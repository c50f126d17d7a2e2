"""Ready-to-paste markup for the three reminder kinds."""

import argparse
import sys
from collections.abc import Iterable
from datetime import datetime

from vault_nudge import settings as settings_mod
from vault_nudge.dates import format_minute, timezone_for
from vault_nudge.extractor import DUE_FIELD, PRESET_FIELD, REVIEW_FIELD
from vault_nudge.settings import Settings


def yaml_field_stub(fields: Iterable[str]) -> str:
    """Empty `key: ` lines for the allow-listed fields, one per line."""
    return "".join(f"{name}: \n" for name in fields)


def single_snippet(settings: Settings, now: datetime) -> str:
    stub = yaml_field_stub(settings.allowed_fields_single)
    return f"---\n{REVIEW_FIELD}: {format_minute(now)}\n{stub}---\n"


def inline_snippet(now: datetime) -> str:
    return f"- [ ] New Task [check:: {format_minute(now)}]"


def preset_snippet(settings: Settings, preset_name: str, now: datetime) -> str:
    """Frontmatter for a recurring preset. Raises KeyError for unknown presets."""
    preset = settings.find_preset(preset_name)
    if preset is None:
        raise KeyError(preset_name)
    stub = yaml_field_stub(settings.allowed_fields_preset)
    return f"---\n{DUE_FIELD}: {now:%Y-%m-%d}\n{PRESET_FIELD}: {preset.name}\n{stub}---\n"


def run_snippet_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="vault-nudge snippet")
    sub = parser.add_subparsers(dest="kind")
    sub.add_parser("single", help="Frontmatter with review_date set to now")
    sub.add_parser("inline", help="Unchecked task line with a check tag for now")
    preset_p = sub.add_parser("preset", help="Frontmatter for a recurring preset")
    preset_p.add_argument("name", help="Preset name")
    args = parser.parse_args(argv)

    settings = settings_mod.load()
    now = datetime.now(timezone_for(settings.timezone_offset))

    if args.kind == "single":
        print(single_snippet(settings, now), end="")
    elif args.kind == "inline":
        print(inline_snippet(now))
    elif args.kind == "preset":
        try:
            print(preset_snippet(settings, args.name, now), end="")
        except KeyError:
            known = ", ".join(p.name for p in settings.presets) or "none"
            print(f"unknown preset {args.name!r} (known: {known})", file=sys.stderr)
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)
