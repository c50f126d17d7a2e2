"""Tests for main.py — subcommand routing and the one-shot check."""

import os
import signal
from datetime import datetime, timezone

import pytest

import vault_nudge.main as main_mod
from vault_nudge import config
from vault_nudge import settings as settings_mod
from vault_nudge.settings import Settings


def test_help(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["vault-nudge", "help"])

    assert main_mod._dispatch_subcommand() is True
    assert "vault-nudge check" in capsys.readouterr().out


def test_no_args_runs_daemon(monkeypatch):
    monkeypatch.setattr("sys.argv", ["vault-nudge"])

    assert main_mod._dispatch_subcommand() is False


def test_run_subcommand_runs_daemon(monkeypatch):
    monkeypatch.setattr("sys.argv", ["vault-nudge", "run"])

    assert main_mod._dispatch_subcommand() is False


def test_unknown_subcommand_exits(monkeypatch):
    monkeypatch.setattr("sys.argv", ["vault-nudge", "bogus"])

    with pytest.raises(SystemExit):
        main_mod._dispatch_subcommand()


def test_routes_to_config_command(data_dir, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["vault-nudge", "config", "show"])

    assert main_mod._dispatch_subcommand() is True
    assert "start_hour" in capsys.readouterr().out


def test_require_vault_unset(monkeypatch):
    monkeypatch.setattr(config, "VAULT_DIR", None)

    with pytest.raises(SystemExit):
        main_mod._require_vault()


def test_build_gateway_prefers_env_overrides(monkeypatch):
    monkeypatch.setattr(config, "BOT_TOKEN_OVERRIDE", "env-token")
    monkeypatch.setattr(config, "CHAT_ID_OVERRIDE", None)

    gateway = main_mod.build_gateway(Settings(bot_token="stored", chat_id="7"))

    assert (gateway.bot_token, gateway.chat_id) == ("env-token", "7")


def test_check_once_outside_hours(data_dir, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(config, "VAULT_DIR", tmp_path)
    settings_mod.save(Settings(start_hour=0, end_hour=0))

    main_mod._check_once()

    assert "outside active hours" in capsys.readouterr().out


def test_check_once_reports_failures(data_dir, tmp_path, monkeypatch, capsys):
    vault = tmp_path / "vault"
    vault.mkdir()
    (vault / "n.md").write_text(f"---\nreview_date: {datetime.now(timezone.utc):%Y-%m-%d}\n---\n")
    monkeypatch.setattr(config, "VAULT_DIR", vault)
    monkeypatch.setattr(config, "BOT_TOKEN_OVERRIDE", None)
    monkeypatch.setattr(config, "CHAT_ID_OVERRIDE", None)
    settings_mod.save(Settings(start_hour=0, end_hour=24, timezone_offset=0))

    with pytest.raises(SystemExit):
        main_mod._check_once()

    assert "1 due, 0 sent, 1 failed" in capsys.readouterr().out
    assert settings_mod.load().sent_history == {}


def test_check_already_running_writes_pid(data_dir):
    main_mod._check_already_running()

    assert main_mod.PID_FILE.read_text().strip().isdigit()


def test_check_signals_running_daemon_instead_of_scanning(data_dir, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(config, "VAULT_DIR", tmp_path)
    monkeypatch.setattr(main_mod, "_running_daemon_pid", lambda: 4242)
    sent = []
    monkeypatch.setattr(main_mod.os, "kill", lambda pid, sig: sent.append((pid, sig)))

    main_mod._check_once()

    assert sent == [(4242, signal.SIGUSR1)]
    assert "asked running daemon (pid 4242)" in capsys.readouterr().out
    assert not settings_mod.SETTINGS_FILE.exists()


def test_check_fails_when_daemon_cannot_be_signalled(data_dir, monkeypatch):
    monkeypatch.setattr(main_mod, "_running_daemon_pid", lambda: 4242)

    def refuse(pid, sig):
        raise PermissionError("not allowed")

    monkeypatch.setattr(main_mod.os, "kill", refuse)

    with pytest.raises(SystemExit):
        main_mod._check_once()


def test_check_without_daemon_holds_pid_file(data_dir, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "VAULT_DIR", tmp_path)
    settings_mod.save(Settings(start_hour=0, end_hour=0))

    main_mod._check_once()

    assert main_mod.PID_FILE.read_text().strip() == str(os.getpid())


@pytest.mark.parametrize("content", ["not-a-pid", None])
def test_running_daemon_pid_ignores_stale_or_own_pid(data_dir, content):
    main_mod.PID_FILE.parent.mkdir(parents=True)
    main_mod.PID_FILE.write_text(content if content is not None else str(os.getpid()))

    assert main_mod._running_daemon_pid() is None


def test_routes_test_command(data_dir, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["vault-nudge", "test"])
    monkeypatch.setattr(config, "BOT_TOKEN_OVERRIDE", None)
    monkeypatch.setattr(config, "CHAT_ID_OVERRIDE", None)

    with pytest.raises(SystemExit):
        main_mod._dispatch_subcommand()

    assert "bot_token and chat_id" in capsys.readouterr().err
