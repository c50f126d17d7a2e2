"""Shared fixtures for vault-nudge tests."""

import os

os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.pop("TELEGRAM_CHAT_ID", None)

import pytest


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Redirect all state file paths to a temp directory."""
    import vault_nudge.main as main_mod
    import vault_nudge.settings as settings_mod
    import vault_nudge.storage as storage_mod

    state_dir = tmp_path / "state"
    monkeypatch.setattr(storage_mod, "DATA_DIR", tmp_path)
    monkeypatch.setattr(storage_mod, "STATE_DIR", state_dir)
    monkeypatch.setattr(settings_mod, "SETTINGS_FILE", state_dir / "settings.json")
    monkeypatch.setattr(main_mod, "STATE_DIR", state_dir)
    monkeypatch.setattr(main_mod, "PID_FILE", state_dir / "daemon.pid")
    return tmp_path


@pytest.fixture()
def vault_dir(tmp_path):
    path = tmp_path / "vault"
    path.mkdir()
    return path
