"""Tests for settings.py - TOML and environment loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from mucbot.errors import ConfigError
from mucbot.settings import load_config, load_settings
from muc_fixtures import BOT_JID, ROOM_JID

CONFIG_TOML = """\
nick = "bot"
password = "p"
server = "s"
room = "r"
keep_alive = false
reconnect_attempts = 3
"""


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("NICK", "PASSWORD", "SERVER", "ROOM", "JID", "DEBUG", "KEEP_ALIVE"):
        monkeypatch.delenv(f"MUCBOT__{key}", raising=False)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "mucbot.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_from_toml(tmp_path: Path) -> None:
    """A complete TOML file produces a normalized config."""
    config = load_config(_write(tmp_path, CONFIG_TOML))
    assert config.jid == BOT_JID
    assert config.room_jid == ROOM_JID
    assert config.keep_alive is False
    assert config.reconnect_attempts == 3


def test_load_settings_returns_path(tmp_path: Path) -> None:
    """The resolved path is returned alongside the settings."""
    path = _write(tmp_path, CONFIG_TOML)
    settings, resolved = load_settings(path)
    assert resolved == path
    assert settings.nick == "bot"


def test_environment_overrides_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """MUCBOT__ variables win over the file."""
    monkeypatch.setenv("MUCBOT__PASSWORD", "from-env")
    config = load_config(_write(tmp_path, CONFIG_TOML))
    assert config.password == "from-env"


def test_unknown_keys_ignored(tmp_path: Path) -> None:
    """Extra keys in the file are not an error."""
    config = load_config(_write(tmp_path, CONFIG_TOML + 'colour = "blue"\n'))
    assert config.nick == "bot"


def test_missing_file(tmp_path: Path) -> None:
    """A missing file is a config error."""
    with pytest.raises(ConfigError, match="Missing config file"):
        load_config(tmp_path / "absent.toml")


def test_directory_instead_of_file(tmp_path: Path) -> None:
    """A directory at the config path is rejected."""
    with pytest.raises(ConfigError, match="not a file"):
        load_config(tmp_path)


def test_missing_required_field(tmp_path: Path) -> None:
    """Required fields are enforced after loading."""
    path = _write(tmp_path, 'nick = "bot"\npassword = "p"\nserver = "s"\n')
    with pytest.raises(ConfigError, match="room"):
        load_config(path)


def test_invalid_value_type(tmp_path: Path) -> None:
    """Values pydantic cannot coerce become config errors."""
    path = _write(tmp_path, CONFIG_TOML + 'connect_timeout = "soon"\n')
    with pytest.raises(ConfigError, match="Invalid config"):
        load_config(path)
