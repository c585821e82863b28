"""Tests for cli.py and demo.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from mucbot import MucBot, __version__
from mucbot.cli import _build_parser, main, render_config
from mucbot.config import BotConfig
from mucbot.demo import install_demo_commands, puts, quiet_puts, rand, rand_between
from muc_fixtures import ROOM_JID, FakeSession, SessionPool, make_config, room_message


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("NICK", "PASSWORD", "SERVER", "ROOM", "JID"):
        monkeypatch.delenv(f"MUCBOT__{key}", raising=False)


# --- parser ---


def test_run_defaults() -> None:
    """run installs the demo commands unless told otherwise."""
    args = _build_parser().parse_args(["run"])
    assert args.cmd == "run"
    assert args.demo is True
    assert args.debug is False
    assert args.config == "~/.mucbot/mucbot.toml"


def test_run_no_demo() -> None:
    """--no-demo turns the sample commands off."""
    args = _build_parser().parse_args(["run", "--no-demo", "--config", "x.toml"])
    assert args.demo is False
    assert args.config == "x.toml"


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    """--version prints the package version."""
    with pytest.raises(SystemExit) as info:
        _build_parser().parse_args(["--version"])
    assert info.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_command_required() -> None:
    """A subcommand must be given."""
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


# --- check-config ---


def test_render_config_masks_password() -> None:
    """The password never appears in the table."""
    table = render_config(BotConfig.from_mapping(make_config(password="hunter2")))
    cells = [str(cell) for column in table.columns for cell in column.cells]
    assert "hunter2" not in cells
    assert ROOM_JID in cells


def test_check_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """check-config prints the normalized config and exits 0."""
    path = tmp_path / "mucbot.toml"
    path.write_text(
        'nick = "bot"\npassword = "hunter2"\nserver = "s"\nroom = "r"\n',
        encoding="utf-8",
    )
    with pytest.raises(SystemExit) as info:
        main(["check-config", "--config", str(path)])
    assert info.value.code == 0
    out = capsys.readouterr().out
    assert ROOM_JID in out
    assert "hunter2" not in out


def test_missing_config_exits_2(tmp_path: Path) -> None:
    """Configuration errors exit with status 2."""
    with pytest.raises(SystemExit) as info:
        main(["check-config", "--config", str(tmp_path / "absent.toml")])
    assert info.value.code == 2


# --- demo commands ---


def test_puts(capsys: pytest.CaptureFixture[str]) -> None:
    """puts echoes to stdout and confirms in the room."""
    assert puts("alice", "hi") == "'hi' written to stdout."
    assert capsys.readouterr().out == "alice says hi.\n"


def test_quiet_puts(capsys: pytest.CaptureFixture[str]) -> None:
    """puts! only writes to stdout."""
    assert quiet_puts("alice", "hi") is None
    assert capsys.readouterr().out == "alice says hi.\n"


def test_rand_is_single_digit() -> None:
    """rand returns 0-9."""
    assert all(rand("alice", None) in set("0123456789") for _ in range(50))


def test_rand_between() -> None:
    """rand2 returns a value in [low, high)."""
    for _ in range(50):
        assert 3 <= int(rand_between("alice", ("3", "6"))) < 6


def test_rand_between_rejects_empty_range() -> None:
    """rand2 complains when high is not above low."""
    assert rand_between("alice", ("5", "5")) == "5 is not lower than 5."


@pytest.mark.anyio
async def test_install_demo_commands() -> None:
    """The sample set is registered in order and greets newcomers."""
    session = FakeSession()
    bot = await MucBot.create(make_config(), session_factory=SessionPool(session))
    install_demo_commands(bot)
    await bot.join()
    assert [entry.pattern.pattern for entry in bot.commands] == [
        r"^puts\s+(.+)$",
        r"^puts!\s+(.+)$",
        r"^rand$",
        r"^rand2\s+(\d+)\s+(\d+)$",
    ]

    await session.deliver(room_message("alice", "rand2 4 5"))
    await session.deliver_join("carol")
    assert session.sent_texts == ["4", "Hello carol!"]
