"""mucbot command line entry point."""

from __future__ import annotations

import argparse
import sys
from dataclasses import asdict

import anyio
from rich.console import Console
from rich.table import Table

from . import __version__
from .bot import MucBot
from .config import BotConfig
from .demo import install_demo_commands
from .errors import (
    AuthError,
    ConfigError,
    JoinError,
    MucConnectionError,
    ReconnectError,
)
from .logging import get_logger, setup_logging
from .settings import load_config

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mucbot")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = parser.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Connect, join the room and answer commands")
    run.add_argument(
        "--config",
        default="~/.mucbot/mucbot.toml",
        help="Path to mucbot.toml (default: %(default)s)",
    )
    run.add_argument(
        "--no-demo",
        dest="demo",
        action="store_false",
        default=True,
        help="Do not install the sample commands (puts, puts!, rand, rand2, welcome).",
    )
    run.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Log every incoming message and dispatch decision.",
    )

    check = sub.add_parser(
        "check-config", help="Print the normalized configuration and exit"
    )
    check.add_argument(
        "--config",
        default="~/.mucbot/mucbot.toml",
        help="Path to mucbot.toml (default: %(default)s)",
    )

    return parser


def render_config(config: BotConfig) -> Table:
    table = Table(title="mucbot configuration")
    table.add_column("key")
    table.add_column("value")
    values = asdict(config)
    values["password"] = "*" * 8
    values["room_jid"] = config.room_jid
    for key, value in values.items():
        table.add_row(key, str(value))
    return table


async def _run(config: BotConfig, demo: bool) -> None:
    bot = await MucBot.create(config)
    if demo:
        install_demo_commands(bot)
    try:
        await bot.join()
        if not config.keep_alive:
            await bot.wait_closed()
    finally:
        with anyio.CancelScope(shield=True):
            await bot.disconnect()


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    console = Console()

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        console.print(f"[red]error:[/] {exc}")
        raise SystemExit(2) from None

    if args.cmd == "check-config":
        console.print(render_config(config))
        raise SystemExit(0)

    if args.cmd == "run":
        setup_logging(debug=config.debug or args.debug)
        try:
            anyio.run(_run, config, args.demo)
        except KeyboardInterrupt:
            logger.info("mucbot.interrupted")
        except (AuthError, MucConnectionError, JoinError, ReconnectError) as exc:
            logger.error(
                "mucbot.startup.failed",
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            raise SystemExit(1) from None
        raise SystemExit(0)

    parser.error(f"unknown command: {args.cmd}")


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
