"""Sample command set used by ``mucbot run``."""

from __future__ import annotations

import random

from .bot import MucBot
from .types import CommandParams


def puts(sender: str, message: CommandParams) -> str:
    print(f"{sender} says {message}.")
    return f"'{message}' written to stdout."


def quiet_puts(sender: str, message: CommandParams) -> None:
    print(f"{sender} says {message}.")


def rand(sender: str, params: CommandParams) -> str:
    return str(random.randrange(10))


def rand_between(sender: str, params: CommandParams) -> str:
    assert isinstance(params, tuple)
    low, high = int(str(params[0])), int(str(params[1]))
    if high <= low:
        return f"{low} is not lower than {high}."
    return str(random.randrange(low, high))


def welcome(user: str) -> str:
    return f"Hello {user}!"


def install_demo_commands(bot: MucBot) -> None:
    bot.register_command(r"^puts\s+(.+)$", puts)
    bot.register_command(r"^puts!\s+(.+)$", quiet_puts)
    bot.register_command(r"^rand$", rand)
    bot.register_command(r"^rand2\s+(\d+)\s+(\d+)$", rand_between)
    bot.set_join_greeting(welcome)
