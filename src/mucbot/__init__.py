"""Pattern-driven command bot for XMPP multi-user chat rooms."""

__version__ = "0.1.0"

from .bot import FAREWELL_MESSAGE, MucBot
from .config import BotConfig
from .errors import (
    AuthError,
    ConfigError,
    HandlerError,
    JoinError,
    MucBotError,
    MucConnectionError,
    ReconnectError,
    SessionClosedError,
    SessionFatalError,
)
from .types import CommandParams, RoomJoin, RoomMessage

__all__ = [
    "FAREWELL_MESSAGE",
    "AuthError",
    "BotConfig",
    "CommandParams",
    "ConfigError",
    "HandlerError",
    "JoinError",
    "MucBot",
    "MucBotError",
    "MucConnectionError",
    "ReconnectError",
    "RoomJoin",
    "RoomMessage",
    "SessionClosedError",
    "SessionFatalError",
]
