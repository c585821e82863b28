"""Exceptions raised by the bot and its session adapters."""

from __future__ import annotations


class MucBotError(Exception):
    """Base class for all mucbot errors."""


class ConfigError(MucBotError):
    """A required configuration field is missing or invalid."""


class AuthError(MucBotError):
    """The server rejected the bot's credentials."""


class MucConnectionError(MucBotError, ConnectionError):
    """The transport could not be established (refused, unreachable, timed out)."""


class JoinError(MucBotError):
    """The room refused the bot or the join did not complete in time."""


class SessionClosedError(MucBotError):
    """An operation needed a live session but none is attached."""


class SessionFatalError(MucBotError):
    """The session adapter lost its stream and cannot continue."""


class ReconnectError(MucBotError):
    """Every recovery attempt after a fatal session error failed."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class HandlerError(MucBotError):
    """A command or greeting handler raised while being invoked."""

    def __init__(self, handler: object, original: BaseException) -> None:
        name = getattr(handler, "__qualname__", None) or repr(handler)
        super().__init__(f"handler {name} failed: {original}")
        self.handler = handler
        self.original = original
