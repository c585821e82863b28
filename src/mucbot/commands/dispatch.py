"""Command dispatch for incoming room messages."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import anyio

from ..errors import HandlerError
from ..handlers import call_handler, render_response
from ..logging import get_logger
from .registry import CommandRegistry

logger = get_logger(__name__)


class Dispatcher:
    """Route a message body to the first matching command and publish its reply.

    Replies go to the whole room, never privately to the sender.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        send: Callable[[str], Awaitable[None]],
        *,
        limiter: anyio.CapacityLimiter | None = None,
    ) -> None:
        self._registry = registry
        self._send = send
        self._limiter = limiter

    async def dispatch(self, sender: str, raw_text: str) -> None:
        """Run the first command matching ``raw_text`` on behalf of ``sender``.

        Args:
            sender: Room handle of the member who sent the message.
            raw_text: The message body, untrimmed.
        """
        text = raw_text.strip()
        found = self._registry.find_first_match(text)
        if found is None:
            logger.debug("mucbot.dispatch.no_match", sender=sender)
            return

        pattern = found.entry.pattern.pattern
        logger.debug("mucbot.dispatch.matched", sender=sender, pattern=pattern)
        try:
            result = await call_handler(
                found.entry.handler, sender, found.params, limiter=self._limiter
            )
        except HandlerError as exc:
            logger.exception(
                "mucbot.command.failed",
                sender=sender,
                pattern=pattern,
                error=str(exc.original),
                error_type=exc.original.__class__.__name__,
            )
            return

        response = render_response(result)
        if response is None:
            return
        try:
            await self._send(response)
        except Exception as exc:
            logger.error(
                "mucbot.send.failed",
                pattern=pattern,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
