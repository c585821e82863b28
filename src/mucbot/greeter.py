from __future__ import annotations

from collections.abc import Awaitable, Callable

import anyio

from .errors import HandlerError
from .handlers import call_handler, render_response
from .logging import get_logger
from .types import GreetingHandler, RoomJoin

logger = get_logger(__name__)


class JoinGreeter:
    """Greets members entering the room.

    Holds at most one greeting handler; registering another replaces it.
    Joins seen before any handler is registered are ignored.
    """

    def __init__(
        self,
        send: Callable[[str], Awaitable[None]],
        *,
        limiter: anyio.CapacityLimiter | None = None,
    ) -> None:
        self._send = send
        self._limiter = limiter
        self._handler: GreetingHandler | None = None

    @property
    def handler(self) -> GreetingHandler | None:
        return self._handler

    def set_handler(self, handler: GreetingHandler) -> None:
        if not callable(handler):
            raise TypeError(f"greeting handler must be callable, got {handler!r}")
        if self._handler is not None:
            logger.debug("mucbot.greeting.replaced")
        self._handler = handler

    async def greet(self, event: RoomJoin) -> None:
        handler = self._handler
        if handler is None:
            return
        try:
            result = await call_handler(handler, event.handle, limiter=self._limiter)
        except HandlerError as exc:
            logger.exception(
                "mucbot.greeting.failed",
                handle=event.handle,
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
                handle=event.handle,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
