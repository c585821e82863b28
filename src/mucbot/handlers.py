"""Invoke user handlers as isolated units of work."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any

import anyio

from .errors import HandlerError


async def call_handler(
    handler: Callable[..., Any],
    *args: Any,
    limiter: anyio.CapacityLimiter | None = None,
) -> Any:
    """Run ``handler(*args)`` and wait for it to finish.

    Coroutine functions are awaited on the event loop. Plain callables run in
    a worker thread so a blocking handler does not stall the receive path;
    they can reach back into the loop with ``anyio.from_thread.run``.

    Any exception escaping the handler is re-raised as :class:`HandlerError`.
    """
    try:
        if inspect.iscoroutinefunction(handler):
            result = await handler(*args)
        else:
            result = await anyio.to_thread.run_sync(
                functools.partial(handler, *args), limiter=limiter
            )
            if inspect.isawaitable(result):
                result = await result
    except Exception as exc:
        raise HandlerError(handler, exc) from exc
    return result


def render_response(result: object) -> str | None:
    """Text to send for a handler result, or None when nothing should be sent."""
    if result is None:
        return None
    text = result if isinstance(result, str) else str(result)
    if not text.strip():
        return None
    return text
