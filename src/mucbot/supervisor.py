"""Recovery of the room session after fatal stream errors."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Literal

import anyio

from .errors import ReconnectError
from .logging import get_logger

logger = get_logger(__name__)

SessionState = Literal["idle", "connected", "reconnecting", "failed", "closed"]


class ExponentialBackoff:
    """Delays between reconnect attempts.

    The n-th call to :meth:`next` returns ``initial * multiplier ** n`` capped at
    ``maximum``; :meth:`reset` starts the sequence over for the next outage.
    """

    def __init__(
        self,
        initial: float = 1.0,
        maximum: float = 60.0,
        multiplier: float = 2.0,
    ) -> None:
        self.initial = initial
        self.maximum = maximum
        self.multiplier = multiplier
        self._step = 0

    def next(self) -> float:
        delay = min(self.initial * self.multiplier**self._step, self.maximum)
        if delay < self.maximum:
            self._step += 1
        return delay

    def reset(self) -> None:
        self._step = 0


class ReconnectSupervisor:
    """Two-state machine (connected / reconnecting) around a ``recover`` routine.

    A fatal error in the connected state triggers up to ``attempts`` calls to
    ``recover``; attempts after the first wait for the backoff delay. Errors
    reported while already reconnecting, failed or closed are ignored. When
    every attempt fails the supervisor enters ``failed`` and hands a
    :class:`ReconnectError` to ``on_failure``.
    """

    def __init__(
        self,
        recover: Callable[[], Awaitable[None]],
        *,
        attempts: int = 1,
        backoff: ExponentialBackoff | None = None,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
        on_failure: Callable[[ReconnectError], None] | None = None,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._recover = recover
        self._attempts = attempts
        self._backoff = backoff or ExponentialBackoff()
        self._sleep = sleep
        self._on_failure = on_failure
        self._state: SessionState = "idle"

    @property
    def state(self) -> SessionState:
        return self._state

    def mark_connected(self) -> None:
        self._state = "connected"

    def mark_closed(self) -> None:
        self._state = "closed"

    async def handle_fatal(self, exc: BaseException) -> None:
        if self._state != "connected":
            logger.debug(
                "mucbot.session.fatal_ignored",
                state=self._state,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return

        self._state = "reconnecting"
        logger.warning(
            "mucbot.session.fatal",
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        self._backoff.reset()
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            if attempt > 1:
                await self._sleep(self._backoff.next())
            if self._state == "closed":
                logger.info("mucbot.reconnect.aborted", reason="closed")
                return
            try:
                await self._recover()
            except Exception as err:
                if self._state == "closed":
                    logger.info("mucbot.reconnect.aborted", reason="closed")
                    return
                last_error = err
                logger.warning(
                    "mucbot.reconnect.attempt_failed",
                    attempt=attempt,
                    attempts=self._attempts,
                    error=str(err),
                    error_type=err.__class__.__name__,
                )
                continue
            if self._state == "closed":
                return
            self._state = "connected"
            logger.info("mucbot.reconnect.succeeded", attempt=attempt)
            return

        self._state = "failed"
        error = ReconnectError(
            f"could not restore the room session after {self._attempts} attempt(s)",
            attempts=self._attempts,
        )
        error.__cause__ = last_error
        logger.error(
            "mucbot.reconnect.failed",
            attempts=self._attempts,
            error=str(last_error),
            error_type=last_error.__class__.__name__,
        )
        if self._on_failure is not None:
            self._on_failure(error)
