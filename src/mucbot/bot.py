"""The public bot object tying the session to command dispatch."""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Mapping
from typing import Any

import anyio

from .commands import CommandEntry, CommandRegistry, Dispatcher
from .config import BotConfig
from .errors import ReconnectError, SessionClosedError
from .filter import rejection_reason
from .greeter import JoinGreeter
from .logging import ensure_logging, get_logger
from .session import RoomSession, SessionFactory
from .supervisor import ExponentialBackoff, ReconnectSupervisor, SessionState
from .types import CommandHandler, GreetingHandler, RoomJoin, RoomMessage
from .xmpp import XmppSession

logger = get_logger(__name__)

FAREWELL_MESSAGE = "Goodbye!"


class MucBot:
    """A command bot living in one multi-user chat room.

    Commands are regular expressions paired with handlers. A handler is called
    as ``handler(sender, params)`` where ``params`` is None, the single capture,
    or a tuple of captures; a non-empty return value is sent to the room.

        bot = await MucBot.create(
            {"nick": "bot", "password": "secret", "server": "example.com", "room": "myroom"}
        )

        @bot.command(r"^rand$")
        def rand(sender, params):
            return str(random.randrange(10))

        await bot.join()

    Creating the object only validates the configuration; :meth:`connect`
    (or :meth:`create`) authenticates with the server.
    """

    def __init__(
        self,
        config: BotConfig | Mapping[str, Any],
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.config = (
            config if isinstance(config, BotConfig) else BotConfig.from_mapping(config)
        )
        ensure_logging(debug=self.config.debug)

        self._session_factory: SessionFactory = session_factory or _default_factory(
            self.config
        )
        self._session: RoomSession | None = None
        self._bound_session: RoomSession | None = None
        self._registry = CommandRegistry()
        self._dispatcher = Dispatcher(self._registry, self.send)
        self._greeter = JoinGreeter(self.send)
        self._supervisor = ReconnectSupervisor(
            self._reconnect,
            attempts=self.config.reconnect_attempts,
            backoff=ExponentialBackoff(
                initial=self.config.reconnect_delay,
                maximum=self.config.reconnect_max_delay,
            ),
            on_failure=self._on_reconnect_failed,
        )
        self._event_lock: anyio.Lock | None = None
        self._closed: anyio.Event | None = None
        self._failure: ReconnectError | None = None

    @classmethod
    async def create(
        cls,
        config: BotConfig | Mapping[str, Any],
        *,
        session_factory: SessionFactory | None = None,
    ) -> MucBot:
        """Validate ``config``, build the bot and connect it."""
        bot = cls(config, session_factory=session_factory)
        await bot.connect()
        return bot

    @property
    def commands(self) -> tuple[CommandEntry, ...]:
        return self._registry.entries

    @property
    def state(self) -> SessionState:
        return self._supervisor.state

    @property
    def is_connected(self) -> bool:
        return self._session is not None and self._session.is_connected()

    @property
    def failure(self) -> ReconnectError | None:
        return self._failure

    async def connect(self) -> None:
        """Open and authenticate the session. Errors propagate to the caller."""
        self._event_lock = anyio.Lock()
        self._closed = anyio.Event()
        session = self._session_factory()
        await session.connect(self.config.jid, self.config.password)
        self._session = session
        logger.info("mucbot.connected", jid=self.config.jid)

    def register_command(
        self, pattern: str | re.Pattern[str], handler: CommandHandler
    ) -> CommandEntry:
        """Add a command; earlier registrations take priority over later ones."""
        entry = self._registry.register(pattern, handler)
        logger.debug("mucbot.command.registered", pattern=entry.pattern.pattern)
        return entry

    def command(
        self, pattern: str | re.Pattern[str]
    ) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator form of :meth:`register_command`."""

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.register_command(pattern, handler)
            return handler

        return decorator

    def set_join_greeting(self, handler: GreetingHandler) -> None:
        """Greet members entering the room. Replaces any previous greeting."""
        self._greeter.set_handler(handler)

    def greeting(self, handler: GreetingHandler) -> GreetingHandler:
        """Decorator form of :meth:`set_join_greeting`."""
        self.set_join_greeting(handler)
        return handler

    async def join(self) -> None:
        """Enter the room and start handling events.

        With ``keep_alive`` this waits until the bot is disconnected.
        """
        session = self._require_session()
        await self._enter_room(session)
        self._supervisor.mark_connected()
        logger.info(
            "mucbot.room.joined", room=self.config.room_jid, nick=self.config.nick
        )
        if self.config.keep_alive:
            await self.wait_closed()

    async def send(self, text: str) -> None:
        """Broadcast ``text`` to the room."""
        session = self._require_session()
        await session.send(self.config.room_jid, text)

    async def disconnect(self) -> None:
        """Say goodbye and close the session. The bot cannot be restarted."""
        session = self._session
        if session is None or not session.is_connected():
            return
        await self.send(FAREWELL_MESSAGE)
        self._supervisor.mark_closed()
        await session.disconnect()
        logger.info("mucbot.disconnected", jid=self.config.jid)
        if self._closed is not None:
            self._closed.set()

    async def wait_closed(self) -> None:
        """Wait for :meth:`disconnect`; raise if the session could not be restored."""
        if self._closed is None:
            raise SessionClosedError("bot is not connected")
        await self._closed.wait()
        if self._failure is not None:
            raise self._failure

    def _require_session(self) -> RoomSession:
        if self._session is None:
            raise SessionClosedError("bot is not connected; call connect() first")
        return self._session

    def _bind(self, session: RoomSession) -> None:
        if session is self._bound_session:
            return
        session.on_message(functools.partial(self._handle_message, session))
        session.on_join(functools.partial(self._handle_join, session))
        session.on_exception(functools.partial(self._handle_exception, session))
        self._bound_session = session

    async def _enter_room(self, session: RoomSession) -> None:
        self._bind(session)
        await session.join_room(self.config.occupant_jid)

    async def _handle_message(self, session: RoomSession, message: RoomMessage) -> None:
        if session is not self._session:
            logger.debug("mucbot.message.stale_session")
            return
        reason = rejection_reason(message, own_nick=self.config.nick)
        if reason is not None:
            logger.debug("mucbot.message.ignored", reason=reason, sender=message.sender)
            return
        assert message.sender is not None and message.body is not None
        logger.debug(
            "mucbot.message.received",
            sender=message.sender,
            recipient=message.recipient,
            body=message.body,
        )
        assert self._event_lock is not None
        async with self._event_lock:
            await self._dispatcher.dispatch(message.sender, message.body)

    async def _handle_join(self, session: RoomSession, event: RoomJoin) -> None:
        if session is not self._session:
            return
        logger.debug("mucbot.member.joined", handle=event.handle)
        assert self._event_lock is not None
        async with self._event_lock:
            await self._greeter.greet(event)

    async def _handle_exception(
        self, session: RoomSession, exc: BaseException
    ) -> None:
        if session is not self._session:
            logger.debug("mucbot.session.stale_error", error=str(exc))
            return
        await self._supervisor.handle_fatal(exc)

    async def _reconnect(self) -> None:
        previous = self._session
        if previous is not None and previous.is_connected():
            await previous.disconnect()
        session = self._session_factory()
        await session.connect(self.config.jid, self.config.password)
        self._session = session
        await self._enter_room(session)

    def _on_reconnect_failed(self, error: ReconnectError) -> None:
        self._failure = error
        if self._closed is not None:
            self._closed.set()


def _default_factory(config: BotConfig) -> SessionFactory:
    return functools.partial(XmppSession, connect_timeout=config.connect_timeout)
