"""Interface between the bot and the chat protocol session."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from .types import RoomJoin, RoomMessage

MessageCallback = Callable[[RoomMessage], Awaitable[None]]
JoinCallback = Callable[[RoomJoin], Awaitable[None]]
ExceptionCallback = Callable[[BaseException], Awaitable[None]]


@runtime_checkable
class RoomSession(Protocol):
    """An authenticated connection that can occupy one multi-user chat room.

    Implementations deliver one event at a time, in arrival order. A fresh
    instance carries no subscriptions; callbacks registered with ``on_*``
    replace any previous registration of the same kind.
    """

    async def connect(self, jid: str, password: str) -> None:
        """Authenticate. Raises ``AuthError`` or ``MucConnectionError``."""
        ...

    async def join_room(self, room_jid: str) -> None:
        """Enter ``room@service/nick``. Raises ``JoinError``."""
        ...

    def on_message(self, callback: MessageCallback) -> None: ...

    def on_join(self, callback: JoinCallback) -> None: ...

    def on_exception(self, callback: ExceptionCallback) -> None: ...

    async def send(self, room: str, text: str) -> None:
        """Broadcast ``text`` to the room with bare JID ``room``."""
        ...

    def is_connected(self) -> bool: ...

    async def disconnect(self) -> None: ...


SessionFactory = Callable[[], RoomSession]
