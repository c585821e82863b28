"""XMPP multi-user chat session built on slixmpp."""

from __future__ import annotations

import inspect
from typing import Any

import anyio
import slixmpp
from slixmpp import JID

from .errors import (
    AuthError,
    JoinError,
    MucConnectionError,
    SessionClosedError,
    SessionFatalError,
)
from .logging import get_logger
from .session import ExceptionCallback, JoinCallback, MessageCallback
from .types import GROUPCHAT, RoomJoin, RoomMessage

logger = get_logger(__name__)

# XEP-0203 delayed delivery and its legacy XEP-0091 predecessor.
DELAY_ELEMENTS = ("{urn:xmpp:delay}delay", "{jabber:x:delay}x")

PLUGINS = ("xep_0030", "xep_0045", "xep_0203")


def room_message_from_stanza(stanza: Any) -> RoomMessage:
    """Convert a slixmpp message stanza into a :class:`RoomMessage`."""
    xml = stanza.xml
    delayed = any(xml.find(tag) is not None for tag in DELAY_ELEMENTS)
    return RoomMessage(
        kind=stanza["type"] or "normal",
        sender=stanza["from"].resource or None,
        recipient=stanza["to"].resource or None,
        body=stanza["body"] or None,
        delayed=delayed,
        raw=stanza,
    )


class XmppSession:
    """Room session over a single slixmpp client stream.

    Every instance owns one stream; after a fatal error the bot builds a new
    instance instead of reusing this one.
    """

    def __init__(
        self,
        *,
        connect_timeout: float = 30.0,
        join_timeout: float = 60.0,
        keepalive_interval: int = 60,
    ) -> None:
        self._connect_timeout = connect_timeout
        self._join_timeout = join_timeout
        self._keepalive_interval = keepalive_interval
        self._client: slixmpp.ClientXMPP | None = None
        self._room: str | None = None
        self._nick: str | None = None
        self._connected = False
        self._joined = False
        self._closing = False
        self._fatal_reported = False
        self._message_cb: MessageCallback | None = None
        self._join_cb: JoinCallback | None = None
        self._exception_cb: ExceptionCallback | None = None

    def on_message(self, callback: MessageCallback) -> None:
        self._message_cb = callback

    def on_join(self, callback: JoinCallback) -> None:
        self._join_cb = callback

    def on_exception(self, callback: ExceptionCallback) -> None:
        self._exception_cb = callback

    def is_connected(self) -> bool:
        return self._connected

    async def connect(self, jid: str, password: str) -> None:
        client = slixmpp.ClientXMPP(jid, password)
        for plugin in PLUGINS:
            client.register_plugin(plugin)
        client.register_plugin(
            "xep_0199", {"keepalive": True, "interval": self._keepalive_interval}
        )

        ready = anyio.Event()
        failure: list[Exception] = []

        async def on_session_start(_event: Any) -> None:
            client.send_presence()
            await client.get_roster()
            self._connected = True
            ready.set()

        def on_failed_auth(_event: Any) -> None:
            failure.append(AuthError(f"authentication failed for {jid}"))
            ready.set()

        def on_connection_failed(error: Any) -> None:
            failure.append(MucConnectionError(f"connection failed: {error}"))
            ready.set()

        client.add_event_handler("session_start", on_session_start)
        client.add_event_handler("failed_all_auth", on_failed_auth)
        client.add_event_handler("connection_failed", on_connection_failed)
        client.add_event_handler("disconnected", self._handle_disconnected)
        client.add_event_handler("message", self._handle_message)
        self._client = client

        logger.debug("mucbot.xmpp.connecting", jid=jid)
        client.connect()
        with anyio.move_on_after(self._connect_timeout) as scope:
            await ready.wait()
        if scope.cancelled_caught:
            failure.append(
                MucConnectionError(
                    f"no session after {self._connect_timeout:g}s for {jid}"
                )
            )

        for handler_name, handler in (
            ("failed_all_auth", on_failed_auth),
            ("connection_failed", on_connection_failed),
        ):
            client.del_event_handler(handler_name, handler)

        if failure:
            self._closing = True
            client.abort()
            raise failure[0]
        logger.info("mucbot.xmpp.connected", jid=jid)

    async def join_room(self, room_jid: str) -> None:
        client = self._require_client()
        target = JID(room_jid)
        room, nick = target.bare, target.resource
        if not nick:
            raise JoinError(f"room JID {room_jid!r} has no nick resource")

        if self._room != room:
            client.add_event_handler(f"muc::{room}::got-online", self._handle_presence)
        self._room = room
        self._nick = nick
        try:
            await client.plugin["xep_0045"].join_muc_wait(
                JID(room), nick, timeout=self._join_timeout
            )
        except Exception as exc:
            raise JoinError(f"could not join {room} as {nick}: {exc}") from exc
        self._joined = True
        logger.info("mucbot.xmpp.joined", room=room, nick=nick)

    async def send(self, room: str, text: str) -> None:
        client = self._require_client()
        client.send_message(mto=JID(room), mbody=text, mtype=GROUPCHAT)

    async def disconnect(self) -> None:
        client = self._client
        if client is None:
            return
        self._closing = True
        self._connected = False
        self._joined = False
        result = client.disconnect()
        if inspect.isawaitable(result):
            await result
        logger.info("mucbot.xmpp.disconnected")

    def _require_client(self) -> slixmpp.ClientXMPP:
        if self._client is None or not self._connected:
            raise SessionClosedError("XMPP session is not connected")
        return self._client

    async def _handle_message(self, stanza: Any) -> None:
        if self._message_cb is None or self._room is None:
            return
        if stanza["from"].bare != self._room:
            return
        await self._message_cb(room_message_from_stanza(stanza))

    async def _handle_presence(self, presence: Any) -> None:
        # Occupants already present are announced before our own join completes.
        if self._join_cb is None or not self._joined:
            return
        handle = presence["from"].resource
        if not handle or handle == self._nick:
            return
        await self._join_cb(RoomJoin(handle=handle, room=self._room, raw=presence))

    async def _handle_disconnected(self, reason: Any) -> None:
        was_connected = self._connected
        self._connected = False
        self._joined = False
        if self._closing or not was_connected or self._fatal_reported:
            return
        self._fatal_reported = True
        logger.warning("mucbot.xmpp.stream_lost", reason=str(reason))
        if self._exception_cb is not None:
            await self._exception_cb(SessionFatalError(f"stream closed: {reason}"))
