"""Bot configuration normalization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ConfigError

DEFAULT_MUC_PREFIX = "conference"


@dataclass(frozen=True, slots=True)
class BotConfig:
    """Normalized, read-only bot configuration.

    Build it with :meth:`from_mapping`, which applies the defaulting rules:

    - with an explicit ``jid``, ``nick`` and ``server`` are taken from it;
    - without one, ``jid`` is ``nick@server``;
    - ``keep_alive`` defaults to true and ``debug`` to false;
    - the room service defaults to ``conference.<server>``.
    """

    nick: str
    server: str
    password: str
    room: str
    jid: str
    debug: bool = False
    keep_alive: bool = True
    muc_service: str | None = None
    reconnect_attempts: int = 1
    reconnect_delay: float = 1.0
    reconnect_max_delay: float = 60.0
    connect_timeout: float = 30.0

    @property
    def room_jid(self) -> str:
        """Bare JID of the room, e.g. ``myroom@conference.example.com``."""
        if "@" in self.room:
            return self.room
        service = self.muc_service or f"{DEFAULT_MUC_PREFIX}.{self.server}"
        return f"{self.room}@{service}"

    @property
    def occupant_jid(self) -> str:
        """Room JID with the bot's nick as resource, used to enter the room."""
        return f"{self.room_jid}/{self.nick}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BotConfig:
        values = {key: value for key, value in data.items() if value not in (None, "")}

        jid = _optional_str(values, "jid")
        if jid is not None:
            local, sep, domain = jid.partition("@")
            if not sep or not local or not domain:
                raise ConfigError(f"Invalid jid {jid!r}; expected 'nick@server'.")
            nick = local
            server = domain.split("/", 1)[0]
        else:
            nick = _optional_str(values, "nick")
            server = _optional_str(values, "server")
            if nick is None:
                raise ConfigError("Missing required config field 'nick' (or 'jid').")
            if server is None:
                raise ConfigError("Missing required config field 'server' (or 'jid').")
            jid = f"{nick}@{server}"

        password = _optional_str(values, "password", strip=False)
        if password is None:
            raise ConfigError("Missing required config field 'password'.")
        room = _optional_str(values, "room")
        if room is None:
            raise ConfigError("Missing required config field 'room'.")

        attempts = _number(values, "reconnect_attempts", int, default=1)
        if attempts < 1:
            raise ConfigError("'reconnect_attempts' must be at least 1.")

        return cls(
            nick=nick,
            server=server,
            password=password,
            room=room,
            jid=jid,
            debug=_flag(values, "debug", default=False),
            keep_alive=_flag(values, "keep_alive", default=True),
            muc_service=_optional_str(values, "muc_service"),
            reconnect_attempts=attempts,
            reconnect_delay=_number(values, "reconnect_delay", float, default=1.0),
            reconnect_max_delay=_number(
                values, "reconnect_max_delay", float, default=60.0
            ),
            connect_timeout=_number(values, "connect_timeout", float, default=30.0),
        )


def _optional_str(
    values: Mapping[str, Any], key: str, *, strip: bool = True
) -> str | None:
    value = values.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Config field {key!r} must be a string.")
    if strip:
        value = value.strip()
    return value or None


def _flag(values: Mapping[str, Any], key: str, *, default: bool) -> bool:
    value = values.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Config field {key!r} must be true or false.")
    return value


def _number(values: Mapping[str, Any], key: str, kind: type, *, default: Any) -> Any:
    value = values.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"Config field {key!r} must be a number.")
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Config field {key!r} must be a number.") from exc
    if number < 0:
        raise ConfigError(f"Config field {key!r} must not be negative.")
    return number
